from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.users import User
from guestlist.domain.value_objects import (
    ContactSortField,
    InvitationStatus,
    PartyStatus,
    SortOrder,
)

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    is_done: bool
    continue_cursor: str | None = None


@dataclass
class ContactImportRow:
    first_name: str
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None


@dataclass
class LinkedInImportRow:
    first_name: str
    last_name: str = ""
    email: str | None = None
    company: str | None = None
    position: str | None = None
    linkedin_url: str | None = None
    connected_on: str | None = None

    def synthesized_notes(self) -> str | None:
        if self.linkedin_url:
            notes = f"LinkedIn: {self.linkedin_url}"
            if self.connected_on:
                notes += f"\nConnected: {self.connected_on}"
            return notes
        if self.connected_on:
            return f"Connected: {self.connected_on}"
        return None


@dataclass
class DuplicateRecord:
    name: str
    email: str | None
    reason: str


@dataclass
class ImportSummary:
    total: int
    imported: int
    skipped: int


@dataclass
class ImportResult:
    imported: list[UUID]
    duplicates: list[DuplicateRecord]
    summary: ImportSummary


@dataclass
class UserSummary:
    id: UUID
    name: str

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(id=user.id, name=user.display_name)


@dataclass
class InvitationWithContact:
    invitation: Invitation
    contact: Contact | None
    invited_by: UserSummary | None


@dataclass
class InvitationWithParty:
    invitation: Invitation
    party: Party | None


@dataclass
class PartyDetails:
    party: Party
    invitations: list[InvitationWithContact]


@dataclass
class PublicParty:
    id: UUID
    name: str
    description: str | None
    date: datetime | None
    location: str | None
    status: PartyStatus


@dataclass
class PublicAttendanceResult:
    contact_id: UUID
    invitation_id: UUID
    contact_created: bool
    invitation_created: bool


@dataclass
class AttendanceStats:
    party_id: UUID
    counts: dict[str, int]
    total: int

    @property
    def attended(self) -> int:
        return self.counts.get(InvitationStatus.ATTENDED.value, 0)


class ContactService(ABC):
    @abstractmethod
    def get(self, caller_id: UUID | None, contact_id: UUID) -> Contact | None:
        pass

    @abstractmethod
    def list_contacts(
        self,
        caller_id: UUID | None,
        *,
        num_items: int | None = None,
        cursor: str | None = None,
        search: str | None = None,
        company: str | None = None,
        created_by: UUID | None = None,
        sort_by: ContactSortField | str | None = None,
        order: SortOrder | str | None = None,
    ) -> Page[Contact]:
        pass

    @abstractmethod
    def create(
        self,
        caller_id: UUID | None,
        first_name: str,
        last_name: str = "",
        email: str | None = None,
        company: str | None = None,
        phone: str | None = None,
        position: str | None = None,
        tags: list[str] | None = None,
        notes: str | None = None,
    ) -> Contact:
        pass

    @abstractmethod
    def update(
        self, caller_id: UUID | None, contact_id: UUID, changes: Mapping[str, Any]
    ) -> Contact:
        pass

    @abstractmethod
    def remove(self, caller_id: UUID | None, contact_id: UUID) -> None:
        pass

    @abstractmethod
    def batch_delete(self, caller_id: UUID | None, contact_ids: Sequence[UUID]) -> int:
        pass

    @abstractmethod
    def import_from_csv(
        self, caller_id: UUID | None, rows: Sequence[ContactImportRow]
    ) -> ImportResult:
        pass

    @abstractmethod
    def import_from_linkedin(
        self, caller_id: UUID | None, rows: Sequence[LinkedInImportRow]
    ) -> ImportResult:
        pass

    @abstractmethod
    def get_companies(self, caller_id: UUID | None) -> list[str]:
        pass

    @abstractmethod
    def get_created_by_users(self, caller_id: UUID | None) -> list[UserSummary]:
        pass

    @abstractmethod
    def get_sources(self, caller_id: UUID | None) -> list[str]:
        pass

    @abstractmethod
    def suggest_company_from_email(
        self, caller_id: UUID | None, email: str
    ) -> str | None:
        pass


class PartyService(ABC):
    @abstractmethod
    def list_parties(self, caller_id: UUID | None) -> list[Party]:
        pass

    @abstractmethod
    def create(
        self,
        caller_id: UUID | None,
        name: str,
        description: str | None = None,
        date: datetime | None = None,
        location: str | None = None,
        status: PartyStatus | str | None = None,
    ) -> Party:
        pass

    @abstractmethod
    def update(
        self, caller_id: UUID | None, party_id: UUID, changes: Mapping[str, Any]
    ) -> Party:
        pass

    @abstractmethod
    def batch_update_status(
        self,
        caller_id: UUID | None,
        party_ids: Sequence[UUID],
        status: PartyStatus | str,
    ) -> int:
        pass

    @abstractmethod
    def get_with_invitations(
        self, caller_id: UUID | None, party_id: UUID
    ) -> PartyDetails:
        pass

    @abstractmethod
    def get_public(self, party_id: UUID) -> PublicParty:
        pass


class InvitationService(ABC):
    @abstractmethod
    def get_by_contact(
        self, caller_id: UUID | None, contact_id: UUID
    ) -> list[InvitationWithParty]:
        pass

    @abstractmethod
    def get_by_party(
        self,
        caller_id: UUID | None,
        party_id: UUID,
        status: InvitationStatus | str | None = None,
        search: str | None = None,
    ) -> list[InvitationWithContact]:
        pass

    @abstractmethod
    def create(
        self,
        caller_id: UUID | None,
        party_id: UUID,
        contact_id: UUID,
        notes: str | None = None,
    ) -> Invitation:
        pass

    @abstractmethod
    def bulk_invite(
        self, caller_id: UUID | None, party_id: UUID, contact_ids: Sequence[UUID]
    ) -> list[UUID]:
        pass

    @abstractmethod
    def update_status(
        self,
        caller_id: UUID | None,
        invitation_id: UUID,
        status: InvitationStatus | str,
        notes: str | None = None,
    ) -> Invitation:
        pass

    @abstractmethod
    def batch_update_status(
        self,
        caller_id: UUID | None,
        invitation_ids: Sequence[UUID],
        status: InvitationStatus | str,
    ) -> int:
        pass

    @abstractmethod
    def remove(self, caller_id: UUID | None, invitation_id: UUID) -> None:
        pass

    @abstractmethod
    def batch_delete(
        self, caller_id: UUID | None, invitation_ids: Sequence[UUID]
    ) -> int:
        pass

    @abstractmethod
    def undo_check_in(self, caller_id: UUID | None, invitation_id: UUID) -> Invitation:
        pass

    @abstractmethod
    def get_attendance_stats(
        self, caller_id: UUID | None, party_id: UUID
    ) -> AttendanceStats:
        pass

    @abstractmethod
    def public_attend(
        self,
        party_id: UUID,
        first_name: str,
        last_name: str = "",
        email: str | None = None,
    ) -> PublicAttendanceResult:
        pass


class UserService(ABC):
    @abstractmethod
    def get(self, user_id: UUID) -> User | None:
        pass

    @abstractmethod
    def resolve_from_claims(self, claims: Mapping[str, Any]) -> User:
        pass

    @abstractmethod
    def ensure_user(self, email: str, name: str | None = None) -> User:
        pass
