from abc import ABC, abstractmethod
from collections.abc import Iterable
from uuid import UUID

from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.users import User


class UserRepository(ABC):
    @abstractmethod
    def add(self, user: User) -> None:
        pass

    @abstractmethod
    def get(self, user_id: UUID) -> User | None:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup by email."""
        pass

    @abstractmethod
    def get_by_auth_subject(self, subject: str) -> User | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[User]:
        pass

    @abstractmethod
    def update(self, user: User) -> None:
        pass


class ContactRepository(ABC):
    @abstractmethod
    def add(self, contact: Contact) -> None:
        pass

    @abstractmethod
    def get(self, contact_id: UUID) -> Contact | None:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Contact | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Contact]:
        pass

    @abstractmethod
    def list_by_company(self, company: str) -> Iterable[Contact]:
        pass

    @abstractmethod
    def list_by_created_by(self, user_id: UUID) -> Iterable[Contact]:
        pass

    @abstractmethod
    def search_first_name(
        self, term: str, company: str | None = None
    ) -> Iterable[Contact]:
        """Keyword search: every token of ``term`` prefixes a word of first_name."""
        pass

    @abstractmethod
    def list_companies(self) -> Iterable[str]:
        pass

    @abstractmethod
    def list_sources(self) -> Iterable[str]:
        pass

    @abstractmethod
    def list_creator_ids(self) -> Iterable[UUID]:
        pass

    @abstractmethod
    def update(self, contact: Contact) -> None:
        pass

    @abstractmethod
    def delete(self, contact_id: UUID) -> None:
        pass


class PartyRepository(ABC):
    @abstractmethod
    def add(self, party: Party) -> None:
        pass

    @abstractmethod
    def get(self, party_id: UUID) -> Party | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Party]:
        """All parties, newest first."""
        pass

    @abstractmethod
    def list_by_created_by(self, user_id: UUID) -> Iterable[Party]:
        pass

    @abstractmethod
    def update(self, party: Party) -> None:
        pass


class InvitationRepository(ABC):
    @abstractmethod
    def add(self, invitation: Invitation) -> None:
        """Insert an invitation.

        Raises:
            IntegrityError: If the (party, contact) pair already exists.
        """
        pass

    @abstractmethod
    def get(self, invitation_id: UUID) -> Invitation | None:
        pass

    @abstractmethod
    def get_by_party_and_contact(
        self, party_id: UUID, contact_id: UUID
    ) -> Invitation | None:
        pass

    @abstractmethod
    def list_by_party(self, party_id: UUID) -> Iterable[Invitation]:
        pass

    @abstractmethod
    def list_by_contact(self, contact_id: UUID) -> Iterable[Invitation]:
        pass

    @abstractmethod
    def update(self, invitation: Invitation) -> None:
        pass

    @abstractmethod
    def delete(self, invitation_id: UUID) -> None:
        pass

    @abstractmethod
    def delete_by_contact(self, contact_id: UUID) -> int:
        """Delete every invitation of a contact, returning how many were removed."""
        pass
