"""Invitation lifecycle: inviting, RSVP/attendance status and door check-in.

Every status change, whether from a single update, a batch update or the
public self-registration flow, goes through ``Invitation.apply_status`` so
``sent_at``/``responded_at`` are stamped once and never overwritten.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.value_objects import ContactSource, InvitationStatus
from guestlist.exceptions import (
    BatchOperationError,
    ContactNotFoundError,
    DuplicateInvitationError,
    IntegrityError,
    InvitationNotFoundError,
    PartyNotFoundError,
    ValidationError,
)
from guestlist.logging_config import get_logger
from guestlist.repositories.interfaces import (
    ContactRepository,
    InvitationRepository,
    PartyRepository,
    UserRepository,
)
from guestlist.services.company import CompanyGuesser
from guestlist.services.interfaces import (
    AttendanceStats,
    InvitationService,
    InvitationWithContact,
    InvitationWithParty,
    PublicAttendanceResult,
    UserSummary,
)
from guestlist.services.policies import require_caller

logger = get_logger(__name__)


def _contact_matches(contact: Contact | None, needle: str) -> bool:
    if contact is None:
        return False
    haystacks = (
        f"{contact.first_name} {contact.last_name}".lower(),
        (contact.email or "").lower(),
        (contact.company or "").lower(),
    )
    return any(needle in text for text in haystacks)


class InvitationServiceImpl(InvitationService):
    def __init__(
        self,
        invitation_repo: InvitationRepository,
        party_repo: PartyRepository,
        contact_repo: ContactRepository,
        user_repo: UserRepository,
        company_guesser: CompanyGuesser,
    ) -> None:
        self._invitation_repo = invitation_repo
        self._party_repo = party_repo
        self._contact_repo = contact_repo
        self._user_repo = user_repo
        self._company_guesser = company_guesser

    def _get_party(self, party_id: UUID) -> Party:
        party = self._party_repo.get(party_id)
        if party is None:
            raise PartyNotFoundError(party_id)
        return party

    def _get_invitation(self, invitation_id: UUID) -> Invitation:
        invitation = self._invitation_repo.get(invitation_id)
        if invitation is None:
            raise InvitationNotFoundError(invitation_id)
        return invitation

    def get_by_contact(
        self, caller_id: UUID | None, contact_id: UUID
    ) -> list[InvitationWithParty]:
        require_caller(caller_id)
        return [
            InvitationWithParty(
                invitation=invitation,
                party=self._party_repo.get(invitation.party_id),
            )
            for invitation in self._invitation_repo.list_by_contact(contact_id)
        ]

    def get_by_party(
        self,
        caller_id: UUID | None,
        party_id: UUID,
        status: InvitationStatus | str | None = None,
        search: str | None = None,
    ) -> list[InvitationWithContact]:
        require_caller(caller_id)
        self._get_party(party_id)
        wanted = InvitationStatus.parse(status) if status else None
        needle = search.strip().lower() if search else ""

        users: dict[UUID, UserSummary | None] = {}
        results: list[InvitationWithContact] = []
        for invitation in self._invitation_repo.list_by_party(party_id):
            if wanted is not None and invitation.status != wanted:
                continue
            contact = self._contact_repo.get(invitation.contact_id)
            if needle and not _contact_matches(contact, needle):
                continue
            if invitation.invited_by not in users:
                user = self._user_repo.get(invitation.invited_by)
                users[invitation.invited_by] = (
                    UserSummary.from_user(user) if user else None
                )
            results.append(
                InvitationWithContact(
                    invitation=invitation,
                    contact=contact,
                    invited_by=users[invitation.invited_by],
                )
            )
        return results

    def create(
        self,
        caller_id: UUID | None,
        party_id: UUID,
        contact_id: UUID,
        notes: str | None = None,
    ) -> Invitation:
        caller = require_caller(caller_id)
        self._get_party(party_id)
        if self._contact_repo.get(contact_id) is None:
            raise ContactNotFoundError(contact_id)
        if self._invitation_repo.get_by_party_and_contact(party_id, contact_id):
            raise DuplicateInvitationError(party_id, contact_id)

        invitation = Invitation(
            party_id=party_id, contact_id=contact_id, invited_by=caller, notes=notes
        )
        try:
            self._invitation_repo.add(invitation)
        except IntegrityError as exc:
            raise DuplicateInvitationError(party_id, contact_id) from exc

        logger.info(
            "invitation_created",
            invitation_id=str(invitation.id),
            party_id=str(party_id),
            contact_id=str(contact_id),
        )
        return invitation

    def bulk_invite(
        self, caller_id: UUID | None, party_id: UUID, contact_ids: Sequence[UUID]
    ) -> list[UUID]:
        caller = require_caller(caller_id)
        self._get_party(party_id)
        unique_ids = list(dict.fromkeys(contact_ids))
        for contact_id in unique_ids:
            if self._contact_repo.get(contact_id) is None:
                raise ContactNotFoundError(contact_id)

        created: list[UUID] = []
        for contact_id in unique_ids:
            if self._invitation_repo.get_by_party_and_contact(party_id, contact_id):
                continue
            invitation = Invitation(
                party_id=party_id, contact_id=contact_id, invited_by=caller
            )
            try:
                self._invitation_repo.add(invitation)
            except IntegrityError:
                logger.debug(
                    "bulk_invite_pair_exists",
                    party_id=str(party_id),
                    contact_id=str(contact_id),
                )
                continue
            created.append(invitation.id)

        logger.info(
            "bulk_invite_completed",
            party_id=str(party_id),
            requested=len(unique_ids),
            created=len(created),
        )
        return created

    def update_status(
        self,
        caller_id: UUID | None,
        invitation_id: UUID,
        status: InvitationStatus | str,
        notes: str | None = None,
    ) -> Invitation:
        require_caller(caller_id)
        new_status = InvitationStatus.parse(status)
        invitation = self._get_invitation(invitation_id)

        invitation.apply_status(new_status)
        if notes is not None:
            invitation.notes = notes
        self._invitation_repo.update(invitation)
        logger.info(
            "invitation_status_updated",
            invitation_id=str(invitation.id),
            status=new_status.value,
        )
        return invitation

    def batch_update_status(
        self,
        caller_id: UUID | None,
        invitation_ids: Sequence[UUID],
        status: InvitationStatus | str,
    ) -> int:
        require_caller(caller_id)
        new_status = InvitationStatus.parse(status)
        now = datetime.now(UTC)

        updated = 0
        failed: list[UUID] = []
        for invitation_id in dict.fromkeys(invitation_ids):
            invitation = self._invitation_repo.get(invitation_id)
            if invitation is None:
                failed.append(invitation_id)
                continue
            invitation.apply_status(new_status, now)
            self._invitation_repo.update(invitation)
            updated += 1

        if failed:
            logger.warning(
                "batch_partial_failure",
                operation="update_invitation_status",
                failed=len(failed),
                applied=updated,
            )
            raise BatchOperationError("update invitation status", failed, updated)
        logger.info(
            "invitation_status_batch_updated", count=updated, status=new_status.value
        )
        return updated

    def remove(self, caller_id: UUID | None, invitation_id: UUID) -> None:
        require_caller(caller_id)
        self._get_invitation(invitation_id)
        self._invitation_repo.delete(invitation_id)
        logger.info("invitation_deleted", invitation_id=str(invitation_id))

    def batch_delete(
        self, caller_id: UUID | None, invitation_ids: Sequence[UUID]
    ) -> int:
        require_caller(caller_id)
        deleted = 0
        failed: list[UUID] = []
        for invitation_id in dict.fromkeys(invitation_ids):
            if self._invitation_repo.get(invitation_id) is None:
                failed.append(invitation_id)
                continue
            self._invitation_repo.delete(invitation_id)
            deleted += 1

        if failed:
            logger.warning(
                "batch_partial_failure",
                operation="delete_invitations",
                failed=len(failed),
                applied=deleted,
            )
            raise BatchOperationError("delete invitations", failed, deleted)
        return deleted

    def undo_check_in(self, caller_id: UUID | None, invitation_id: UUID) -> Invitation:
        require_caller(caller_id)
        invitation = self._get_invitation(invitation_id)
        invitation.undo_check_in()
        self._invitation_repo.update(invitation)
        logger.info("check_in_undone", invitation_id=str(invitation.id))
        return invitation

    def get_attendance_stats(
        self, caller_id: UUID | None, party_id: UUID
    ) -> AttendanceStats:
        require_caller(caller_id)
        self._get_party(party_id)
        counts = {status.value: 0 for status in InvitationStatus}
        total = 0
        for invitation in self._invitation_repo.list_by_party(party_id):
            counts[invitation.status.value] += 1
            total += 1
        return AttendanceStats(party_id=party_id, counts=counts, total=total)

    def public_attend(
        self,
        party_id: UUID,
        first_name: str,
        last_name: str = "",
        email: str | None = None,
    ) -> PublicAttendanceResult:
        party = self._get_party(party_id)
        first = (first_name or "").strip()
        if not first:
            raise ValidationError("First name is required")
        email = (email or "").strip() or None

        contact = self._contact_repo.get_by_email(email) if email else None
        contact_created = contact is None
        if contact is None:
            contact = Contact(
                first_name=first,
                last_name=(last_name or "").strip(),
                email=email,
                company=self._company_guesser.guess(email),
                source=ContactSource.PUBLIC,
                created_by=party.created_by,
            )
            self._contact_repo.add(contact)

        now = datetime.now(UTC)
        invitation = self._invitation_repo.get_by_party_and_contact(
            party.id, contact.id
        )
        invitation_created = invitation is None
        if invitation is None:
            invitation = Invitation(
                party_id=party.id,
                contact_id=contact.id,
                invited_by=party.created_by,
            )
            invitation.apply_status(InvitationStatus.ATTENDED, now)
            try:
                self._invitation_repo.add(invitation)
            except IntegrityError:
                existing = self._invitation_repo.get_by_party_and_contact(
                    party.id, contact.id
                )
                if existing is None:
                    raise
                invitation, invitation_created = existing, False

        if not invitation_created:
            invitation.apply_status(InvitationStatus.ATTENDED, now)
            self._invitation_repo.update(invitation)

        logger.info(
            "public_attendance_registered",
            party_id=str(party.id),
            contact_id=str(contact.id),
            invitation_id=str(invitation.id),
            contact_created=contact_created,
            invitation_created=invitation_created,
        )
        return PublicAttendanceResult(
            contact_id=contact.id,
            invitation_id=invitation.id,
            contact_created=contact_created,
            invitation_created=invitation_created,
        )
