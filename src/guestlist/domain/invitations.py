from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from guestlist.domain.value_objects import InvitationStatus
from guestlist.exceptions import ValidationError


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Invitation:
    """A single contact's invitation to a single party.

    ``sent_at`` and ``responded_at`` are sticky: once stamped they are never
    overwritten, regardless of later status changes. Every status change goes
    through :meth:`apply_status` so the rule holds on all write paths.
    """

    party_id: UUID
    contact_id: UUID
    invited_by: UUID
    id: UUID = field(default_factory=uuid4)
    status: InvitationStatus = InvitationStatus.PENDING
    sent_at: datetime | None = None
    responded_at: datetime | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def apply_status(
        self, status: InvitationStatus, now: datetime | None = None
    ) -> None:
        """Move to ``status``, stamping first-send and first-response times."""
        now = now or _utc_now()
        self.status = status
        if status == InvitationStatus.SENT and self.sent_at is None:
            self.sent_at = now
        if status.is_response and self.responded_at is None:
            self.responded_at = now
        self.updated_at = now

    def undo_check_in(self, now: datetime | None = None) -> None:
        if self.status != InvitationStatus.ATTENDED:
            raise ValidationError(
                "Only attended invitations can have their check-in undone",
                context={"invitation_id": str(self.id), "status": self.status.value},
            )
        self.status = InvitationStatus.ACCEPTED
        self.updated_at = now or _utc_now()

    @property
    def is_attended(self) -> bool:
        return self.status == InvitationStatus.ATTENDED
