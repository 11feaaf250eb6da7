from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from guestlist.domain.value_objects import PartyStatus


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Party:
    name: str
    created_by: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    date: datetime | None = None
    location: str | None = None
    status: PartyStatus = PartyStatus.PLANNING
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.created_by == user_id

    def set_status(self, status: PartyStatus) -> None:
        self.status = status
        self.updated_at = _utc_now()

    def touch(self) -> None:
        self.updated_at = _utc_now()
