from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class User:
    """An account known to the external auth provider.

    ``auth_subject`` is the provider's stable subject claim; it is empty for
    users created locally (for example by the CLI importer) until they first
    sign in and are linked by email.
    """

    email: str | None = None
    name: str | None = None
    auth_subject: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def display_name(self) -> str:
        return self.name or self.email or f"User {self.id}"
