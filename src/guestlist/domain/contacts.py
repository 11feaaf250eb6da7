from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from guestlist.domain.value_objects import ContactSource


def _utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    seen: list[str] = []
    for tag in tags or []:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


@dataclass
class Contact:
    first_name: str
    created_by: UUID
    id: UUID = field(default_factory=uuid4)
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    source: ContactSource = ContactSource.MANUAL
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.tags = normalize_tags(self.tags)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def email_domain(self) -> str | None:
        if not self.email or "@" not in self.email:
            return None
        return self.email.split("@")[1].lower()

    def touch(self) -> None:
        self.updated_at = _utc_now()
