from enum import Enum

from guestlist.exceptions import InvalidStatusError, ValidationError


class PartyStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: "str | PartyStatus") -> "PartyStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatusError("party", str(value)) from None


class InvitationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    MAYBE = "maybe"
    ATTENDED = "attended"

    @classmethod
    def parse(cls, value: "str | InvitationStatus") -> "InvitationStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatusError("invitation", str(value)) from None

    @property
    def is_response(self) -> bool:
        """True for statuses that record a reply (or a check-in) from the guest."""
        return self in RESPONSE_STATUSES


RESPONSE_STATUSES = frozenset(
    {
        InvitationStatus.ACCEPTED,
        InvitationStatus.DECLINED,
        InvitationStatus.MAYBE,
        InvitationStatus.ATTENDED,
    }
)


class ContactSource(str, Enum):
    MANUAL = "manual"
    CSV = "csv"
    LINKEDIN = "linkedin"
    PUBLIC = "public"


class ContactSortField(str, Enum):
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    COMPANY = "company"
    CREATED_TIME = "createdTime"

    @classmethod
    def parse(cls, value: "str | ContactSortField | None") -> "ContactSortField":
        if value is None:
            return cls.CREATED_TIME
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Invalid sort field: {value}", context={"sort_by": str(value)}
            ) from None


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: "str | SortOrder | None") -> "SortOrder":
        if value is None:
            return cls.DESC
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Invalid sort order: {value}", context={"order": str(value)}
            ) from None
