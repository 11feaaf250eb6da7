from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.users import User
from guestlist.domain.value_objects import (
    RESPONSE_STATUSES,
    ContactSortField,
    ContactSource,
    InvitationStatus,
    PartyStatus,
    SortOrder,
)

__all__ = [
    "Contact",
    "ContactSortField",
    "ContactSource",
    "Invitation",
    "InvitationStatus",
    "Party",
    "PartyStatus",
    "RESPONSE_STATUSES",
    "SortOrder",
    "User",
]
