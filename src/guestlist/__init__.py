from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.users import User
from guestlist.domain.value_objects import (
    ContactSource,
    InvitationStatus,
    PartyStatus,
)

__all__ = [
    "Contact",
    "ContactSource",
    "Invitation",
    "InvitationStatus",
    "Party",
    "PartyStatus",
    "User",
]

__version__ = "0.1.0"
