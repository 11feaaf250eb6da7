from guestlist.repositories.interfaces import (
    ContactRepository,
    InvitationRepository,
    PartyRepository,
    UserRepository,
)
from guestlist.repositories.sqlite import (
    SQLiteContactRepository,
    SQLiteDatabase,
    SQLiteInvitationRepository,
    SQLitePartyRepository,
    SQLiteUserRepository,
)

__all__ = [
    "ContactRepository",
    "InvitationRepository",
    "PartyRepository",
    "UserRepository",
    "SQLiteContactRepository",
    "SQLiteDatabase",
    "SQLiteInvitationRepository",
    "SQLitePartyRepository",
    "SQLiteUserRepository",
]
