from guestlist.services.company import CompanyGuesser
from guestlist.services.contacts import ContactServiceImpl
from guestlist.services.interfaces import (
    AttendanceStats,
    ContactImportRow,
    ContactService,
    DuplicateRecord,
    ImportResult,
    ImportSummary,
    InvitationService,
    InvitationWithContact,
    InvitationWithParty,
    LinkedInImportRow,
    Page,
    PartyDetails,
    PartyService,
    PublicAttendanceResult,
    PublicParty,
    UserService,
    UserSummary,
)
from guestlist.services.invitations import InvitationServiceImpl
from guestlist.services.parties import PartyServiceImpl
from guestlist.services.search import ContactSearchStrategy, FuzzyDomainSearch
from guestlist.services.users import UserServiceImpl

__all__ = [
    "AttendanceStats",
    "CompanyGuesser",
    "ContactImportRow",
    "ContactSearchStrategy",
    "ContactService",
    "ContactServiceImpl",
    "DuplicateRecord",
    "FuzzyDomainSearch",
    "ImportResult",
    "ImportSummary",
    "InvitationService",
    "InvitationServiceImpl",
    "InvitationWithContact",
    "InvitationWithParty",
    "LinkedInImportRow",
    "Page",
    "PartyDetails",
    "PartyService",
    "PartyServiceImpl",
    "PublicAttendanceResult",
    "PublicParty",
    "UserService",
    "UserServiceImpl",
    "UserSummary",
]
