import pytest

from guestlist.config import DEFAULT_CONSUMER_EMAIL_PROVIDERS
from guestlist.container import Repositories, create_repositories
from guestlist.domain.users import User
from guestlist.repositories.sqlite import SQLiteDatabase
from guestlist.services.company import CompanyGuesser
from guestlist.services.contacts import ContactServiceImpl
from guestlist.services.invitations import InvitationServiceImpl
from guestlist.services.parties import PartyServiceImpl
from guestlist.services.search import FuzzyDomainSearch
from guestlist.services.users import UserServiceImpl


@pytest.fixture
def db() -> SQLiteDatabase:
    database = SQLiteDatabase(":memory:")
    database.initialize()
    return database


@pytest.fixture
def repos(db: SQLiteDatabase) -> Repositories:
    return create_repositories(db)


@pytest.fixture
def company_guesser() -> CompanyGuesser:
    return CompanyGuesser(DEFAULT_CONSUMER_EMAIL_PROVIDERS)


@pytest.fixture
def owner(repos: Repositories) -> User:
    user = User(email="organizer@example.org", name="Olivia Organizer")
    repos.users.add(user)
    return user


@pytest.fixture
def other_user(repos: Repositories) -> User:
    user = User(email="helper@example.org", name="Hal Helper")
    repos.users.add(user)
    return user


@pytest.fixture
def contact_service(
    repos: Repositories, company_guesser: CompanyGuesser
) -> ContactServiceImpl:
    return ContactServiceImpl(
        contact_repo=repos.contacts,
        invitation_repo=repos.invitations,
        user_repo=repos.users,
        company_guesser=company_guesser,
        search_strategy=FuzzyDomainSearch(min_length=2),
        default_page_size=25,
        max_page_size=200,
    )


@pytest.fixture
def party_service(repos: Repositories) -> PartyServiceImpl:
    return PartyServiceImpl(
        party_repo=repos.parties,
        invitation_repo=repos.invitations,
        contact_repo=repos.contacts,
        user_repo=repos.users,
    )


@pytest.fixture
def invitation_service(
    repos: Repositories, company_guesser: CompanyGuesser
) -> InvitationServiceImpl:
    return InvitationServiceImpl(
        invitation_repo=repos.invitations,
        party_repo=repos.parties,
        contact_repo=repos.contacts,
        user_repo=repos.users,
        company_guesser=company_guesser,
    )


@pytest.fixture
def user_service(repos: Repositories) -> UserServiceImpl:
    return UserServiceImpl(repos.users)
