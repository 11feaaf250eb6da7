"""Dependency injection container for Guestlist.

Provides centralized dependency management using a simple container pattern.
The database is chosen by configuration, repositories are built for that
backend, and services are wired on first access.

Usage:
    from guestlist.container import get_container

    container = get_container()
    contacts = container.contact_service
"""

from dataclasses import dataclass
from functools import cached_property, lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Union

from guestlist.config import DatabaseType, Settings, get_settings
from guestlist.logging_config import get_logger
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
from guestlist.services.company import CompanyGuesser
from guestlist.services.search import FuzzyDomainSearch

if TYPE_CHECKING:
    from guestlist.repositories.postgres import PostgresDatabase
    from guestlist.services.contacts import ContactServiceImpl
    from guestlist.services.invitations import InvitationServiceImpl
    from guestlist.services.parties import PartyServiceImpl
    from guestlist.services.users import UserServiceImpl

    Database = Union[SQLiteDatabase, PostgresDatabase]

logger = get_logger(__name__)


@dataclass
class Repositories:
    users: UserRepository
    contacts: ContactRepository
    parties: PartyRepository
    invitations: InvitationRepository


def create_repositories(database: "Database") -> Repositories:
    """Build the repository set matching the database backend."""
    if isinstance(database, SQLiteDatabase):
        return Repositories(
            users=SQLiteUserRepository(database),
            contacts=SQLiteContactRepository(database),
            parties=SQLitePartyRepository(database),
            invitations=SQLiteInvitationRepository(database),
        )

    from guestlist.repositories.postgres import (
        PostgresContactRepository,
        PostgresInvitationRepository,
        PostgresPartyRepository,
        PostgresUserRepository,
    )

    return Repositories(
        users=PostgresUserRepository(database),
        contacts=PostgresContactRepository(database),
        parties=PostgresPartyRepository(database),
        invitations=PostgresInvitationRepository(database),
    )


def create_company_guesser(settings: Settings) -> CompanyGuesser:
    return CompanyGuesser(settings.consumer_email_providers)


def create_contact_service(
    repos: Repositories, settings: Settings
) -> "ContactServiceImpl":
    from guestlist.services.contacts import ContactServiceImpl

    return ContactServiceImpl(
        contact_repo=repos.contacts,
        invitation_repo=repos.invitations,
        user_repo=repos.users,
        company_guesser=create_company_guesser(settings),
        search_strategy=FuzzyDomainSearch(settings.fuzzy_search_min_length),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def create_party_service(repos: Repositories) -> "PartyServiceImpl":
    from guestlist.services.parties import PartyServiceImpl

    return PartyServiceImpl(
        party_repo=repos.parties,
        invitation_repo=repos.invitations,
        contact_repo=repos.contacts,
        user_repo=repos.users,
    )


def create_invitation_service(
    repos: Repositories, settings: Settings
) -> "InvitationServiceImpl":
    from guestlist.services.invitations import InvitationServiceImpl

    return InvitationServiceImpl(
        invitation_repo=repos.invitations,
        party_repo=repos.parties,
        contact_repo=repos.contacts,
        user_repo=repos.users,
        company_guesser=create_company_guesser(settings),
    )


def create_user_service(repos: Repositories) -> "UserServiceImpl":
    from guestlist.services.users import UserServiceImpl

    return UserServiceImpl(repos.users)


class Container:
    """Dependency injection container.

    Provides lazy-loaded access to the database, repositories and services.
    Everything is instantiated on first access and cached for reuse.

    The container can be configured with custom settings for testing:

        test_settings = Settings(database_type=DatabaseType.SQLITE, sqlite_path=":memory:")
        container = Container(settings=test_settings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            database_type=self._settings.database_type.value,
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        """Get application settings."""
        return self._settings

    @cached_property
    def database(self) -> "Database":
        """Get the database, initialized on first access.

        - SQLite for development/testing
        - PostgreSQL for production
        """
        if self._settings.database_type == DatabaseType.POSTGRES:
            return self._create_postgres_database()
        return self._create_sqlite_database()

    def _create_sqlite_database(self) -> SQLiteDatabase:
        db_path = str(self._settings.sqlite_path)
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        logger.info("initializing_sqlite_database", path=db_path)

        db = SQLiteDatabase(db_path, check_same_thread=False)
        db.initialize()
        return db

    def _create_postgres_database(self) -> "PostgresDatabase":
        from guestlist.repositories.postgres import PostgresDatabase

        url = self._settings.effective_database_url
        if not url:
            raise ValueError("database_url must be set when database_type is postgres")

        logger.info(
            "initializing_postgres_database",
            # Credentials stay out of the log
            host=url.split("@")[-1].split("/")[0] if "@" in url else "localhost",
        )

        db = PostgresDatabase(url)
        db.initialize()
        return db

    @cached_property
    def repositories(self) -> Repositories:
        return create_repositories(self.database)

    @cached_property
    def contact_service(self) -> "ContactServiceImpl":
        """Get the contact service for contact management and search."""
        return create_contact_service(self.repositories, self._settings)

    @cached_property
    def user_service(self) -> "UserServiceImpl":
        """Get the user service for account linking."""
        return create_user_service(self.repositories)

    def close(self) -> None:
        """Close the database connection if one was opened."""
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the global container singleton.

    The container is created lazily on first access using default settings.
    For testing, create a Container directly with custom settings instead
    of using this function.
    """
    return Container()


def reset_container() -> None:
    """Close and forget the global container."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()
