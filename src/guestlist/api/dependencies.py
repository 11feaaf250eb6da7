"""FastAPI dependency providers.

``get_db`` is the single seam tests override (``app.dependency_overrides``)
to run the API against an in-memory database; every repository and service
is built from whatever it returns.
"""

from typing import Annotated, Union

from fastapi import Depends

from guestlist.config import Settings, get_settings
from guestlist.container import (
    Repositories,
    create_contact_service,
    create_invitation_service,
    create_party_service,
    create_repositories,
    create_user_service,
    get_container,
)
from guestlist.repositories.postgres import PostgresDatabase
from guestlist.repositories.sqlite import SQLiteDatabase
from guestlist.services.interfaces import (
    ContactService,
    InvitationService,
    PartyService,
    UserService,
)

Database = Union[SQLiteDatabase, PostgresDatabase]


def get_db() -> Database:
    """Get the configured database from the container."""
    return get_container().database


def get_repositories(db: Annotated[Database, Depends(get_db)]) -> Repositories:
    return create_repositories(db)


def get_contact_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ContactService:
    return create_contact_service(repos, settings)


def get_party_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
) -> PartyService:
    return create_party_service(repos)


def get_invitation_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> InvitationService:
    return create_invitation_service(repos, settings)


def get_user_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
) -> UserService:
    return create_user_service(repos)
