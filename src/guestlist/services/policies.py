"""Caller and ownership checks shared by the services."""

from uuid import UUID

from guestlist.domain.parties import Party
from guestlist.exceptions import AuthenticationError, NotAuthorizedError


def require_caller(caller_id: UUID | None) -> UUID:
    if caller_id is None:
        raise AuthenticationError()
    return caller_id


def require_party_owner(party: Party, caller_id: UUID) -> None:
    """Only the creator of a party may modify it."""
    if not party.is_owned_by(caller_id):
        raise NotAuthorizedError("party", party.id)
