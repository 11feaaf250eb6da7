"""Bearer token verification for tokens issued by the external auth provider."""

from typing import Annotated, Any
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from guestlist.api.dependencies import get_user_service
from guestlist.config import Settings, get_settings
from guestlist.exceptions import AuthenticationError
from guestlist.logging_config import bind_context, get_logger
from guestlist.services.interfaces import UserService

logger = get_logger(__name__)

_security = HTTPBearer(auto_error=False)


def verify_token(token: str, settings: Settings) -> dict[str, Any]:
    """Decode and verify a provider JWT, returning its claims."""
    try:
        return jwt.decode(
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_algorithm],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options={
                "verify_exp": True,
                "verify_aud": settings.auth_audience is not None,
                "require": ["sub"],
            },
        )
    except jwt.PyJWTError as exc:
        logger.warning("token_rejected", reason=str(exc))
        raise AuthenticationError(f"Invalid authentication token: {exc}") from exc


def get_caller_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_security)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UUID | None:
    """Resolve the calling user, or None when no bearer token was sent.

    Services decide whether an anonymous caller is acceptable.
    """
    if credentials is None:
        return None
    claims = verify_token(credentials.credentials, settings)
    user = user_service.resolve_from_claims(claims)
    bind_context(caller_id=str(user.id))
    return user.id


CallerId = Annotated[UUID | None, Depends(get_caller_id)]
