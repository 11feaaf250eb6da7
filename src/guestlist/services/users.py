from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from guestlist.domain.users import User
from guestlist.exceptions import AuthenticationError, ValidationError
from guestlist.logging_config import get_logger
from guestlist.repositories.interfaces import UserRepository
from guestlist.services.interfaces import UserService

logger = get_logger(__name__)


class UserServiceImpl(UserService):
    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def get(self, user_id: UUID) -> User | None:
        return self._user_repo.get(user_id)

    def resolve_from_claims(self, claims: Mapping[str, Any]) -> User:
        """Map verified token claims to a local user.

        Lookup order: the provider subject, then an unlinked user with the
        same email (which gets linked), then a brand new user.
        """
        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Token has no subject")
        email = (claims.get("email") or "").strip() or None
        name = (claims.get("name") or "").strip() or None

        user = self._user_repo.get_by_auth_subject(subject)
        if user is not None:
            return user

        if email:
            user = self._user_repo.get_by_email(email)
            if user is not None and user.auth_subject is None:
                user.auth_subject = subject
                if user.name is None:
                    user.name = name
                self._user_repo.update(user)
                logger.info("user_linked_by_email", user_id=str(user.id))
                return user

        user = User(email=email, name=name, auth_subject=subject)
        self._user_repo.add(user)
        logger.info("user_created", user_id=str(user.id), linked=False)
        return user

    def ensure_user(self, email: str, name: str | None = None) -> User:
        email = (email or "").strip()
        if "@" not in email:
            raise ValidationError("Invalid email", context={"email": email})

        user = self._user_repo.get_by_email(email)
        if user is not None:
            return user
        user = User(email=email, name=name)
        self._user_repo.add(user)
        logger.info("user_created", user_id=str(user.id), linked=False)
        return user
