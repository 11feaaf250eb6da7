"""Errors raised by Guestlist services and repositories.

Each error carries a stable ``error_code`` and the HTTP ``status_code`` the
API answers with; ``to_dict`` is the JSON error body.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID


class GuestlistError(Exception):
    """Root of the hierarchy; ``context`` holds the ids and values involved."""

    error_code: str = "GUESTLIST_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """JSON body for API error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Authentication / Authorization Errors
# =============================================================================


class AuthenticationError(GuestlistError):
    """Raised when an operation requires a caller identity and none is present."""

    error_code = "AUTHENTICATION_ERROR"
    status_code = 401

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotAuthorizedError(GuestlistError):
    """Raised when the caller does not own the resource being modified."""

    error_code = "NOT_AUTHORIZED"
    status_code = 403

    def __init__(self, resource: str, resource_id: UUID | str) -> None:
        super().__init__(
            f"Not authorized to modify {resource} {resource_id}",
            context={"resource": resource, "resource_id": str(resource_id)},
        )


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(GuestlistError):
    """Base exception for references that do not resolve."""

    error_code = "NOT_FOUND"
    status_code = 404


class ContactNotFoundError(NotFoundError):
    error_code = "CONTACT_NOT_FOUND"

    def __init__(self, contact_id: UUID | str) -> None:
        super().__init__(
            f"Contact not found: {contact_id}",
            context={"contact_id": str(contact_id)},
        )


class PartyNotFoundError(NotFoundError):
    error_code = "PARTY_NOT_FOUND"

    def __init__(self, party_id: UUID | str) -> None:
        super().__init__(
            f"Party not found: {party_id}",
            context={"party_id": str(party_id)},
        )


class InvitationNotFoundError(NotFoundError):
    error_code = "INVITATION_NOT_FOUND"

    def __init__(self, invitation_id: UUID | str) -> None:
        super().__init__(
            f"Invitation not found: {invitation_id}",
            context={"invitation_id": str(invitation_id)},
        )


# =============================================================================
# Conflict Errors
# =============================================================================


class DuplicateEmailError(GuestlistError):
    """Raised when a contact is created with an email another contact has."""

    error_code = "DUPLICATE_EMAIL"
    status_code = 409

    def __init__(self, email: str) -> None:
        super().__init__(
            f'A contact with email "{email}" already exists',
            context={"email": email},
        )


class DuplicateInvitationError(GuestlistError):
    """Raised when a contact is already invited to a party."""

    error_code = "DUPLICATE_INVITATION"
    status_code = 409

    def __init__(self, party_id: UUID | str, contact_id: UUID | str) -> None:
        super().__init__(
            "Contact already invited to this party",
            context={"party_id": str(party_id), "contact_id": str(contact_id)},
        )


class BatchOperationError(GuestlistError):
    """Raised when some rows of a batch operation failed.

    Rows that succeeded stay applied; there is no rollback.
    """

    error_code = "BATCH_PARTIAL_FAILURE"
    status_code = 409

    def __init__(
        self, operation: str, failed_ids: Sequence[UUID | str], applied: int
    ) -> None:
        super().__init__(
            f"Failed to {operation} some items",
            context={
                "operation": operation,
                "failed_ids": [str(i) for i in failed_ids],
                "applied": applied,
            },
        )
        self.failed_ids = list(failed_ids)
        self.applied = applied


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(GuestlistError):
    """The storage backend failed."""

    error_code = "DATABASE_ERROR"
    status_code = 500


class IntegrityError(DatabaseError):
    """A UNIQUE or FOREIGN KEY constraint rejected a write."""

    error_code = "DATABASE_INTEGRITY_ERROR"
    status_code = 409


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GuestlistError):
    """Input was rejected before reaching storage."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidStatusError(ValidationError):
    """Raised when a status value is not one of the recognized values."""

    error_code = "INVALID_STATUS"

    def __init__(self, kind: str, value: str) -> None:
        super().__init__(
            f"Invalid {kind} status: {value}",
            context={"kind": kind, "value": value},
        )


class InvalidCursorError(ValidationError):
    """Raised when a pagination cursor cannot be decoded."""

    error_code = "INVALID_CURSOR"

    def __init__(self, cursor: str) -> None:
        super().__init__(f"Invalid cursor: {cursor}", context={"cursor": cursor})
