from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from guestlist.domain.parties import Party
from guestlist.domain.value_objects import PartyStatus
from guestlist.exceptions import (
    BatchOperationError,
    PartyNotFoundError,
    ValidationError,
)
from guestlist.logging_config import get_logger
from guestlist.repositories.interfaces import (
    ContactRepository,
    InvitationRepository,
    PartyRepository,
    UserRepository,
)
from guestlist.services.interfaces import (
    InvitationWithContact,
    PartyDetails,
    PartyService,
    PublicParty,
    UserSummary,
)
from guestlist.services.policies import require_caller, require_party_owner

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "date", "location", "status"})


class PartyServiceImpl(PartyService):
    def __init__(
        self,
        party_repo: PartyRepository,
        invitation_repo: InvitationRepository,
        contact_repo: ContactRepository,
        user_repo: UserRepository,
    ) -> None:
        self._party_repo = party_repo
        self._invitation_repo = invitation_repo
        self._contact_repo = contact_repo
        self._user_repo = user_repo

    def list_parties(self, caller_id: UUID | None) -> list[Party]:
        require_caller(caller_id)
        return list(self._party_repo.list_all())

    def create(
        self,
        caller_id: UUID | None,
        name: str,
        description: str | None = None,
        date: datetime | None = None,
        location: str | None = None,
        status: PartyStatus | str | None = None,
    ) -> Party:
        caller = require_caller(caller_id)
        party = Party(
            name=self._validated_name(name),
            created_by=caller,
            description=description,
            date=date,
            location=location,
            status=PartyStatus.parse(status) if status else PartyStatus.PLANNING,
        )
        self._party_repo.add(party)
        logger.info("party_created", party_id=str(party.id), status=party.status.value)
        return party

    @staticmethod
    def _validated_name(name: str | None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Party name is required")
        return cleaned

    def _get_owned(self, party_id: UUID, caller: UUID) -> Party:
        party = self._party_repo.get(party_id)
        if party is None:
            raise PartyNotFoundError(party_id)
        require_party_owner(party, caller)
        return party

    def update(
        self, caller_id: UUID | None, party_id: UUID, changes: Mapping[str, Any]
    ) -> Party:
        caller = require_caller(caller_id)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown party fields", context={"fields": sorted(unknown)}
            )

        party = self._get_owned(party_id, caller)
        if "name" in changes:
            party.name = self._validated_name(changes["name"])
        if "description" in changes:
            party.description = changes["description"]
        if "date" in changes:
            party.date = changes["date"]
        if "location" in changes:
            party.location = changes["location"]
        if "status" in changes:
            party.status = PartyStatus.parse(changes["status"])

        party.touch()
        self._party_repo.update(party)
        logger.info("party_updated", party_id=str(party.id), fields=sorted(changes))
        return party

    def batch_update_status(
        self,
        caller_id: UUID | None,
        party_ids: Sequence[UUID],
        status: PartyStatus | str,
    ) -> int:
        caller = require_caller(caller_id)
        new_status = PartyStatus.parse(status)

        parties: list[Party] = []
        missing: list[UUID] = []
        for party_id in dict.fromkeys(party_ids):
            party = self._party_repo.get(party_id)
            if party is None:
                missing.append(party_id)
                continue
            require_party_owner(party, caller)
            parties.append(party)

        for party in parties:
            party.set_status(new_status)
            self._party_repo.update(party)

        if missing:
            logger.warning(
                "batch_partial_failure",
                operation="update_party_status",
                failed=len(missing),
                applied=len(parties),
            )
            raise BatchOperationError("update party status", missing, len(parties))
        logger.info(
            "party_status_batch_updated", count=len(parties), status=new_status.value
        )
        return len(parties)

    def get_with_invitations(
        self, caller_id: UUID | None, party_id: UUID
    ) -> PartyDetails:
        require_caller(caller_id)
        party = self._party_repo.get(party_id)
        if party is None:
            raise PartyNotFoundError(party_id)

        users: dict[UUID, UserSummary | None] = {}
        details: list[InvitationWithContact] = []
        for invitation in self._invitation_repo.list_by_party(party_id):
            if invitation.invited_by not in users:
                user = self._user_repo.get(invitation.invited_by)
                users[invitation.invited_by] = (
                    UserSummary.from_user(user) if user else None
                )
            details.append(
                InvitationWithContact(
                    invitation=invitation,
                    contact=self._contact_repo.get(invitation.contact_id),
                    invited_by=users[invitation.invited_by],
                )
            )
        return PartyDetails(party=party, invitations=details)

    def get_public(self, party_id: UUID) -> PublicParty:
        party = self._party_repo.get(party_id)
        if party is None:
            raise PartyNotFoundError(party_id)
        return PublicParty(
            id=party.id,
            name=party.name,
            description=party.description,
            date=party.date,
            location=party.location,
            status=party.status,
        )
