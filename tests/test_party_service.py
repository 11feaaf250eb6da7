"""Tests for PartyServiceImpl."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from guestlist.container import Repositories
from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.users import User
from guestlist.domain.value_objects import PartyStatus
from guestlist.exceptions import (
    AuthenticationError,
    BatchOperationError,
    InvalidStatusError,
    NotAuthorizedError,
    PartyNotFoundError,
    ValidationError,
)
from guestlist.services.parties import PartyServiceImpl


class TestCreateParty:
    def test_defaults_to_planning(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        party = party_service.create(owner.id, "  Launch  ")

        assert party.name == "Launch"
        assert party.status == PartyStatus.PLANNING
        assert party.created_by == owner.id

    def test_accepts_status_string(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        party = party_service.create(owner.id, "Launch", status="active")

        assert party.status == PartyStatus.ACTIVE

    def test_rejects_unknown_status(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        with pytest.raises(InvalidStatusError):
            party_service.create(owner.id, "Launch", status="postponed")

    def test_rejects_blank_name(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        with pytest.raises(ValidationError):
            party_service.create(owner.id, " ")

    def test_requires_caller(self, party_service: PartyServiceImpl) -> None:
        with pytest.raises(AuthenticationError):
            party_service.create(None, "Launch")


class TestListParties:
    def test_lists_all_parties_newest_first(
        self, party_service: PartyServiceImpl, owner: User, other_user: User
    ) -> None:
        first = party_service.create(owner.id, "First")
        second = party_service.create(other_user.id, "Second")

        parties = party_service.list_parties(owner.id)

        assert [p.id for p in parties] == [second.id, first.id]


class TestUpdateParty:
    def test_owner_can_update(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        party = party_service.create(owner.id, "Launch")
        when = datetime(2025, 6, 1, 19, 0, tzinfo=UTC)

        updated = party_service.update(
            owner.id, party.id, {"location": "Rooftop", "date": when, "status": "active"}
        )

        assert updated.location == "Rooftop"
        assert updated.date == when
        assert updated.status == PartyStatus.ACTIVE

    def test_non_owner_is_rejected(
        self, party_service: PartyServiceImpl, owner: User, other_user: User
    ) -> None:
        party = party_service.create(owner.id, "Launch")

        with pytest.raises(NotAuthorizedError) as exc_info:
            party_service.update(other_user.id, party.id, {"name": "Hijacked"})

        assert exc_info.value.status_code == 403
        assert party_service.get_public(party.id).name == "Launch"

    def test_missing_party(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        with pytest.raises(PartyNotFoundError):
            party_service.update(owner.id, uuid4(), {"name": "X"})

    def test_unknown_field(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        party = party_service.create(owner.id, "Launch")

        with pytest.raises(ValidationError):
            party_service.update(owner.id, party.id, {"created_by": "someone"})


class TestBatchUpdateStatus:
    def test_updates_all_owned_parties(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        a = party_service.create(owner.id, "A")
        b = party_service.create(owner.id, "B")

        count = party_service.batch_update_status(owner.id, [a.id, b.id], "completed")

        assert count == 2
        statuses = {p.status for p in party_service.list_parties(owner.id)}
        assert statuses == {PartyStatus.COMPLETED}

    def test_foreign_party_aborts_whole_batch(
        self, party_service: PartyServiceImpl, owner: User, other_user: User
    ) -> None:
        mine = party_service.create(owner.id, "Mine")
        theirs = party_service.create(other_user.id, "Theirs")

        with pytest.raises(NotAuthorizedError):
            party_service.batch_update_status(
                owner.id, [mine.id, theirs.id], PartyStatus.CANCELLED
            )

        assert party_service.get_public(mine.id).status == PartyStatus.PLANNING
        assert party_service.get_public(theirs.id).status == PartyStatus.PLANNING

    def test_missing_party_keeps_applied_rows(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        mine = party_service.create(owner.id, "Mine")
        missing = uuid4()

        with pytest.raises(BatchOperationError) as exc_info:
            party_service.batch_update_status(owner.id, [mine.id, missing], "active")

        assert exc_info.value.failed_ids == [missing]
        assert exc_info.value.applied == 1
        assert party_service.get_public(mine.id).status == PartyStatus.ACTIVE


class TestPartyDetails:
    def test_joins_contacts_and_inviters(
        self,
        party_service: PartyServiceImpl,
        repos: Repositories,
        owner: User,
        other_user: User,
    ) -> None:
        party = party_service.create(owner.id, "Launch")
        ada = Contact(first_name="Ada", created_by=owner.id)
        bob = Contact(first_name="Bob", created_by=owner.id)
        repos.contacts.add(ada)
        repos.contacts.add(bob)
        repos.invitations.add(
            Invitation(party_id=party.id, contact_id=ada.id, invited_by=owner.id)
        )
        repos.invitations.add(
            Invitation(party_id=party.id, contact_id=bob.id, invited_by=other_user.id)
        )

        details = party_service.get_with_invitations(owner.id, party.id)

        assert details.party.id == party.id
        assert [i.contact.first_name for i in details.invitations] == ["Ada", "Bob"]
        assert [i.invited_by.name for i in details.invitations] == [
            "Olivia Organizer",
            "Hal Helper",
        ]

    def test_missing_party(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        with pytest.raises(PartyNotFoundError):
            party_service.get_with_invitations(owner.id, uuid4())


class TestPublicParty:
    def test_public_view_needs_no_caller(
        self, party_service: PartyServiceImpl, owner: User
    ) -> None:
        party = party_service.create(
            owner.id, "Launch", description="Drinks", location="Rooftop"
        )

        public = party_service.get_public(party.id)

        assert public.name == "Launch"
        assert public.location == "Rooftop"
        assert not hasattr(public, "created_by")

    def test_missing_party(self, party_service: PartyServiceImpl) -> None:
        with pytest.raises(PartyNotFoundError):
            party_service.get_public(uuid4())
