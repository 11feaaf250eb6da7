"""Tests for SQLite repository implementations."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from guestlist.container import Repositories
from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.users import User
from guestlist.domain.value_objects import ContactSource, InvitationStatus, PartyStatus
from guestlist.exceptions import IntegrityError


def _add_contact(repos: Repositories, owner: User, first: str, **kwargs) -> Contact:
    contact = Contact(first_name=first, created_by=owner.id, **kwargs)
    repos.contacts.add(contact)
    return contact


def _add_party(repos: Repositories, owner: User, name: str = "Launch") -> Party:
    party = Party(name=name, created_by=owner.id)
    repos.parties.add(party)
    return party


class TestSQLiteUserRepository:
    def test_add_and_get(self, repos: Repositories) -> None:
        user = User(email="Ann@Example.org", name="Ann", auth_subject="sub-1")
        repos.users.add(user)

        retrieved = repos.users.get(user.id)

        assert retrieved is not None
        assert retrieved.email == "Ann@Example.org"
        assert retrieved.auth_subject == "sub-1"

    def test_get_by_email_is_case_insensitive(self, repos: Repositories) -> None:
        user = User(email="Ann@Example.org")
        repos.users.add(user)

        assert repos.users.get_by_email("ann@example.ORG").id == user.id

    def test_get_by_auth_subject(self, repos: Repositories) -> None:
        user = User(auth_subject="provider|42")
        repos.users.add(user)

        assert repos.users.get_by_auth_subject("provider|42").id == user.id
        assert repos.users.get_by_auth_subject("provider|43") is None

    def test_duplicate_subject_raises_integrity_error(
        self, repos: Repositories
    ) -> None:
        repos.users.add(User(auth_subject="same"))

        with pytest.raises(IntegrityError):
            repos.users.add(User(auth_subject="same"))

    def test_update_links_subject(self, repos: Repositories) -> None:
        user = User(email="ann@example.org")
        repos.users.add(user)

        user.auth_subject = "sub-9"
        repos.users.update(user)

        assert repos.users.get(user.id).auth_subject == "sub-9"


class TestSQLiteContactRepository:
    def test_round_trip_preserves_fields(
        self, repos: Repositories, owner: User
    ) -> None:
        contact = _add_contact(
            repos,
            owner,
            "Ada",
            last_name="Lovelace",
            email="ada@engines.io",
            phone="555-0100",
            company="Engines",
            position="Analyst",
            source=ContactSource.CSV,
            tags=["vip", "speaker"],
            notes="Met at the expo",
        )

        retrieved = repos.contacts.get(contact.id)

        assert retrieved == contact

    def test_empty_tags_round_trip(self, repos: Repositories, owner: User) -> None:
        contact = _add_contact(repos, owner, "Ada")

        assert repos.contacts.get(contact.id).tags == []

    def test_get_by_email(self, repos: Repositories, owner: User) -> None:
        contact = _add_contact(repos, owner, "Ada", email="ada@engines.io")

        assert repos.contacts.get_by_email("ada@engines.io").id == contact.id
        assert repos.contacts.get_by_email("nobody@engines.io") is None

    def test_list_by_company_and_creator(
        self, repos: Repositories, owner: User, other_user: User
    ) -> None:
        a = _add_contact(repos, owner, "A", company="Acme")
        _add_contact(repos, owner, "B", company="Globex")
        c = _add_contact(repos, other_user, "C", company="Acme")

        assert [x.id for x in repos.contacts.list_by_company("Acme")] == [a.id, c.id]
        assert [x.id for x in repos.contacts.list_by_created_by(other_user.id)] == [
            c.id
        ]

    def test_search_first_name_matches_token_prefixes(
        self, repos: Repositories, owner: User
    ) -> None:
        mary_ann = _add_contact(repos, owner, "Mary Ann")
        annie = _add_contact(repos, owner, "Annie")
        _add_contact(repos, owner, "Joanna")

        found = {c.id for c in repos.contacts.search_first_name("ANN")}

        assert found == {mary_ann.id, annie.id}

    def test_search_requires_every_token(
        self, repos: Repositories, owner: User
    ) -> None:
        mary_ann = _add_contact(repos, owner, "Mary Ann")
        _add_contact(repos, owner, "Mary")

        found = [c.id for c in repos.contacts.search_first_name("mary ann")]

        assert found == [mary_ann.id]

    def test_search_with_company_filter(
        self, repos: Repositories, owner: User
    ) -> None:
        acme = _add_contact(repos, owner, "Sam", company="Acme")
        _add_contact(repos, owner, "Sam", company="Globex")

        found = [c.id for c in repos.contacts.search_first_name("sam", "Acme")]

        assert found == [acme.id]

    def test_search_escapes_like_wildcards(
        self, repos: Repositories, owner: User
    ) -> None:
        _add_contact(repos, owner, "Sam")

        assert list(repos.contacts.search_first_name("%")) == []
        assert list(repos.contacts.search_first_name("_am")) == []

    def test_projections(
        self, repos: Repositories, owner: User, other_user: User
    ) -> None:
        _add_contact(repos, owner, "A", company="Acme")
        _add_contact(repos, owner, "B", company="Acme", source=ContactSource.CSV)
        _add_contact(repos, other_user, "C")

        assert sorted(repos.contacts.list_companies()) == ["Acme"]
        assert sorted(repos.contacts.list_sources()) == ["csv", "manual"]
        assert set(repos.contacts.list_creator_ids()) == {owner.id, other_user.id}

    def test_update_and_delete(self, repos: Repositories, owner: User) -> None:
        contact = _add_contact(repos, owner, "Ada")

        contact.company = "Engines"
        contact.tags = ["vip"]
        repos.contacts.update(contact)
        assert repos.contacts.get(contact.id).company == "Engines"
        assert repos.contacts.get(contact.id).tags == ["vip"]

        repos.contacts.delete(contact.id)
        assert repos.contacts.get(contact.id) is None


class TestSQLitePartyRepository:
    def test_round_trip(self, repos: Repositories, owner: User) -> None:
        party = Party(
            name="Launch",
            created_by=owner.id,
            description="Product launch",
            date=datetime(2025, 6, 1, 18, 0, tzinfo=UTC),
            location="Rooftop",
            status=PartyStatus.ACTIVE,
        )
        repos.parties.add(party)

        assert repos.parties.get(party.id) == party

    def test_list_all_newest_first(self, repos: Repositories, owner: User) -> None:
        older = Party(name="Older", created_by=owner.id)
        older.created_at = datetime(2025, 1, 1, tzinfo=UTC)
        newer = Party(name="Newer", created_by=owner.id)
        newer.created_at = older.created_at + timedelta(days=1)
        repos.parties.add(older)
        repos.parties.add(newer)

        assert [p.name for p in repos.parties.list_all()] == ["Newer", "Older"]

    def test_list_by_created_by(
        self, repos: Repositories, owner: User, other_user: User
    ) -> None:
        mine = _add_party(repos, owner)
        _add_party(repos, other_user)

        assert [p.id for p in repos.parties.list_by_created_by(owner.id)] == [mine.id]

    def test_update(self, repos: Repositories, owner: User) -> None:
        party = _add_party(repos, owner)

        party.set_status(PartyStatus.COMPLETED)
        repos.parties.update(party)

        assert repos.parties.get(party.id).status == PartyStatus.COMPLETED


class TestSQLiteInvitationRepository:
    def test_round_trip(self, repos: Repositories, owner: User) -> None:
        party = _add_party(repos, owner)
        contact = _add_contact(repos, owner, "Ada")
        invitation = Invitation(
            party_id=party.id, contact_id=contact.id, invited_by=owner.id
        )
        invitation.apply_status(InvitationStatus.ACCEPTED)
        repos.invitations.add(invitation)

        assert repos.invitations.get(invitation.id) == invitation

    def test_pair_is_unique(self, repos: Repositories, owner: User) -> None:
        party = _add_party(repos, owner)
        contact = _add_contact(repos, owner, "Ada")
        repos.invitations.add(
            Invitation(party_id=party.id, contact_id=contact.id, invited_by=owner.id)
        )

        with pytest.raises(IntegrityError):
            repos.invitations.add(
                Invitation(
                    party_id=party.id, contact_id=contact.id, invited_by=owner.id
                )
            )

        # Connection is usable after the rollback
        assert len(list(repos.invitations.list_by_party(party.id))) == 1

    def test_unknown_party_violates_foreign_key(
        self, repos: Repositories, owner: User
    ) -> None:
        contact = _add_contact(repos, owner, "Ada")

        with pytest.raises(IntegrityError):
            repos.invitations.add(
                Invitation(party_id=uuid4(), contact_id=contact.id, invited_by=owner.id)
            )

    def test_lookups(self, repos: Repositories, owner: User) -> None:
        party = _add_party(repos, owner)
        other_party = _add_party(repos, owner, "Other")
        contact = _add_contact(repos, owner, "Ada")
        first = Invitation(party_id=party.id, contact_id=contact.id, invited_by=owner.id)
        second = Invitation(
            party_id=other_party.id, contact_id=contact.id, invited_by=owner.id
        )
        repos.invitations.add(first)
        repos.invitations.add(second)

        assert repos.invitations.get_by_party_and_contact(party.id, contact.id) == first
        assert [i.id for i in repos.invitations.list_by_party(party.id)] == [first.id]
        assert [i.id for i in repos.invitations.list_by_contact(contact.id)] == [
            first.id,
            second.id,
        ]

    def test_delete_by_contact_returns_count(
        self, repos: Repositories, owner: User
    ) -> None:
        contact = _add_contact(repos, owner, "Ada")
        for name in ("One", "Two"):
            party = _add_party(repos, owner, name)
            repos.invitations.add(
                Invitation(party_id=party.id, contact_id=contact.id, invited_by=owner.id)
            )

        assert repos.invitations.delete_by_contact(contact.id) == 2
        assert list(repos.invitations.list_by_contact(contact.id)) == []
