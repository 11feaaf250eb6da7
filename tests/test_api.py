"""Tests for FastAPI endpoints."""

from uuid import uuid4

import jwt
import pytest
from httpx import Client

from guestlist.api.app import create_app, get_db
from guestlist.config import DEV_SECRET_KEY
from guestlist.repositories.sqlite import SQLiteDatabase


def _auth(subject: str = "provider|owner", email: str = "owner@example.org") -> dict:
    token = jwt.encode(
        {"sub": subject, "email": email, "name": subject.split("|")[-1].title()},
        DEV_SECRET_KEY,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


OWNER = _auth()
OTHER = _auth("provider|other", "other@example.org")


@pytest.fixture
def test_db() -> SQLiteDatabase:
    """Create an in-memory test database with thread-safety disabled for testing."""
    db = SQLiteDatabase(":memory:", check_same_thread=False)
    db.initialize()
    return db


@pytest.fixture
def test_client(test_db: SQLiteDatabase) -> Client:
    """Create a test client with the test database."""
    from starlette.testclient import TestClient

    app = create_app()

    def override_get_db() -> SQLiteDatabase:
        return test_db

    app.dependency_overrides[get_db] = override_get_db

    return TestClient(app)


def _create_contact(client: Client, **payload) -> dict:
    payload.setdefault("first_name", "Ada")
    response = client.post("/contacts", json=payload, headers=OWNER)
    assert response.status_code == 201, response.text
    return response.json()


def _create_party(client: Client, headers: dict = OWNER, **payload) -> dict:
    payload.setdefault("name", "Launch")
    response = client.post("/parties", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_check_returns_ok(self, test_client: Client) -> None:
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_echoes_request_id(self, test_client: Client) -> None:
        response = test_client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"


class TestAuthentication:
    def test_missing_token_returns_401(self, test_client: Client) -> None:
        response = test_client.get("/contacts")

        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"

    def test_bad_signature_returns_401(self, test_client: Client) -> None:
        token = jwt.encode({"sub": "x"}, "wrong-secret", algorithm="HS256")

        response = test_client.get(
            "/contacts", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_token_without_subject_returns_401(self, test_client: Client) -> None:
        token = jwt.encode({"email": "x@y.io"}, DEV_SECRET_KEY, algorithm="HS256")

        response = test_client.get(
            "/contacts", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestCurrentUser:
    def test_returns_signed_in_user(self, test_client: Client) -> None:
        response = test_client.get("/me", headers=OWNER)

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "owner@example.org"
        assert body["display_name"] == "Owner"

    def test_same_user_on_repeat_sign_in(self, test_client: Client) -> None:
        first = test_client.get("/me", headers=OWNER).json()
        second = test_client.get("/me", headers=OWNER).json()

        assert first["id"] == second["id"]

    def test_anonymous_caller_gets_null(self, test_client: Client) -> None:
        response = test_client.get("/me")

        assert response.status_code == 200
        assert response.json() is None


class TestContactEndpoints:
    def test_create_contact_returns_201(self, test_client: Client) -> None:
        data = _create_contact(test_client, email="ada@engines.io", tags=["vip"])

        assert data["company"] == "Engines"
        assert data["source"] == "manual"
        assert data["tags"] == ["vip"]
        assert "id" in data

    def test_duplicate_email_returns_409(self, test_client: Client) -> None:
        _create_contact(test_client, email="ada@engines.io")

        response = test_client.post(
            "/contacts",
            json={"first_name": "Other", "email": "ada@engines.io"},
            headers=OWNER,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_EMAIL"

    def test_blank_first_name_returns_422(self, test_client: Client) -> None:
        response = test_client.post(
            "/contacts", json={"first_name": "  "}, headers=OWNER
        )

        assert response.status_code == 422

    def test_list_paginates(self, test_client: Client) -> None:
        for name in ("A", "B", "C"):
            _create_contact(test_client, first_name=name)

        first = test_client.get(
            "/contacts",
            params={"num_items": 2, "sort_by": "firstName", "order": "asc"},
            headers=OWNER,
        ).json()
        second = test_client.get(
            "/contacts",
            params={
                "num_items": 2,
                "sort_by": "firstName",
                "order": "asc",
                "cursor": first["continue_cursor"],
            },
            headers=OWNER,
        ).json()

        assert [c["first_name"] for c in first["items"]] == ["A", "B"]
        assert first["is_done"] is False
        assert [c["first_name"] for c in second["items"]] == ["C"]
        assert second["is_done"] is True
        assert second["continue_cursor"] is None

    def test_invalid_sort_field_returns_422(self, test_client: Client) -> None:
        response = test_client.get(
            "/contacts", params={"sort_by": "nickname"}, headers=OWNER
        )

        assert response.status_code == 422

    def test_invalid_cursor_returns_422(self, test_client: Client) -> None:
        response = test_client.get(
            "/contacts", params={"cursor": "!!!"}, headers=OWNER
        )

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_CURSOR"

    def test_search_falls_back_to_domain(self, test_client: Client) -> None:
        _create_contact(test_client, first_name="Bob", email="bob@acme.io")

        response = test_client.get(
            "/contacts", params={"search": "acme"}, headers=OWNER
        )

        assert [c["first_name"] for c in response.json()["items"]] == ["Bob"]

    def test_get_update_delete(self, test_client: Client) -> None:
        contact = _create_contact(test_client)

        fetched = test_client.get(f"/contacts/{contact['id']}", headers=OWNER)
        patched = test_client.patch(
            f"/contacts/{contact['id']}",
            json={"position": "CTO"},
            headers=OWNER,
        )
        deleted = test_client.delete(f"/contacts/{contact['id']}", headers=OWNER)
        missing = test_client.get(f"/contacts/{contact['id']}", headers=OWNER)

        assert fetched.status_code == 200
        assert patched.json()["position"] == "CTO"
        assert patched.json()["first_name"] == "Ada"
        assert deleted.status_code == 204
        assert missing.status_code == 404
        assert missing.json()["error"] == "CONTACT_NOT_FOUND"

    def test_batch_delete_partial_failure(self, test_client: Client) -> None:
        contact = _create_contact(test_client)

        response = test_client.post(
            "/contacts/batch-delete",
            json={"ids": [contact["id"], str(uuid4())]},
            headers=OWNER,
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "BATCH_PARTIAL_FAILURE"
        assert body["context"]["applied"] == 1

    def test_projections(self, test_client: Client) -> None:
        _create_contact(test_client, email="ada@engines.io")
        _create_contact(test_client, first_name="Bo", company="Acme")

        companies = test_client.get("/contacts/companies", headers=OWNER).json()
        sources = test_client.get("/contacts/sources", headers=OWNER).json()
        creators = test_client.get("/contacts/creators", headers=OWNER).json()
        suggestion = test_client.get(
            "/contacts/suggest-company",
            params={"email": "x@globex.com"},
            headers=OWNER,
        ).json()

        assert companies == ["Acme", "Engines"]
        assert sources == ["manual"]
        assert [c["name"] for c in creators] == ["Owner"]
        assert suggestion == {"email": "x@globex.com", "company": "Globex"}


class TestImportEndpoints:
    def test_import_rows(self, test_client: Client) -> None:
        response = test_client.post(
            "/contacts/import/csv",
            json={
                "rows": [
                    {"first_name": "Ada", "email": "ada@engines.io"},
                    {"first_name": "Dup", "email": "ada@engines.io"},
                ]
            },
            headers=OWNER,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["summary"] == {"total": 2, "imported": 1, "skipped": 1}
        assert body["duplicates"][0]["reason"] == "Email already exists"

    def test_import_linkedin_rows(self, test_client: Client) -> None:
        response = test_client.post(
            "/contacts/import/linkedin",
            json={
                "rows": [
                    {
                        "first_name": "Grace",
                        "linkedin_url": "https://linkedin.com/in/grace",
                    }
                ]
            },
            headers=OWNER,
        )

        contact_id = response.json()["imported"][0]
        contact = test_client.get(f"/contacts/{contact_id}", headers=OWNER).json()
        assert contact["source"] == "linkedin"
        assert contact["notes"] == "LinkedIn: https://linkedin.com/in/grace"

    def test_import_csv_text(self, test_client: Client) -> None:
        text = "First Name,Email\nAda,ada@engines.io\n,jane.doe@acme.io\n"

        response = test_client.post(
            "/contacts/import/csv-text", json={"text": text}, headers=OWNER
        )

        assert response.json()["summary"]["imported"] == 2

    def test_import_csv_text_bad_mapping(self, test_client: Client) -> None:
        response = test_client.post(
            "/contacts/import/csv-text",
            json={"text": "a,b\n1,2\n", "column_mapping": {"nickname": "a"}},
            headers=OWNER,
        )

        assert response.status_code == 422


class TestPartyEndpoints:
    def test_create_and_list(self, test_client: Client) -> None:
        party = _create_party(test_client, location="Rooftop")

        listed = test_client.get("/parties", headers=OTHER).json()

        assert party["status"] == "planning"
        assert [p["id"] for p in listed] == [party["id"]]

    def test_invalid_status_returns_422(self, test_client: Client) -> None:
        response = test_client.post(
            "/parties", json={"name": "X", "status": "postponed"}, headers=OWNER
        )

        assert response.status_code == 422

    def test_non_owner_cannot_update(self, test_client: Client) -> None:
        party = _create_party(test_client)

        response = test_client.patch(
            f"/parties/{party['id']}", json={"name": "Mine now"}, headers=OTHER
        )

        assert response.status_code == 403
        assert response.json()["error"] == "NOT_AUTHORIZED"

    def test_batch_status(self, test_client: Client) -> None:
        a = _create_party(test_client, name="A")
        b = _create_party(test_client, name="B")

        response = test_client.post(
            "/parties/batch-status",
            json={"ids": [a["id"], b["id"]], "status": "active"},
            headers=OWNER,
        )

        assert response.json() == {"count": 2}

    def test_missing_party_returns_404(self, test_client: Client) -> None:
        response = test_client.get(f"/parties/{uuid4()}", headers=OWNER)

        assert response.status_code == 404
        assert response.json()["error"] == "PARTY_NOT_FOUND"


class TestInvitationEndpoints:
    def test_create_duplicate_returns_409(self, test_client: Client) -> None:
        party = _create_party(test_client)
        contact = _create_contact(test_client)
        payload = {"party_id": party["id"], "contact_id": contact["id"]}

        first = test_client.post("/invitations", json=payload, headers=OWNER)
        second = test_client.post("/invitations", json=payload, headers=OWNER)

        assert first.status_code == 201
        assert first.json()["status"] == "pending"
        assert second.status_code == 409
        assert second.json()["error"] == "DUPLICATE_INVITATION"

    def test_status_update_and_undo_check_in(self, test_client: Client) -> None:
        party = _create_party(test_client)
        contact = _create_contact(test_client)
        invitation = test_client.post(
            "/invitations",
            json={"party_id": party["id"], "contact_id": contact["id"]},
            headers=OWNER,
        ).json()

        attended = test_client.patch(
            f"/invitations/{invitation['id']}/status",
            json={"status": "attended"},
            headers=OWNER,
        ).json()
        undone = test_client.post(
            f"/invitations/{invitation['id']}/undo-check-in", headers=OWNER
        ).json()

        assert attended["status"] == "attended"
        assert attended["responded_at"] is not None
        assert undone["status"] == "accepted"
        assert undone["responded_at"] == attended["responded_at"]

    def test_contact_invitations(self, test_client: Client) -> None:
        party = _create_party(test_client)
        contact = _create_contact(test_client)
        test_client.post(
            "/invitations",
            json={"party_id": party["id"], "contact_id": contact["id"]},
            headers=OWNER,
        )

        response = test_client.get(
            f"/contacts/{contact['id']}/invitations", headers=OWNER
        )

        assert [i["party"]["name"] for i in response.json()] == ["Launch"]

    def test_bulk_invite_then_check_in(self, test_client: Client) -> None:
        party = _create_party(test_client)
        ids = [
            _create_contact(test_client, first_name=name)["id"]
            for name in ("Ada", "Bob", "Cy")
        ]

        bulk = test_client.post(
            "/invitations/bulk",
            json={"party_id": party["id"], "contact_ids": ids + ids[:1]},
            headers=OWNER,
        ).json()
        again = test_client.post(
            "/invitations/bulk",
            json={"party_id": party["id"], "contact_ids": ids},
            headers=OWNER,
        ).json()
        batch = test_client.post(
            "/invitations/batch-status",
            json={"ids": bulk["created"], "status": "attended"},
            headers=OWNER,
        ).json()
        details = test_client.get(f"/parties/{party['id']}", headers=OWNER).json()
        stats = test_client.get(f"/parties/{party['id']}/stats", headers=OWNER).json()
        filtered = test_client.get(
            f"/parties/{party['id']}/invitations",
            params={"status": "attended", "search": "bo"},
            headers=OWNER,
        ).json()

        assert len(bulk["created"]) == 3
        assert again == {"created": []}
        assert batch == {"count": 3}
        assert {i["invitation"]["status"] for i in details["invitations"]} == {
            "attended"
        }
        assert {i["invited_by"]["name"] for i in details["invitations"]} == {"Owner"}
        assert stats["attended"] == 3
        assert stats["total"] == 3
        assert [i["contact"]["first_name"] for i in filtered] == ["Bob"]

    def test_batch_delete_and_delete(self, test_client: Client) -> None:
        party = _create_party(test_client)
        ids = [_create_contact(test_client, first_name=n)["id"] for n in ("A", "B")]
        created = test_client.post(
            "/invitations/bulk",
            json={"party_id": party["id"], "contact_ids": ids},
            headers=OWNER,
        ).json()["created"]

        single = test_client.delete(f"/invitations/{created[0]}", headers=OWNER)
        batch = test_client.post(
            "/invitations/batch-delete", json={"ids": created[1:]}, headers=OWNER
        )

        assert single.status_code == 204
        assert batch.json() == {"count": 1}


class TestPublicEndpoints:
    def test_public_party_needs_no_token(self, test_client: Client) -> None:
        party = _create_party(test_client, description="Drinks")

        response = test_client.get(f"/public/parties/{party['id']}")

        assert response.status_code == 200
        assert response.json()["name"] == "Launch"
        assert "created_by" not in response.json()

    def test_public_attend(self, test_client: Client) -> None:
        party = _create_party(test_client)

        first = test_client.post(
            f"/public/parties/{party['id']}/attend",
            json={"first_name": "Walk", "last_name": "In", "email": "walk@startup.dev"},
        )
        second = test_client.post(
            f"/public/parties/{party['id']}/attend",
            json={"first_name": "Walk", "email": "walk@startup.dev"},
        )
        stats = test_client.get(f"/parties/{party['id']}/stats", headers=OWNER).json()

        assert first.status_code == 201
        assert first.json()["contact_created"] is True
        assert second.json()["contact_created"] is False
        assert second.json()["invitation_id"] == first.json()["invitation_id"]
        assert stats["attended"] == 1

    def test_public_attend_unknown_party(self, test_client: Client) -> None:
        response = test_client.post(
            f"/public/parties/{uuid4()}/attend", json={"first_name": "Walk"}
        )

        assert response.status_code == 404
