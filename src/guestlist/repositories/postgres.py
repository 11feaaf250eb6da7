"""PostgreSQL implementations of repository interfaces."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

import psycopg2
import psycopg2.extras

from guestlist.domain.contacts import Contact
from guestlist.domain.invitations import Invitation
from guestlist.domain.parties import Party
from guestlist.domain.users import User
from guestlist.domain.value_objects import ContactSource, InvitationStatus, PartyStatus
from guestlist.exceptions import IntegrityError
from guestlist.repositories.interfaces import (
    ContactRepository,
    InvitationRepository,
    PartyRepository,
    UserRepository,
)


class PostgresDatabase:
    """PostgreSQL database connection manager."""

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: psycopg2.extensions.connection | None = None

    def get_connection(self) -> psycopg2.extensions.connection:
        """Get or create the database connection."""
        if self._connection is None or self._connection.closed:
            self._connection = psycopg2.connect(
                self._connection_string,
                cursor_factory=psycopg2.extras.RealDictCursor,
            )
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                """
                -- Users table (populated by the auth provider link)
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT,
                    name TEXT,
                    auth_subject TEXT UNIQUE,
                    created_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_users_email ON users(lower(email));

                -- Contacts table
                CREATE TABLE IF NOT EXISTS contacts (
                    id TEXT PRIMARY KEY,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL DEFAULT '',
                    email TEXT,
                    phone TEXT,
                    company TEXT,
                    position TEXT,
                    source TEXT NOT NULL,
                    tags TEXT,
                    notes TEXT,
                    created_by TEXT NOT NULL REFERENCES users(id),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_contacts_email ON contacts(email);
                CREATE INDEX IF NOT EXISTS idx_contacts_company ON contacts(company);
                CREATE INDEX IF NOT EXISTS idx_contacts_created_by ON contacts(created_by);
                CREATE INDEX IF NOT EXISTS idx_contacts_first_name ON contacts(lower(first_name) text_pattern_ops);

                -- Parties table
                CREATE TABLE IF NOT EXISTS parties (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    date TEXT,
                    location TEXT,
                    status TEXT NOT NULL DEFAULT 'planning',
                    created_by TEXT NOT NULL REFERENCES users(id),
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_parties_created_by ON parties(created_by);
                CREATE INDEX IF NOT EXISTS idx_parties_status ON parties(status);

                -- Invitations table
                CREATE TABLE IF NOT EXISTS invitations (
                    id TEXT PRIMARY KEY,
                    party_id TEXT NOT NULL REFERENCES parties(id),
                    contact_id TEXT NOT NULL REFERENCES contacts(id),
                    invited_by TEXT NOT NULL REFERENCES users(id),
                    status TEXT NOT NULL DEFAULT 'pending',
                    sent_at TEXT,
                    responded_at TEXT,
                    notes TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE(party_id, contact_id)
                );
                CREATE INDEX IF NOT EXISTS idx_invitations_party ON invitations(party_id);
                CREATE INDEX IF NOT EXISTS idx_invitations_contact ON invitations(contact_id);
                CREATE INDEX IF NOT EXISTS idx_invitations_invited_by ON invitations(invited_by);
                """
            )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None and not self._connection.closed:
            self._connection.close()
        self._connection = None


@contextmanager
def _integrity_guard(conn: psycopg2.extensions.connection) -> Iterator[None]:
    try:
        yield
    except psycopg2.IntegrityError as exc:
        conn.rollback()
        raise IntegrityError(str(exc).strip()) from exc


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _optional_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class PostgresUserRepository(UserRepository):
    """PostgreSQL implementation of UserRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, user: User) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO users (id, email, name, auth_subject, created_at)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (
                        str(user.id),
                        user.email,
                        user.name,
                        user.auth_subject,
                        user.created_at.isoformat(),
                    ),
                )
            conn.commit()

    def get(self, user_id: UUID) -> User | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM users WHERE id = %s", (str(user_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_by_email(self, email: str) -> User | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM users WHERE lower(email) = lower(%s) ORDER BY created_at LIMIT 1",
                (email,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_by_auth_subject(self, subject: str) -> User | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM users WHERE auth_subject = %s", (subject,))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_all(self) -> Iterable[User]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM users ORDER BY created_at")
            rows = cur.fetchall()
        return [self._row_to_user(row) for row in rows]

    def update(self, user: User) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE users SET email = %s, name = %s, auth_subject = %s WHERE id = %s",
                    (user.email, user.name, user.auth_subject, str(user.id)),
                )
            conn.commit()

    def _row_to_user(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            auth_subject=row["auth_subject"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class PostgresContactRepository(ContactRepository):
    """PostgreSQL implementation of ContactRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, contact: Contact) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO contacts (id, first_name, last_name, email, phone, company, position,
                                          source, tags, notes, created_by, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(contact.id),
                        contact.first_name,
                        contact.last_name,
                        contact.email,
                        contact.phone,
                        contact.company,
                        contact.position,
                        contact.source.value,
                        json.dumps(contact.tags) if contact.tags else None,
                        contact.notes,
                        str(contact.created_by),
                        contact.created_at.isoformat(),
                        contact.updated_at.isoformat(),
                    ),
                )
            conn.commit()

    def get(self, contact_id: UUID) -> Contact | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM contacts WHERE id = %s", (str(contact_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_contact(row)

    def get_by_email(self, email: str) -> Contact | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM contacts WHERE email = %s ORDER BY created_at LIMIT 1",
                (email,),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_contact(row)

    def list_all(self) -> Iterable[Contact]:
        return self._select("SELECT * FROM contacts ORDER BY created_at, id", ())

    def list_by_company(self, company: str) -> Iterable[Contact]:
        return self._select(
            "SELECT * FROM contacts WHERE company = %s ORDER BY created_at, id",
            (company,),
        )

    def list_by_created_by(self, user_id: UUID) -> Iterable[Contact]:
        return self._select(
            "SELECT * FROM contacts WHERE created_by = %s ORDER BY created_at, id",
            (str(user_id),),
        )

    def search_first_name(
        self, term: str, company: str | None = None
    ) -> Iterable[Contact]:
        tokens = term.lower().split()
        if not tokens:
            return []

        clauses: list[str] = []
        params: list[str] = []
        for token in tokens:
            escaped = _like_escape(token)
            clauses.append(
                "(lower(first_name) LIKE %s ESCAPE '\\' OR lower(first_name) LIKE %s ESCAPE '\\')"
            )
            params.extend([f"{escaped}%", f"% {escaped}%"])
        if company is not None:
            clauses.append("company = %s")
            params.append(company)

        return self._select(
            f"SELECT * FROM contacts WHERE {' AND '.join(clauses)} ORDER BY created_at, id",
            tuple(params),
        )

    def list_companies(self) -> Iterable[str]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT DISTINCT company FROM contacts WHERE company IS NOT NULL AND company <> ''"
            )
            rows = cur.fetchall()
        return [row["company"] for row in rows]

    def list_sources(self) -> Iterable[str]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT DISTINCT source FROM contacts")
            rows = cur.fetchall()
        return [row["source"] for row in rows]

    def list_creator_ids(self) -> Iterable[UUID]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT DISTINCT created_by FROM contacts")
            rows = cur.fetchall()
        return [UUID(row["created_by"]) for row in rows]

    def update(self, contact: Contact) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE contacts SET
                        first_name = %s,
                        last_name = %s,
                        email = %s,
                        phone = %s,
                        company = %s,
                        position = %s,
                        source = %s,
                        tags = %s,
                        notes = %s,
                        updated_at = %s
                    WHERE id = %s
                    """,
                    (
                        contact.first_name,
                        contact.last_name,
                        contact.email,
                        contact.phone,
                        contact.company,
                        contact.position,
                        contact.source.value,
                        json.dumps(contact.tags) if contact.tags else None,
                        contact.notes,
                        contact.updated_at.isoformat(),
                        str(contact.id),
                    ),
                )
            conn.commit()

    def delete(self, contact_id: UUID) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute("DELETE FROM contacts WHERE id = %s", (str(contact_id),))
            conn.commit()

    def _select(self, query: str, params: tuple[Any, ...]) -> list[Contact]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(query, params)
            rows = cur.fetchall()
        return [self._row_to_contact(row) for row in rows]

    def _row_to_contact(self, row: dict[str, Any]) -> Contact:
        tags_raw = row.get("tags")
        contact = Contact(
            id=UUID(row["id"]),
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            phone=row["phone"],
            company=row["company"],
            position=row["position"],
            source=ContactSource(row["source"]),
            tags=json.loads(tags_raw) if tags_raw else [],
            notes=row["notes"],
            created_by=UUID(row["created_by"]),
        )
        object.__setattr__(
            contact, "created_at", datetime.fromisoformat(row["created_at"])
        )
        object.__setattr__(
            contact, "updated_at", datetime.fromisoformat(row["updated_at"])
        )
        return contact


class PostgresPartyRepository(PartyRepository):
    """PostgreSQL implementation of PartyRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, party: Party) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO parties (id, name, description, date, location, status,
                                         created_by, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(party.id),
                        party.name,
                        party.description,
                        party.date.isoformat() if party.date else None,
                        party.location,
                        party.status.value,
                        str(party.created_by),
                        party.created_at.isoformat(),
                        party.updated_at.isoformat(),
                    ),
                )
            conn.commit()

    def get(self, party_id: UUID) -> Party | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM parties WHERE id = %s", (str(party_id),))
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_party(row)

    def list_all(self) -> Iterable[Party]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM parties ORDER BY created_at DESC, id DESC")
            rows = cur.fetchall()
        return [self._row_to_party(row) for row in rows]

    def list_by_created_by(self, user_id: UUID) -> Iterable[Party]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM parties WHERE created_by = %s ORDER BY created_at DESC, id DESC",
                (str(user_id),),
            )
            rows = cur.fetchall()
        return [self._row_to_party(row) for row in rows]

    def update(self, party: Party) -> None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE parties SET
                    name = %s,
                    description = %s,
                    date = %s,
                    location = %s,
                    status = %s,
                    updated_at = %s
                WHERE id = %s
                """,
                (
                    party.name,
                    party.description,
                    party.date.isoformat() if party.date else None,
                    party.location,
                    party.status.value,
                    party.updated_at.isoformat(),
                    str(party.id),
                ),
            )
        conn.commit()

    def _row_to_party(self, row: dict[str, Any]) -> Party:
        party = Party(
            id=UUID(row["id"]),
            name=row["name"],
            description=row["description"],
            date=_optional_datetime(row["date"]),
            location=row["location"],
            status=PartyStatus(row["status"]),
            created_by=UUID(row["created_by"]),
        )
        object.__setattr__(party, "created_at", datetime.fromisoformat(row["created_at"]))
        object.__setattr__(party, "updated_at", datetime.fromisoformat(row["updated_at"]))
        return party


class PostgresInvitationRepository(InvitationRepository):
    """PostgreSQL implementation of InvitationRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, invitation: Invitation) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO invitations (id, party_id, contact_id, invited_by, status, sent_at,
                                             responded_at, notes, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        str(invitation.id),
                        str(invitation.party_id),
                        str(invitation.contact_id),
                        str(invitation.invited_by),
                        invitation.status.value,
                        invitation.sent_at.isoformat() if invitation.sent_at else None,
                        invitation.responded_at.isoformat()
                        if invitation.responded_at
                        else None,
                        invitation.notes,
                        invitation.created_at.isoformat(),
                        invitation.updated_at.isoformat(),
                    ),
                )
            conn.commit()

    def get(self, invitation_id: UUID) -> Invitation | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM invitations WHERE id = %s", (str(invitation_id),)
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_invitation(row)

    def get_by_party_and_contact(
        self, party_id: UUID, contact_id: UUID
    ) -> Invitation | None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM invitations WHERE party_id = %s AND contact_id = %s",
                (str(party_id), str(contact_id)),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_invitation(row)

    def list_by_party(self, party_id: UUID) -> Iterable[Invitation]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM invitations WHERE party_id = %s ORDER BY created_at, id",
                (str(party_id),),
            )
            rows = cur.fetchall()
        return [self._row_to_invitation(row) for row in rows]

    def list_by_contact(self, contact_id: UUID) -> Iterable[Invitation]:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM invitations WHERE contact_id = %s ORDER BY created_at, id",
                (str(contact_id),),
            )
            rows = cur.fetchall()
        return [self._row_to_invitation(row) for row in rows]

    def update(self, invitation: Invitation) -> None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE invitations SET
                    status = %s,
                    sent_at = %s,
                    responded_at = %s,
                    notes = %s,
                    updated_at = %s
                WHERE id = %s
                """,
                (
                    invitation.status.value,
                    invitation.sent_at.isoformat() if invitation.sent_at else None,
                    invitation.responded_at.isoformat()
                    if invitation.responded_at
                    else None,
                    invitation.notes,
                    invitation.updated_at.isoformat(),
                    str(invitation.id),
                ),
            )
        conn.commit()

    def delete(self, invitation_id: UUID) -> None:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute("DELETE FROM invitations WHERE id = %s", (str(invitation_id),))
        conn.commit()

    def delete_by_contact(self, contact_id: UUID) -> int:
        conn = self._db.get_connection()
        with conn.cursor() as cur:
            cur.execute(
                "DELETE FROM invitations WHERE contact_id = %s", (str(contact_id),)
            )
            deleted = cur.rowcount
        conn.commit()
        return deleted

    def _row_to_invitation(self, row: dict[str, Any]) -> Invitation:
        invitation = Invitation(
            id=UUID(row["id"]),
            party_id=UUID(row["party_id"]),
            contact_id=UUID(row["contact_id"]),
            invited_by=UUID(row["invited_by"]),
            status=InvitationStatus(row["status"]),
            sent_at=_optional_datetime(row["sent_at"]),
            responded_at=_optional_datetime(row["responded_at"]),
            notes=row["notes"],
        )
        object.__setattr__(
            invitation, "created_at", datetime.fromisoformat(row["created_at"])
        )
        object.__setattr__(
            invitation, "updated_at", datetime.fromisoformat(row["updated_at"])
        )
        return invitation
