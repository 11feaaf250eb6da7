"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from uuid import UUID

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


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Users table (populated by the auth provider link)
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT,
                name TEXT,
                auth_subject TEXT UNIQUE,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_users_email ON users(email);

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
                created_by TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (created_by) REFERENCES users(id)
            );
            CREATE INDEX IF NOT EXISTS idx_contacts_email ON contacts(email);
            CREATE INDEX IF NOT EXISTS idx_contacts_company ON contacts(company);
            CREATE INDEX IF NOT EXISTS idx_contacts_created_by ON contacts(created_by);
            CREATE INDEX IF NOT EXISTS idx_contacts_first_name ON contacts(first_name COLLATE NOCASE);

            -- Parties table
            CREATE TABLE IF NOT EXISTS parties (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                date TEXT,
                location TEXT,
                status TEXT NOT NULL DEFAULT 'planning',
                created_by TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (created_by) REFERENCES users(id)
            );
            CREATE INDEX IF NOT EXISTS idx_parties_created_by ON parties(created_by);
            CREATE INDEX IF NOT EXISTS idx_parties_status ON parties(status);

            -- Invitations table
            CREATE TABLE IF NOT EXISTS invitations (
                id TEXT PRIMARY KEY,
                party_id TEXT NOT NULL,
                contact_id TEXT NOT NULL,
                invited_by TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                sent_at TEXT,
                responded_at TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(party_id, contact_id),
                FOREIGN KEY (party_id) REFERENCES parties(id),
                FOREIGN KEY (contact_id) REFERENCES contacts(id),
                FOREIGN KEY (invited_by) REFERENCES users(id)
            );
            CREATE INDEX IF NOT EXISTS idx_invitations_party ON invitations(party_id);
            CREATE INDEX IF NOT EXISTS idx_invitations_contact ON invitations(contact_id);
            CREATE INDEX IF NOT EXISTS idx_invitations_invited_by ON invitations(invited_by);
            """
        )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


@contextmanager
def _integrity_guard(conn: sqlite3.Connection) -> Iterator[None]:
    try:
        yield
    except sqlite3.IntegrityError as exc:
        conn.rollback()
        raise IntegrityError(str(exc)) from exc


def _like_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _optional_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteUserRepository(UserRepository):
    """SQLite implementation of UserRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, user: User) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            conn.execute(
                """
                INSERT INTO users (id, email, name, auth_subject, created_at)
                VALUES (?, ?, ?, ?, ?)
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
        row = conn.execute(
            "SELECT * FROM users WHERE id = ?", (str(user_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_by_email(self, email: str) -> User | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM users WHERE lower(email) = lower(?) ORDER BY rowid LIMIT 1",
            (email,),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_by_auth_subject(self, subject: str) -> User | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM users WHERE auth_subject = ?", (subject,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def list_all(self) -> Iterable[User]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM users ORDER BY rowid").fetchall()
        return [self._row_to_user(row) for row in rows]

    def update(self, user: User) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            conn.execute(
                "UPDATE users SET email = ?, name = ?, auth_subject = ? WHERE id = ?",
                (user.email, user.name, user.auth_subject, str(user.id)),
            )
            conn.commit()

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            auth_subject=row["auth_subject"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteContactRepository(ContactRepository):
    """SQLite implementation of ContactRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, contact: Contact) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            conn.execute(
                """
                INSERT INTO contacts (id, first_name, last_name, email, phone, company, position,
                                      source, tags, notes, created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
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
        row = conn.execute(
            "SELECT * FROM contacts WHERE id = ?", (str(contact_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_contact(row)

    def get_by_email(self, email: str) -> Contact | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM contacts WHERE email = ? ORDER BY rowid LIMIT 1", (email,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_contact(row)

    def list_all(self) -> Iterable[Contact]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM contacts ORDER BY rowid").fetchall()
        return [self._row_to_contact(row) for row in rows]

    def list_by_company(self, company: str) -> Iterable[Contact]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM contacts WHERE company = ? ORDER BY rowid", (company,)
        ).fetchall()
        return [self._row_to_contact(row) for row in rows]

    def list_by_created_by(self, user_id: UUID) -> Iterable[Contact]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM contacts WHERE created_by = ? ORDER BY rowid",
            (str(user_id),),
        ).fetchall()
        return [self._row_to_contact(row) for row in rows]

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
                "(lower(first_name) LIKE ? ESCAPE '\\' OR lower(first_name) LIKE ? ESCAPE '\\')"
            )
            params.extend([f"{escaped}%", f"% {escaped}%"])
        if company is not None:
            clauses.append("company = ?")
            params.append(company)

        conn = self._db.get_connection()
        rows = conn.execute(
            f"SELECT * FROM contacts WHERE {' AND '.join(clauses)} ORDER BY rowid",
            params,
        ).fetchall()
        return [self._row_to_contact(row) for row in rows]

    def list_companies(self) -> Iterable[str]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT DISTINCT company FROM contacts WHERE company IS NOT NULL AND company != ''"
        ).fetchall()
        return [row["company"] for row in rows]

    def list_sources(self) -> Iterable[str]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT DISTINCT source FROM contacts").fetchall()
        return [row["source"] for row in rows]

    def list_creator_ids(self) -> Iterable[UUID]:
        conn = self._db.get_connection()
        rows = conn.execute("SELECT DISTINCT created_by FROM contacts").fetchall()
        return [UUID(row["created_by"]) for row in rows]

    def update(self, contact: Contact) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            conn.execute(
                """
                UPDATE contacts SET
                    first_name = ?,
                    last_name = ?,
                    email = ?,
                    phone = ?,
                    company = ?,
                    position = ?,
                    source = ?,
                    tags = ?,
                    notes = ?,
                    updated_at = ?
                WHERE id = ?
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
            conn.execute("DELETE FROM contacts WHERE id = ?", (str(contact_id),))
            conn.commit()

    def _row_to_contact(self, row: sqlite3.Row) -> Contact:
        tags_json = row["tags"]
        contact = Contact(
            id=UUID(row["id"]),
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            phone=row["phone"],
            company=row["company"],
            position=row["position"],
            source=ContactSource(row["source"]),
            tags=json.loads(tags_json) if tags_json else [],
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


class SQLitePartyRepository(PartyRepository):
    """SQLite implementation of PartyRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, party: Party) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            conn.execute(
                """
                INSERT INTO parties (id, name, description, date, location, status,
                                     created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
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
        row = conn.execute(
            "SELECT * FROM parties WHERE id = ?", (str(party_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_party(row)

    def list_all(self) -> Iterable[Party]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM parties ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [self._row_to_party(row) for row in rows]

    def list_by_created_by(self, user_id: UUID) -> Iterable[Party]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM parties WHERE created_by = ? ORDER BY created_at DESC, rowid DESC",
            (str(user_id),),
        ).fetchall()
        return [self._row_to_party(row) for row in rows]

    def update(self, party: Party) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE parties SET
                name = ?,
                description = ?,
                date = ?,
                location = ?,
                status = ?,
                updated_at = ?
            WHERE id = ?
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

    def _row_to_party(self, row: sqlite3.Row) -> Party:
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


class SQLiteInvitationRepository(InvitationRepository):
    """SQLite implementation of InvitationRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, invitation: Invitation) -> None:
        conn = self._db.get_connection()
        with _integrity_guard(conn):
            conn.execute(
                """
                INSERT INTO invitations (id, party_id, contact_id, invited_by, status, sent_at,
                                         responded_at, notes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
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
        row = conn.execute(
            "SELECT * FROM invitations WHERE id = ?", (str(invitation_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_invitation(row)

    def get_by_party_and_contact(
        self, party_id: UUID, contact_id: UUID
    ) -> Invitation | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM invitations WHERE party_id = ? AND contact_id = ?",
            (str(party_id), str(contact_id)),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_invitation(row)

    def list_by_party(self, party_id: UUID) -> Iterable[Invitation]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM invitations WHERE party_id = ? ORDER BY rowid",
            (str(party_id),),
        ).fetchall()
        return [self._row_to_invitation(row) for row in rows]

    def list_by_contact(self, contact_id: UUID) -> Iterable[Invitation]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM invitations WHERE contact_id = ? ORDER BY rowid",
            (str(contact_id),),
        ).fetchall()
        return [self._row_to_invitation(row) for row in rows]

    def update(self, invitation: Invitation) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            UPDATE invitations SET
                status = ?,
                sent_at = ?,
                responded_at = ?,
                notes = ?,
                updated_at = ?
            WHERE id = ?
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
        conn.execute("DELETE FROM invitations WHERE id = ?", (str(invitation_id),))
        conn.commit()

    def delete_by_contact(self, contact_id: UUID) -> int:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "DELETE FROM invitations WHERE contact_id = ?", (str(contact_id),)
        )
        conn.commit()
        return cursor.rowcount

    def _row_to_invitation(self, row: sqlite3.Row) -> Invitation:
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
