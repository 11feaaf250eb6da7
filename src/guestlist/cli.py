"""Command-line interface for Guestlist."""

import argparse
import os
import sys
from pathlib import Path

from guestlist import __version__
from guestlist.config import DatabaseType, get_settings
from guestlist.container import Container
from guestlist.exceptions import GuestlistError
from guestlist.parsers.csv_parser import ContactCSVParser
from guestlist.repositories.sqlite import SQLiteDatabase


def get_default_db_path() -> Path:
    """Database used when ``--database`` is not given.

    This is ``Settings.sqlite_path`` (``GL_SQLITE_PATH``), so ``gl serve``
    and the other commands agree on the file.
    """
    return Path(get_settings().sqlite_path)


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.database) if args.database else get_default_db_path()


def _open_container(db_path: Path) -> Container:
    settings = get_settings().model_copy(
        update={"database_type": DatabaseType.SQLITE, "sqlite_path": db_path}
    )
    return Container(settings)


def cmd_init(args: argparse.Namespace) -> int:
    """Create an empty Guestlist database, optionally replacing an old one."""
    db_path = _db_path(args)

    if db_path.exists():
        if not args.force:
            print(f"Database already exists at {db_path}")
            print("Pass --force to delete it and start over")
            return 1
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    try:
        db.initialize()
    finally:
        db.close()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"No database found at {db_path}")
        print("Run 'gl init' first")
        return 1

    with _open_container(db_path) as container:
        repos = container.repositories
        counts = {
            "Users": len(list(repos.users.list_all())),
            "Contacts": len(list(repos.contacts.list_all())),
            "Parties": len(list(repos.parties.list_all())),
        }
    print(f"Database: {db_path}")
    for label, count in counts.items():
        print(f"{label}: {count}")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"Guestlist v{__version__}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import contacts from a CSV file on behalf of a user."""
    file_path = Path(args.file)

    if not file_path.exists():
        print(f"Error: File not found: {file_path}")
        return 1

    db_path = _db_path(args)
    if not db_path.exists():
        print(f"Error: Database not found at {db_path}")
        print("Run 'gl init' to create a new database")
        return 1

    with _open_container(db_path) as container:
        try:
            owner = container.user_service.ensure_user(args.owner_email)
            parser = ContactCSVParser()
            if args.linkedin:
                result = container.contact_service.import_from_linkedin(
                    owner.id, parser.parse_linkedin(file_path)
                )
            else:
                result = container.contact_service.import_from_csv(
                    owner.id, parser.parse(file_path)
                )
        except GuestlistError as e:
            print(f"Error: {e.message}")
            return 1

    print("✓ Import complete")
    print(f"  Rows: {result.summary.total}")
    print(f"  Imported: {result.summary.imported}")
    print(f"  Skipped: {result.summary.skipped}")

    for duplicate in result.duplicates[:10]:
        print(f"  - {duplicate.name} <{duplicate.email or ''}>: {duplicate.reason}")
    if len(result.duplicates) > 10:
        print(f"  ... and {len(result.duplicates) - 10} more")

    return 0


def cmd_parties(args: argparse.Namespace) -> int:
    """List parties with their invitation counts."""
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"No database found at {db_path}")
        return 1

    with _open_container(db_path) as container:
        repos = container.repositories
        parties = [
            (party, len(list(repos.invitations.list_by_party(party.id))))
            for party in repos.parties.list_all()
        ]

    if not parties:
        print("No parties found")
        return 0

    for party, invited in parties:
        when = party.date.strftime("%Y-%m-%d") if party.date else "no date"
        print(
            f"  - {party.name} ({party.status.value}, {when}): "
            f"{invited} invitations  [{party.id}]"
        )
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed")
        return 1

    if args.database:
        os.environ["GL_SQLITE_PATH"] = str(args.database)
        get_settings.cache_clear()

    settings = get_settings()
    uvicorn.run(
        "guestlist.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload or settings.api_reload,
        workers=settings.api_workers,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gl",
        description="Guestlist: manage contacts, parties and door check-in",
    )
    parser.add_argument(
        "-d",
        "--database",
        default=None,
        help=f"SQLite file to use (default: {get_default_db_path()})",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    init = commands.add_parser("init", help="Create the database schema")
    init.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Delete an existing database file first",
    )
    init.set_defaults(func=cmd_init)

    commands.add_parser("status", help="Show row counts").set_defaults(
        func=cmd_status
    )
    commands.add_parser("version", help="Print the version").set_defaults(
        func=cmd_version
    )

    imp = commands.add_parser("import", help="Import contacts from a CSV file")
    imp.add_argument("file", help="CSV file with a header row")
    imp.add_argument(
        "--owner-email",
        required=True,
        help="Imported contacts are recorded as created by this user",
    )
    imp.add_argument(
        "--linkedin",
        action="store_true",
        help="The file is a LinkedIn connections export",
    )
    imp.set_defaults(func=cmd_import)

    commands.add_parser("parties", help="List parties").set_defaults(
        func=cmd_parties
    )

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address")
    serve.add_argument("--port", type=int, default=None, help="Bind port")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
