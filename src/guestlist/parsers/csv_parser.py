"""CSV parser for contact lists and LinkedIn connection exports."""

import csv
import io
from collections.abc import Iterable, Sequence
from pathlib import Path

from guestlist.services.interfaces import ContactImportRow, LinkedInImportRow

CONTACT_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "company",
    "position",
    "phone",
    "linkedin_url",
    "connected_on",
    "notes",
)


def guess_name_from_email(email: str | None) -> tuple[str, str]:
    """Guess (first, last) from the local part of an address.

    ``jane.doe@x`` gives ("Jane", "Doe"); ``jane@x`` gives ("Jane", "").
    """
    if not email or "@" not in email:
        return "", ""
    local = email.split("@")[0].lower()
    if "." in local:
        first, last = local.split(".")[:2]
        return first.capitalize(), last.capitalize()
    return local.capitalize(), ""


class ContactCSVParser:
    """Parser for comma-delimited contact exports with a header row.

    Columns are mapped to contact fields either through an explicit
    ``column_mapping`` (field name -> header) or by auto-detection on the
    header text. Rows without an email, or without any name after guessing
    one from the email, are dropped.
    """

    def __init__(self, column_mapping: dict[str, str] | None = None) -> None:
        unknown = set(column_mapping or {}) - set(CONTACT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown contact fields in mapping: {sorted(unknown)}")
        self._column_mapping = column_mapping or {}

    def parse(self, file_path: str | Path) -> list[ContactImportRow]:
        return [self._to_contact_row(r) for r in self._read_file(file_path)]

    def parse_text(self, text: str) -> list[ContactImportRow]:
        return [self._to_contact_row(r) for r in self._read_text(text)]

    def parse_linkedin(self, file_path: str | Path) -> list[LinkedInImportRow]:
        return [self._to_linkedin_row(r) for r in self._read_file(file_path)]

    def parse_linkedin_text(self, text: str) -> list[LinkedInImportRow]:
        return [self._to_linkedin_row(r) for r in self._read_text(text)]

    def detect_columns(self, headers: Sequence[str]) -> dict[str, str | None]:
        """Map each contact field to a header from the file, or None."""
        columns: dict[str, str | None] = dict.fromkeys(CONTACT_FIELDS)

        if self._column_mapping:
            by_lower = {h.lower(): h for h in headers}
            for field, header in self._column_mapping.items():
                if header in headers:
                    columns[field] = header
                elif header.strip().lower() in by_lower:
                    columns[field] = by_lower[header.strip().lower()]
            return columns

        for header in headers:
            field = self._field_for_header(header.lower())
            if field is not None and columns[field] is None:
                columns[field] = header
        return columns

    @staticmethod
    def _field_for_header(header: str) -> str | None:
        if "first" in header and "name" in header:
            return "first_name"
        if "last" in header and "name" in header:
            return "last_name"
        if "email" in header or "e-mail" in header:
            return "email"
        if "company" in header or "företag" in header or "organization" in header:
            return "company"
        if "position" in header or "title" in header:
            return "position"
        if "phone" in header:
            return "phone"
        if "connected" in header:
            return "connected_on"
        if header in ("url", "profile url") or "linkedin" in header:
            return "linkedin_url"
        if header == "notes":
            return "notes"
        return None

    def _read_file(self, file_path: str | Path) -> list[dict[str, str]]:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")
        with open(path, newline="", encoding="utf-8-sig") as csvfile:
            return self._read_rows(csv.reader(csvfile))

    def _read_text(self, text: str) -> list[dict[str, str]]:
        return self._read_rows(csv.reader(io.StringIO(text.strip())))

    def _read_rows(self, reader: Iterable[list[str]]) -> list[dict[str, str]]:
        rows = iter(reader)
        header_row = next(rows, None)
        if not header_row:
            return []
        headers = [_clean_cell(h) for h in header_row]
        columns = self.detect_columns(headers)
        index = {
            field: headers.index(header)
            for field, header in columns.items()
            if header is not None
        }

        records: list[dict[str, str]] = []
        for values in rows:
            if not any(v.strip() for v in values):
                continue
            record = {
                field: _clean_cell(values[i]) if i < len(values) else ""
                for field, i in index.items()
            }
            if not record.get("first_name") and not record.get("last_name"):
                first, last = guess_name_from_email(record.get("email"))
                record["first_name"], record["last_name"] = first, last
            if record.get("email") and (
                record.get("first_name") or record.get("last_name")
            ):
                records.append(record)
        return records

    @staticmethod
    def _to_contact_row(record: dict[str, str]) -> ContactImportRow:
        return ContactImportRow(
            first_name=record.get("first_name", ""),
            last_name=record.get("last_name", ""),
            email=record.get("email") or None,
            company=record.get("company") or None,
            position=record.get("position") or None,
            phone=record.get("phone") or None,
            notes=record.get("notes") or None,
        )

    @staticmethod
    def _to_linkedin_row(record: dict[str, str]) -> LinkedInImportRow:
        return LinkedInImportRow(
            first_name=record.get("first_name", ""),
            last_name=record.get("last_name", ""),
            email=record.get("email") or None,
            company=record.get("company") or None,
            position=record.get("position") or None,
            linkedin_url=record.get("linkedin_url") or None,
            connected_on=record.get("connected_on") or None,
        )


def _clean_cell(value: str) -> str:
    return value.strip().replace('"', "")
