"""Sorting and offset pagination shared by the contact listing paths."""

import base64
import binascii
from collections.abc import Sequence
from typing import Any, TypeVar

from guestlist.domain.contacts import Contact
from guestlist.domain.value_objects import ContactSortField, SortOrder
from guestlist.exceptions import InvalidCursorError
from guestlist.services.interfaces import Page

T = TypeVar("T")

_CURSOR_PREFIX = "offset:"


def _sort_key(field: ContactSortField):
    if field == ContactSortField.FIRST_NAME:
        return lambda c: c.first_name or ""
    if field == ContactSortField.LAST_NAME:
        return lambda c: c.last_name or ""
    if field == ContactSortField.EMAIL:
        return lambda c: c.email or ""
    if field == ContactSortField.COMPANY:
        return lambda c: c.company or ""
    return lambda c: c.created_at


def sort_contacts(
    contacts: Sequence[Contact],
    sort_by: ContactSortField = ContactSortField.CREATED_TIME,
    order: SortOrder = SortOrder.DESC,
) -> list[Contact]:
    """Stable sort; string fields compare case-sensitively, missing values as ""."""
    return sorted(
        contacts, key=_sort_key(sort_by), reverse=order == SortOrder.DESC
    )


def encode_cursor(offset: int) -> str:
    raw = f"{_CURSOR_PREFIX}{offset}".encode()
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str | None) -> int:
    if not cursor:
        return 0
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("ascii")
    except (binascii.Error, UnicodeError, ValueError):
        raise InvalidCursorError(cursor) from None
    if not raw.startswith(_CURSOR_PREFIX):
        raise InvalidCursorError(cursor)
    value = raw[len(_CURSOR_PREFIX) :]
    if not value.isdigit():
        raise InvalidCursorError(cursor)
    return int(value)


def paginate(items: Sequence[T], num_items: int, cursor: str | None = None) -> Page[T]:
    start = decode_cursor(cursor)
    end = min(start + num_items, len(items))
    is_done = end >= len(items)
    page_items: list[Any] = list(items[start:end])
    return Page(
        items=page_items,
        is_done=is_done,
        continue_cursor=None if is_done else encode_cursor(end),
    )
