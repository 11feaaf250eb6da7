"""File parsers for importing contact lists."""

from guestlist.parsers.csv_parser import ContactCSVParser, guess_name_from_email

__all__ = [
    "ContactCSVParser",
    "guess_name_from_email",
]
