"""Pluggable fallback search over contacts."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from guestlist.domain.contacts import Contact


class ContactSearchStrategy(ABC):
    """Fallback used when the keyword search on first name finds nothing."""

    @abstractmethod
    def search(self, term: str, contacts: Iterable[Contact]) -> list[Contact]:
        pass


class FuzzyDomainSearch(ContactSearchStrategy):
    """Match contacts whose email domain resembles the search term.

    A contact matches when the lower-cased term is a substring of any
    domain label, any label is a substring of the term, or the term is a
    substring of the whole domain. Terms shorter than ``min_length`` match
    nothing.
    """

    def __init__(self, min_length: int = 2) -> None:
        self._min_length = min_length

    def search(self, term: str, contacts: Iterable[Contact]) -> list[Contact]:
        needle = term.strip().lower()
        if len(needle) < self._min_length:
            return []
        return [c for c in contacts if self.matches(needle, c.email_domain)]

    @staticmethod
    def matches(needle: str, domain: str | None) -> bool:
        if not domain:
            return False
        if needle in domain:
            return True
        labels = [label for label in domain.split(".") if label]
        return any(needle in label or label in needle for label in labels)
