"""Company name derivation from email addresses."""

from collections.abc import Iterable


class CompanyGuesser:
    """Guesses an employer name from the domain of an email address.

    Addresses at consumer mail providers yield no guess. For any other
    domain the second-to-last label is used with its first letter
    capitalised, so ``alice@acme.io`` gives ``Acme`` and
    ``bob@mail.relaystudio.co`` gives ``Relaystudio``.
    """

    def __init__(self, consumer_providers: Iterable[str]) -> None:
        self._consumer_providers = frozenset(
            domain.strip().lower() for domain in consumer_providers
        )

    @property
    def consumer_providers(self) -> frozenset[str]:
        return self._consumer_providers

    def guess(self, email: str | None) -> str | None:
        if not email or "@" not in email:
            return None

        domain = email.split("@")[1].strip().lower()
        if domain in self._consumer_providers:
            return None

        labels = domain.split(".")
        if len(labels) < 2:
            return None
        company = labels[-2]
        if not company:
            return None
        return company[0].upper() + company[1:]
