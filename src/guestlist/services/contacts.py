"""Contact management: creation, listing/search, imports and cascading deletes."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any
from uuid import UUID

from guestlist.domain.contacts import Contact, normalize_tags
from guestlist.domain.value_objects import ContactSortField, ContactSource, SortOrder
from guestlist.exceptions import (
    BatchOperationError,
    ContactNotFoundError,
    DuplicateEmailError,
    ValidationError,
)
from guestlist.logging_config import get_logger
from guestlist.repositories.interfaces import (
    ContactRepository,
    InvitationRepository,
    UserRepository,
)
from guestlist.services.company import CompanyGuesser
from guestlist.services.interfaces import (
    ContactImportRow,
    ContactService,
    DuplicateRecord,
    ImportResult,
    ImportSummary,
    LinkedInImportRow,
    Page,
    UserSummary,
)
from guestlist.services.policies import require_caller
from guestlist.services.query import paginate, sort_contacts
from guestlist.services.search import ContactSearchStrategy, FuzzyDomainSearch

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "email",
        "phone",
        "company",
        "position",
        "tags",
        "notes",
    }
)

DUPLICATE_EMAIL_REASON = "Email already exists"
MISSING_NAME_REASON = "First name is required"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ContactServiceImpl(ContactService):
    def __init__(
        self,
        contact_repo: ContactRepository,
        invitation_repo: InvitationRepository,
        user_repo: UserRepository,
        company_guesser: CompanyGuesser,
        search_strategy: ContactSearchStrategy | None = None,
        default_page_size: int = 25,
        max_page_size: int = 200,
    ) -> None:
        self._contact_repo = contact_repo
        self._invitation_repo = invitation_repo
        self._user_repo = user_repo
        self._company_guesser = company_guesser
        self._search_strategy = search_strategy or FuzzyDomainSearch()
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def get(self, caller_id: UUID | None, contact_id: UUID) -> Contact | None:
        require_caller(caller_id)
        return self._contact_repo.get(contact_id)

    def list_contacts(
        self,
        caller_id: UUID | None,
        *,
        num_items: int | None = None,
        cursor: str | None = None,
        search: str | None = None,
        company: str | None = None,
        created_by: UUID | None = None,
        sort_by: ContactSortField | str | None = None,
        order: SortOrder | str | None = None,
    ) -> Page[Contact]:
        require_caller(caller_id)
        sort_field = ContactSortField.parse(sort_by)
        sort_order = SortOrder.parse(order)
        page_size = self._page_size(num_items)

        term = search.strip() if search else ""
        if term:
            matches = self._search(term, company)
        elif company:
            matches = list(self._contact_repo.list_by_company(company))
        elif created_by is not None:
            matches = list(self._contact_repo.list_by_created_by(created_by))
        else:
            matches = list(self._contact_repo.list_all())

        return paginate(sort_contacts(matches, sort_field, sort_order), page_size, cursor)

    def _search(self, term: str, company: str | None) -> list[Contact]:
        matches = list(self._contact_repo.search_first_name(term, company))
        if matches:
            return matches

        fuzzy = self._search_strategy.search(term, self._contact_repo.list_all())
        if company:
            fuzzy = [c for c in fuzzy if c.company == company]
        logger.debug("fuzzy_search_fallback", term=term, matches=len(fuzzy))
        return fuzzy

    def _page_size(self, num_items: int | None) -> int:
        if num_items is None:
            return self._default_page_size
        if num_items < 1:
            raise ValidationError(
                "num_items must be at least 1", context={"num_items": num_items}
            )
        return min(num_items, self._max_page_size)

    def create(
        self,
        caller_id: UUID | None,
        first_name: str,
        last_name: str = "",
        email: str | None = None,
        company: str | None = None,
        phone: str | None = None,
        position: str | None = None,
        tags: list[str] | None = None,
        notes: str | None = None,
    ) -> Contact:
        caller = require_caller(caller_id)
        first = (first_name or "").strip()
        if not first:
            raise ValidationError("First name is required")

        email = _clean(email)
        if email and self._contact_repo.get_by_email(email) is not None:
            raise DuplicateEmailError(email)

        contact = self._build_contact(
            owner_id=caller,
            first_name=first,
            last_name=last_name,
            email=email,
            company=company,
            phone=phone,
            position=position,
            tags=tags,
            notes=notes,
            source=ContactSource.MANUAL,
        )
        self._contact_repo.add(contact)
        logger.info(
            "contact_created",
            contact_id=str(contact.id),
            source=contact.source.value,
            company_derived=company is None and contact.company is not None,
        )
        return contact

    def _build_contact(
        self,
        *,
        owner_id: UUID,
        first_name: str,
        last_name: str | None,
        email: str | None,
        company: str | None,
        source: ContactSource,
        phone: str | None = None,
        position: str | None = None,
        tags: list[str] | None = None,
        notes: str | None = None,
    ) -> Contact:
        company = _clean(company)
        if not company and email:
            company = self._company_guesser.guess(email)
        return Contact(
            first_name=first_name.strip(),
            last_name=(last_name or "").strip(),
            email=email,
            phone=_clean(phone),
            company=company,
            position=_clean(position),
            tags=list(tags or []),
            notes=notes,
            source=source,
            created_by=owner_id,
        )

    def update(
        self, caller_id: UUID | None, contact_id: UUID, changes: Mapping[str, Any]
    ) -> Contact:
        require_caller(caller_id)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown contact fields", context={"fields": sorted(unknown)}
            )

        contact = self._contact_repo.get(contact_id)
        if contact is None:
            raise ContactNotFoundError(contact_id)

        if "first_name" in changes:
            first = (changes["first_name"] or "").strip()
            if not first:
                raise ValidationError("First name is required")
            contact.first_name = first
        if "last_name" in changes:
            contact.last_name = (changes["last_name"] or "").strip()
        if "email" in changes:
            email = _clean(changes["email"])
            if email and email != contact.email:
                existing = self._contact_repo.get_by_email(email)
                if existing is not None and existing.id != contact.id:
                    raise DuplicateEmailError(email)
            contact.email = email
        for name in ("phone", "company", "position"):
            if name in changes:
                setattr(contact, name, _clean(changes[name]))
        if "tags" in changes:
            contact.tags = normalize_tags(changes["tags"])
        if "notes" in changes:
            contact.notes = changes["notes"]

        contact.touch()
        self._contact_repo.update(contact)
        logger.info(
            "contact_updated", contact_id=str(contact.id), fields=sorted(changes)
        )
        return contact

    def remove(self, caller_id: UUID | None, contact_id: UUID) -> None:
        require_caller(caller_id)
        if self._contact_repo.get(contact_id) is None:
            raise ContactNotFoundError(contact_id)
        self._delete_with_invitations(contact_id)

    def batch_delete(self, caller_id: UUID | None, contact_ids: Sequence[UUID]) -> int:
        require_caller(caller_id)
        deleted = 0
        failed: list[UUID] = []
        for contact_id in dict.fromkeys(contact_ids):
            if self._contact_repo.get(contact_id) is None:
                failed.append(contact_id)
                continue
            self._delete_with_invitations(contact_id)
            deleted += 1

        if failed:
            logger.warning(
                "batch_partial_failure",
                operation="delete_contacts",
                failed=len(failed),
                applied=deleted,
            )
            raise BatchOperationError("delete contacts", failed, deleted)
        return deleted

    def _delete_with_invitations(self, contact_id: UUID) -> None:
        removed = self._invitation_repo.delete_by_contact(contact_id)
        self._contact_repo.delete(contact_id)
        logger.info(
            "contact_deleted", contact_id=str(contact_id), invitations_removed=removed
        )

    def import_from_csv(
        self, caller_id: UUID | None, rows: Sequence[ContactImportRow]
    ) -> ImportResult:
        caller = require_caller(caller_id)
        return self._import(
            caller,
            rows,
            ContactSource.CSV,
            lambda row: self._build_contact(
                owner_id=caller,
                first_name=row.first_name,
                last_name=row.last_name,
                email=_clean(row.email),
                company=row.company,
                phone=row.phone,
                position=row.position,
                tags=row.tags,
                notes=row.notes,
                source=ContactSource.CSV,
            ),
        )

    def import_from_linkedin(
        self, caller_id: UUID | None, rows: Sequence[LinkedInImportRow]
    ) -> ImportResult:
        caller = require_caller(caller_id)
        return self._import(
            caller,
            rows,
            ContactSource.LINKEDIN,
            lambda row: self._build_contact(
                owner_id=caller,
                first_name=row.first_name,
                last_name=row.last_name,
                email=_clean(row.email),
                company=row.company,
                position=row.position,
                notes=row.synthesized_notes(),
                source=ContactSource.LINKEDIN,
            ),
        )

    def _import(
        self,
        caller: UUID,
        rows: Sequence[ContactImportRow] | Sequence[LinkedInImportRow],
        source: ContactSource,
        build: Callable[[Any], Contact],
    ) -> ImportResult:
        imported: list[UUID] = []
        duplicates: list[DuplicateRecord] = []

        for row in rows:
            name = f"{row.first_name or ''} {row.last_name or ''}".strip()
            email = _clean(row.email)
            if not (row.first_name or "").strip():
                duplicates.append(DuplicateRecord(name, email, MISSING_NAME_REASON))
                continue
            if email and self._contact_repo.get_by_email(email) is not None:
                duplicates.append(DuplicateRecord(name, email, DUPLICATE_EMAIL_REASON))
                continue

            contact = build(row)
            self._contact_repo.add(contact)
            imported.append(contact.id)

        summary = ImportSummary(
            total=len(rows), imported=len(imported), skipped=len(duplicates)
        )
        logger.info(
            "contacts_imported",
            source=source.value,
            owner_id=str(caller),
            total=summary.total,
            imported=summary.imported,
            skipped=summary.skipped,
        )
        return ImportResult(imported=imported, duplicates=duplicates, summary=summary)

    def get_companies(self, caller_id: UUID | None) -> list[str]:
        require_caller(caller_id)
        return sorted(set(self._contact_repo.list_companies()))

    def get_created_by_users(self, caller_id: UUID | None) -> list[UserSummary]:
        require_caller(caller_id)
        summaries = []
        for user_id in dict.fromkeys(self._contact_repo.list_creator_ids()):
            user = self._user_repo.get(user_id)
            if user is not None:
                summaries.append(UserSummary.from_user(user))
        return sorted(summaries, key=lambda s: s.name)

    def get_sources(self, caller_id: UUID | None) -> list[str]:
        require_caller(caller_id)
        return sorted(set(self._contact_repo.list_sources()))

    def suggest_company_from_email(
        self, caller_id: UUID | None, email: str
    ) -> str | None:
        require_caller(caller_id)
        return self._company_guesser.guess(email)
