"""API routes for Guestlist."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from guestlist import __version__
from guestlist.api.auth import CallerId
from guestlist.api.dependencies import (
    get_contact_service,
    get_invitation_service,
    get_party_service,
    get_user_service,
)
from guestlist.api.schemas import (
    AttendanceStatsResponse,
    BatchIdsRequest,
    BulkInviteRequest,
    BulkInviteResponse,
    CompanySuggestionResponse,
    ContactCreate,
    ContactImportRequest,
    ContactPageResponse,
    ContactResponse,
    ContactUpdate,
    CountResponse,
    CsvTextImportRequest,
    DuplicateRecordResponse,
    HealthResponse,
    ImportResultResponse,
    ImportSummaryResponse,
    InvitationCreate,
    InvitationResponse,
    InvitationStatusBatchRequest,
    InvitationStatusUpdate,
    InvitationWithContactResponse,
    InvitationWithPartyResponse,
    LinkedInImportRequest,
    PartyCreate,
    PartyDetailsResponse,
    PartyResponse,
    PartyStatusBatchRequest,
    PartyUpdate,
    PublicAttendRequest,
    PublicAttendResponse,
    PublicPartyResponse,
    UserResponse,
    UserSummaryResponse,
)
from guestlist.domain.value_objects import (
    ContactSortField,
    InvitationStatus,
    SortOrder,
)
from guestlist.exceptions import ContactNotFoundError, ValidationError
from guestlist.parsers.csv_parser import ContactCSVParser
from guestlist.services.interfaces import (
    ContactImportRow,
    ContactService,
    ImportResult,
    InvitationService,
    InvitationWithContact,
    InvitationWithParty,
    LinkedInImportRow,
    PartyService,
    UserService,
)

# Create routers
health_router = APIRouter(tags=["health"])
contact_router = APIRouter(prefix="/contacts", tags=["contacts"])
party_router = APIRouter(prefix="/parties", tags=["parties"])
invitation_router = APIRouter(prefix="/invitations", tags=["invitations"])
public_router = APIRouter(prefix="/public", tags=["public"])
user_router = APIRouter(tags=["users"])

Contacts = Annotated[ContactService, Depends(get_contact_service)]
Parties = Annotated[PartyService, Depends(get_party_service)]
Invitations = Annotated[InvitationService, Depends(get_invitation_service)]
Users = Annotated[UserService, Depends(get_user_service)]


# Helper functions
def _import_to_response(result: ImportResult) -> ImportResultResponse:
    return ImportResultResponse(
        imported=result.imported,
        duplicates=[
            DuplicateRecordResponse.model_validate(d) for d in result.duplicates
        ],
        summary=ImportSummaryResponse.model_validate(result.summary),
    )


def _with_contact_to_response(
    item: InvitationWithContact,
) -> InvitationWithContactResponse:
    return InvitationWithContactResponse(
        invitation=InvitationResponse.model_validate(item.invitation),
        contact=ContactResponse.model_validate(item.contact) if item.contact else None,
        invited_by=UserSummaryResponse.model_validate(item.invited_by)
        if item.invited_by
        else None,
    )


def _with_party_to_response(item: InvitationWithParty) -> InvitationWithPartyResponse:
    return InvitationWithPartyResponse(
        invitation=InvitationResponse.model_validate(item.invitation),
        party=PartyResponse.model_validate(item.party) if item.party else None,
    )


# Health endpoint
@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


# User endpoints
@user_router.get("/me", response_model=UserResponse | None)
def current_user(caller_id: CallerId, users: Users) -> UserResponse | None:
    """The signed-in user, or null when no bearer token was sent."""
    if caller_id is None:
        return None
    user = users.get(caller_id)
    return UserResponse.model_validate(user) if user else None


# Contact endpoints
@contact_router.get("", response_model=ContactPageResponse)
def list_contacts(
    caller_id: CallerId,
    contacts: Contacts,
    num_items: Annotated[int | None, Query(ge=1)] = None,
    cursor: str | None = None,
    search: str | None = None,
    company: str | None = None,
    created_by: UUID | None = None,
    sort_by: ContactSortField | None = None,
    order: SortOrder | None = None,
) -> ContactPageResponse:
    """List contacts with optional search, filtering and sorting."""
    page = contacts.list_contacts(
        caller_id,
        num_items=num_items,
        cursor=cursor,
        search=search,
        company=company,
        created_by=created_by,
        sort_by=sort_by,
        order=order,
    )
    return ContactPageResponse(
        items=[ContactResponse.model_validate(c) for c in page.items],
        is_done=page.is_done,
        continue_cursor=page.continue_cursor,
    )


@contact_router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_contact(
    payload: ContactCreate, caller_id: CallerId, contacts: Contacts
) -> ContactResponse:
    """Create a contact, deriving the company from the email when absent."""
    contact = contacts.create(caller_id, **payload.model_dump())
    return ContactResponse.model_validate(contact)


@contact_router.get("/companies", response_model=list[str])
def list_companies(caller_id: CallerId, contacts: Contacts) -> list[str]:
    return contacts.get_companies(caller_id)


@contact_router.get("/sources", response_model=list[str])
def list_sources(caller_id: CallerId, contacts: Contacts) -> list[str]:
    return contacts.get_sources(caller_id)


@contact_router.get("/creators", response_model=list[UserSummaryResponse])
def list_creators(caller_id: CallerId, contacts: Contacts) -> list[UserSummaryResponse]:
    return [
        UserSummaryResponse.model_validate(u)
        for u in contacts.get_created_by_users(caller_id)
    ]


@contact_router.get("/suggest-company", response_model=CompanySuggestionResponse)
def suggest_company(
    email: str, caller_id: CallerId, contacts: Contacts
) -> CompanySuggestionResponse:
    return CompanySuggestionResponse(
        email=email, company=contacts.suggest_company_from_email(caller_id, email)
    )


@contact_router.post("/batch-delete", response_model=CountResponse)
def batch_delete_contacts(
    payload: BatchIdsRequest, caller_id: CallerId, contacts: Contacts
) -> CountResponse:
    """Delete contacts and their invitations."""
    return CountResponse(count=contacts.batch_delete(caller_id, payload.ids))


@contact_router.post("/import/csv", response_model=ImportResultResponse)
def import_csv(
    payload: ContactImportRequest, caller_id: CallerId, contacts: Contacts
) -> ImportResultResponse:
    rows = [ContactImportRow(**row.model_dump()) for row in payload.rows]
    return _import_to_response(contacts.import_from_csv(caller_id, rows))


@contact_router.post("/import/linkedin", response_model=ImportResultResponse)
def import_linkedin(
    payload: LinkedInImportRequest, caller_id: CallerId, contacts: Contacts
) -> ImportResultResponse:
    rows = [LinkedInImportRow(**row.model_dump()) for row in payload.rows]
    return _import_to_response(contacts.import_from_linkedin(caller_id, rows))


@contact_router.post("/import/csv-text", response_model=ImportResultResponse)
def import_csv_text(
    payload: CsvTextImportRequest, caller_id: CallerId, contacts: Contacts
) -> ImportResultResponse:
    """Parse raw CSV text (optionally a LinkedIn export) and import it."""
    try:
        parser = ContactCSVParser(payload.column_mapping)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    if payload.linkedin:
        result = contacts.import_from_linkedin(
            caller_id, parser.parse_linkedin_text(payload.text)
        )
    else:
        result = contacts.import_from_csv(caller_id, parser.parse_text(payload.text))
    return _import_to_response(result)


@contact_router.get("/{contact_id}", response_model=ContactResponse)
def get_contact(
    contact_id: UUID, caller_id: CallerId, contacts: Contacts
) -> ContactResponse:
    """Get contact by ID."""
    contact = contacts.get(caller_id, contact_id)
    if contact is None:
        raise ContactNotFoundError(contact_id)
    return ContactResponse.model_validate(contact)


@contact_router.patch("/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: UUID, payload: ContactUpdate, caller_id: CallerId, contacts: Contacts
) -> ContactResponse:
    contact = contacts.update(
        caller_id, contact_id, payload.model_dump(exclude_unset=True)
    )
    return ContactResponse.model_validate(contact)


@contact_router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(contact_id: UUID, caller_id: CallerId, contacts: Contacts) -> Response:
    contacts.remove(caller_id, contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@contact_router.get(
    "/{contact_id}/invitations", response_model=list[InvitationWithPartyResponse]
)
def list_contact_invitations(
    contact_id: UUID, caller_id: CallerId, invitations: Invitations
) -> list[InvitationWithPartyResponse]:
    return [
        _with_party_to_response(item)
        for item in invitations.get_by_contact(caller_id, contact_id)
    ]


# Party endpoints
@party_router.get("", response_model=list[PartyResponse])
def list_parties(caller_id: CallerId, parties: Parties) -> list[PartyResponse]:
    """List all parties, newest first."""
    return [PartyResponse.model_validate(p) for p in parties.list_parties(caller_id)]


@party_router.post(
    "",
    response_model=PartyResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_party(
    payload: PartyCreate, caller_id: CallerId, parties: Parties
) -> PartyResponse:
    party = parties.create(caller_id, **payload.model_dump())
    return PartyResponse.model_validate(party)


@party_router.post("/batch-status", response_model=CountResponse)
def batch_update_party_status(
    payload: PartyStatusBatchRequest, caller_id: CallerId, parties: Parties
) -> CountResponse:
    return CountResponse(
        count=parties.batch_update_status(caller_id, payload.ids, payload.status)
    )


@party_router.get("/{party_id}", response_model=PartyDetailsResponse)
def get_party(party_id: UUID, caller_id: CallerId, parties: Parties) -> PartyDetailsResponse:
    """Get a party with its invitations, contacts and inviters."""
    details = parties.get_with_invitations(caller_id, party_id)
    return PartyDetailsResponse(
        party=PartyResponse.model_validate(details.party),
        invitations=[_with_contact_to_response(i) for i in details.invitations],
    )


@party_router.patch("/{party_id}", response_model=PartyResponse)
def update_party(
    party_id: UUID, payload: PartyUpdate, caller_id: CallerId, parties: Parties
) -> PartyResponse:
    party = parties.update(caller_id, party_id, payload.model_dump(exclude_unset=True))
    return PartyResponse.model_validate(party)


@party_router.get(
    "/{party_id}/invitations", response_model=list[InvitationWithContactResponse]
)
def list_party_invitations(
    party_id: UUID,
    caller_id: CallerId,
    invitations: Invitations,
    status_filter: Annotated[InvitationStatus | None, Query(alias="status")] = None,
    search: str | None = None,
) -> list[InvitationWithContactResponse]:
    return [
        _with_contact_to_response(item)
        for item in invitations.get_by_party(caller_id, party_id, status_filter, search)
    ]


@party_router.get("/{party_id}/stats", response_model=AttendanceStatsResponse)
def party_attendance_stats(
    party_id: UUID, caller_id: CallerId, invitations: Invitations
) -> AttendanceStatsResponse:
    stats = invitations.get_attendance_stats(caller_id, party_id)
    return AttendanceStatsResponse(
        party_id=stats.party_id,
        counts=stats.counts,
        total=stats.total,
        attended=stats.attended,
    )


# Invitation endpoints
@invitation_router.post(
    "",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_invitation(
    payload: InvitationCreate, caller_id: CallerId, invitations: Invitations
) -> InvitationResponse:
    invitation = invitations.create(
        caller_id, payload.party_id, payload.contact_id, payload.notes
    )
    return InvitationResponse.model_validate(invitation)


@invitation_router.post("/bulk", response_model=BulkInviteResponse)
def bulk_invite(
    payload: BulkInviteRequest, caller_id: CallerId, invitations: Invitations
) -> BulkInviteResponse:
    """Invite many contacts, skipping the ones already invited."""
    created = invitations.bulk_invite(caller_id, payload.party_id, payload.contact_ids)
    return BulkInviteResponse(created=created)


@invitation_router.post("/batch-status", response_model=CountResponse)
def batch_update_invitation_status(
    payload: InvitationStatusBatchRequest, caller_id: CallerId, invitations: Invitations
) -> CountResponse:
    return CountResponse(
        count=invitations.batch_update_status(caller_id, payload.ids, payload.status)
    )


@invitation_router.post("/batch-delete", response_model=CountResponse)
def batch_delete_invitations(
    payload: BatchIdsRequest, caller_id: CallerId, invitations: Invitations
) -> CountResponse:
    return CountResponse(count=invitations.batch_delete(caller_id, payload.ids))


@invitation_router.patch("/{invitation_id}/status", response_model=InvitationResponse)
def update_invitation_status(
    invitation_id: UUID,
    payload: InvitationStatusUpdate,
    caller_id: CallerId,
    invitations: Invitations,
) -> InvitationResponse:
    invitation = invitations.update_status(
        caller_id, invitation_id, payload.status, payload.notes
    )
    return InvitationResponse.model_validate(invitation)


@invitation_router.post(
    "/{invitation_id}/undo-check-in", response_model=InvitationResponse
)
def undo_check_in(
    invitation_id: UUID, caller_id: CallerId, invitations: Invitations
) -> InvitationResponse:
    return InvitationResponse.model_validate(
        invitations.undo_check_in(caller_id, invitation_id)
    )


@invitation_router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invitation(
    invitation_id: UUID, caller_id: CallerId, invitations: Invitations
) -> Response:
    invitations.remove(caller_id, invitation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Public endpoints (no authentication)
@public_router.get("/parties/{party_id}", response_model=PublicPartyResponse)
def get_public_party(party_id: UUID, parties: Parties) -> PublicPartyResponse:
    return PublicPartyResponse.model_validate(parties.get_public(party_id))


@public_router.post(
    "/parties/{party_id}/attend",
    response_model=PublicAttendResponse,
    status_code=status.HTTP_201_CREATED,
)
def public_attend(
    party_id: UUID, payload: PublicAttendRequest, invitations: Invitations
) -> PublicAttendResponse:
    """Self-service attendance registration."""
    result = invitations.public_attend(
        party_id, payload.first_name, payload.last_name, payload.email
    )
    return PublicAttendResponse.model_validate(result)
