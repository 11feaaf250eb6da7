"""Pydantic v2 schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from guestlist.domain.value_objects import ContactSource, InvitationStatus, PartyStatus


class HealthResponse(BaseModel):
    """Schema for health check response."""

    status: str
    version: str = "0.1.0"


class CountResponse(BaseModel):
    count: int


class BatchIdsRequest(BaseModel):
    """Schema for batch operations addressed by id."""

    ids: list[UUID]


# Contact Schemas
class ContactCreate(BaseModel):
    """Schema for creating a contact."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(default="", max_length=255)
    email: str | None = Field(default=None, max_length=320)
    company: str | None = None
    phone: str | None = None
    position: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None


class ContactUpdate(BaseModel):
    """Schema for patching a contact; only fields that are sent are changed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    company: str | None = None
    phone: str | None = None
    position: str | None = None
    tags: list[str] | None = None
    notes: str | None = None


class ContactResponse(BaseModel):
    """Schema for contact response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    company: str | None
    position: str | None
    source: ContactSource
    tags: list[str]
    notes: str | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime


class ContactPageResponse(BaseModel):
    items: list[ContactResponse]
    is_done: bool
    continue_cursor: str | None = None


class UserSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class UserResponse(BaseModel):
    """The signed-in user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None
    name: str | None
    display_name: str
    created_at: datetime


class CompanySuggestionResponse(BaseModel):
    email: str
    company: str | None


# Import Schemas
class ContactImportRowSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str
    last_name: str = ""
    email: str | None = None
    company: str | None = None
    phone: str | None = None
    position: str | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None


class LinkedInImportRowSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str
    last_name: str = ""
    email: str | None = None
    company: str | None = None
    position: str | None = None
    linkedin_url: str | None = None
    connected_on: str | None = None


class ContactImportRequest(BaseModel):
    rows: list[ContactImportRowSchema]


class LinkedInImportRequest(BaseModel):
    rows: list[LinkedInImportRowSchema]


class CsvTextImportRequest(BaseModel):
    """Raw CSV text with a header row, plus an optional field -> header mapping."""

    text: str = Field(..., min_length=1)
    column_mapping: dict[str, str] | None = None
    linkedin: bool = False


class DuplicateRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    email: str | None
    reason: str


class ImportSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    imported: int
    skipped: int


class ImportResultResponse(BaseModel):
    imported: list[UUID]
    duplicates: list[DuplicateRecordResponse]
    summary: ImportSummaryResponse


# Party Schemas
class PartyCreate(BaseModel):
    """Schema for creating a party."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    date: datetime | None = None
    location: str | None = None
    status: PartyStatus = PartyStatus.PLANNING


class PartyUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    date: datetime | None = None
    location: str | None = None
    status: PartyStatus | None = None


class PartyStatusBatchRequest(BaseModel):
    ids: list[UUID]
    status: PartyStatus


class PartyResponse(BaseModel):
    """Schema for party response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    date: datetime | None
    location: str | None
    status: PartyStatus
    created_by: UUID
    created_at: datetime
    updated_at: datetime


class PublicPartyResponse(BaseModel):
    """Unauthenticated view of a party."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    date: datetime | None
    location: str | None
    status: PartyStatus


# Invitation Schemas
class InvitationCreate(BaseModel):
    party_id: UUID
    contact_id: UUID
    notes: str | None = None


class BulkInviteRequest(BaseModel):
    party_id: UUID
    contact_ids: list[UUID]


class BulkInviteResponse(BaseModel):
    created: list[UUID]


class InvitationStatusUpdate(BaseModel):
    status: InvitationStatus
    notes: str | None = None


class InvitationStatusBatchRequest(BaseModel):
    ids: list[UUID]
    status: InvitationStatus


class InvitationResponse(BaseModel):
    """Schema for invitation response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    party_id: UUID
    contact_id: UUID
    invited_by: UUID
    status: InvitationStatus
    sent_at: datetime | None
    responded_at: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class InvitationWithContactResponse(BaseModel):
    invitation: InvitationResponse
    contact: ContactResponse | None
    invited_by: UserSummaryResponse | None


class InvitationWithPartyResponse(BaseModel):
    invitation: InvitationResponse
    party: PartyResponse | None


class PartyDetailsResponse(BaseModel):
    party: PartyResponse
    invitations: list[InvitationWithContactResponse]


class AttendanceStatsResponse(BaseModel):
    party_id: UUID
    counts: dict[str, int]
    total: int
    attended: int


class PublicAttendRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(default="", max_length=255)
    email: str | None = Field(default=None, max_length=320)


class PublicAttendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contact_id: UUID
    invitation_id: UUID
    contact_created: bool
    invitation_created: bool
