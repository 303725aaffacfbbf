"""Moderation queue request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cattlescan.schemas.scan import ScanRead

FlagFilter = Literal["any", "flagged", "not_flagged"]
HelpfulFilter = Literal["any", "helpful", "not_helpful"]
SortOrder = Literal["asc", "desc"]


class UnconfirmedScanQuery(BaseModel):
    """Explicit, serializable read request for the unconfirmed view."""

    model_config = ConfigDict(frozen=True)

    flag: FlagFilter = "any"
    helpful: HelpfulFilter = "any"
    submitter_id: str | None = None
    order: SortOrder = "desc"
    page: int = Field(default=1, ge=1)


class ConfirmedBreedQuery(BaseModel):
    """Explicit, serializable read request for the confirmed view."""

    model_config = ConfigDict(frozen=True)

    breed: str | None = None
    submitter_id: str | None = None
    order: SortOrder = "desc"
    page: int = Field(default=1, ge=1)


class ConfirmedBreedRead(BaseModel):
    """Serialized confirmed-breed record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    scan_id: str | None
    image_url: str
    breed: str
    confirmed_by_user_id: str | None
    created_at: datetime


class UnconfirmedScanPage(BaseModel):
    items: list[ScanRead]
    total: int
    page: int
    page_size: int
    page_count: int


class ConfirmedBreedPage(BaseModel):
    items: list[ConfirmedBreedRead]
    total: int
    page: int
    page_size: int
    page_count: int


class ConfirmScanRequest(BaseModel):
    breed: str = ""


class BulkConfirmResult(BaseModel):
    breed: str
    created: list[ConfirmedBreedRead]
