"""Common API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Consistent JSON envelope for API responses."""

    data: T


class DeleteResult(BaseModel):
    """Generic delete response payload."""

    id: str
    deleted: bool


class StageFailureDetail(BaseModel):
    """Error body naming the failing pipeline stage."""

    stage: str
    message: str
    orphaned_artifact_urls: list[str] = []


class CancelledDetail(BaseModel):
    """Error body for a submission that was reset mid-flight."""

    message: str
    orphaned_artifact_urls: list[str] = []
    scan_id: str | None = None
