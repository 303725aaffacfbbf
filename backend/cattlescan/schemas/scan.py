"""Scan submission, review and flag schemas."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PredictionRead(BaseModel):
    """One ranked classifier label."""

    model_config = ConfigDict(from_attributes=True)

    label: str
    confidence: float = Field(ge=0.0, le=100.0)


class ScanRead(BaseModel):
    """Serialized scan record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    image_url: str
    predictions: list[PredictionRead] = Field(
        validation_alias=AliasChoices("predictions", "predictions_json"),
    )
    latitude: float | None = None
    longitude: float | None = None
    location_accuracy_m: float | None = None
    submitter_id: str | None = None
    is_helpful: bool | None = None
    flagged_for_inspection: bool = False
    inspection_reason: str | None = None
    created_at: datetime


class PipelineStateRead(BaseModel):
    """Where a submission ended up in the pipeline."""

    state: Literal["idle", "inferring", "uploading", "persisting", "complete", "failed"]
    failed_stage: Literal["inference", "upload", "persistence"] | None = None
    error: str | None = None


class SubmissionRead(BaseModel):
    """Result of a completed submission."""

    scan_id: str
    image_url: str
    headline: PredictionRead
    predictions: list[PredictionRead]
    location_resolved: bool
    pipeline: PipelineStateRead


class PersistRetryRequest(BaseModel):
    """Stage-aware retry: persist a scan for an artifact that was already uploaded."""

    image_url: str = Field(min_length=1)
    predictions: list[PredictionRead] = Field(min_length=1)


class HelpfulnessUpdateRequest(BaseModel):
    is_helpful: bool


class FlagUpdateRequest(BaseModel):
    flagged: bool
    reason: str | None = Field(default=None, max_length=2000)
