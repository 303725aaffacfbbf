"""Scan submission, lookup and end-user review routes."""

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from cattlescan.config import get_settings
from cattlescan.db.dependencies import get_db
from cattlescan.errors import ScanError
from cattlescan.inference.classifier_interface import ImageClassifier
from cattlescan.inference.types import ImagePayload, Prediction
from cattlescan.routers.common import (
    current_user_id,
    get_artifact_store,
    get_classifier,
    get_location_resolver,
    read_upload,
    require_store_artifact_url,
    to_http_error,
)
from cattlescan.schemas.common import ApiResponse
from cattlescan.schemas.scan import (
    FlagUpdateRequest,
    HelpfulnessUpdateRequest,
    PersistRetryRequest,
    PipelineStateRead,
    PredictionRead,
    ScanRead,
    SubmissionRead,
)
from cattlescan.services.location import LocationResolver
from cattlescan.services.review import set_helpfulness, set_inspection_flag
from cattlescan.services.scans import get_scan
from cattlescan.services.storage import ArtifactStore
from cattlescan.services.submission import SubmissionOutcome, SubmissionPipeline


router = APIRouter(prefix="/scans")


def _build_pipeline(
    db: Session,
    classifier: ImageClassifier,
    store: ArtifactStore,
    location_resolver: LocationResolver,
) -> SubmissionPipeline:
    return SubmissionPipeline(
        db,
        classifier,
        store,
        location_resolver=location_resolver,
        artifact_prefix=get_settings().artifact_prefix,
    )


def _submission_read(pipeline: SubmissionPipeline, outcome: SubmissionOutcome) -> SubmissionRead:
    snapshot = pipeline.snapshot()
    return SubmissionRead(
        scan_id=outcome.scan_id,
        image_url=outcome.image_url,
        headline=PredictionRead.model_validate(outcome.headline),
        predictions=[PredictionRead.model_validate(item) for item in outcome.predictions],
        location_resolved=outcome.location is not None,
        pipeline=PipelineStateRead(
            state=snapshot.state.value,
            failed_stage=snapshot.failed_stage,
            error=snapshot.error,
        ),
    )


@router.post("", response_model=ApiResponse[SubmissionRead], status_code=201)
def submit_scan(
    image: ImagePayload = Depends(read_upload),
    user_id: str | None = Depends(current_user_id),
    db: Session = Depends(get_db),
    classifier: ImageClassifier = Depends(get_classifier),
    store: ArtifactStore = Depends(get_artifact_store),
    location_resolver: LocationResolver = Depends(get_location_resolver),
) -> ApiResponse[SubmissionRead]:
    """Classify, archive and record one image."""

    pipeline = _build_pipeline(db, classifier, store, location_resolver)
    try:
        outcome = pipeline.submit(image, submitter_id=user_id)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    return ApiResponse(data=_submission_read(pipeline, outcome))


@router.post("/persist", response_model=ApiResponse[SubmissionRead], status_code=201)
def persist_uploaded_scan(
    payload: PersistRetryRequest,
    user_id: str | None = Depends(current_user_id),
    db: Session = Depends(get_db),
    classifier: ImageClassifier = Depends(get_classifier),
    store: ArtifactStore = Depends(get_artifact_store),
    location_resolver: LocationResolver = Depends(get_location_resolver),
) -> ApiResponse[SubmissionRead]:
    """Record a scan for an image that was already uploaded, without re-uploading."""

    image_url = require_store_artifact_url(store, payload.image_url, get_settings().artifact_prefix)
    pipeline = _build_pipeline(db, classifier, store, location_resolver)
    try:
        outcome = pipeline.resume_persistence(
            image_url=image_url,
            predictions=[Prediction(label=item.label, confidence=item.confidence) for item in payload.predictions],
            submitter_id=user_id,
        )
    except ScanError as exc:
        raise to_http_error(exc) from exc
    return ApiResponse(data=_submission_read(pipeline, outcome))


@router.get("/{scan_id}", response_model=ApiResponse[ScanRead])
def read_scan(
    scan_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ScanRead]:
    scan = get_scan(db, scan_id)
    if scan is None:
        raise HTTPException(status_code=404, detail="Scan not found")
    return ApiResponse(data=ScanRead.model_validate(scan))


@router.put("/{scan_id}/helpfulness", response_model=ApiResponse[ScanRead])
def put_helpfulness(
    payload: HelpfulnessUpdateRequest,
    scan_id: str = Path(..., min_length=1),
    user_id: str | None = Depends(current_user_id),
    db: Session = Depends(get_db),
) -> ApiResponse[ScanRead]:
    """Record whether the prediction was helpful."""

    try:
        scan = set_helpfulness(db, scan_id, user_id, payload.is_helpful)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if scan is None:
        raise HTTPException(status_code=404, detail="Scan not found")
    return ApiResponse(data=ScanRead.model_validate(scan))


@router.put("/{scan_id}/flag", response_model=ApiResponse[ScanRead])
def put_inspection_flag(
    payload: FlagUpdateRequest,
    scan_id: str = Path(..., min_length=1),
    user_id: str | None = Depends(current_user_id),
    db: Session = Depends(get_db),
) -> ApiResponse[ScanRead]:
    """Flag or unflag a scan for moderator inspection."""

    try:
        scan = set_inspection_flag(db, scan_id, user_id, payload.flagged, payload.reason)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if scan is None:
        raise HTTPException(status_code=404, detail="Scan not found")
    return ApiResponse(data=ScanRead.model_validate(scan))
