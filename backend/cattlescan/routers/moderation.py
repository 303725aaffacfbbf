"""Admin moderation routes: unconfirmed queue, confirmations and bulk import."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Query, UploadFile
from sqlalchemy.orm import Session

from cattlescan.config import get_settings
from cattlescan.db.dependencies import get_db
from cattlescan.errors import ScanError
from cattlescan.routers.common import get_artifact_store, require_admin, to_http_error, to_image_payload
from cattlescan.schemas.common import ApiResponse, DeleteResult
from cattlescan.schemas.moderation import (
    BulkConfirmResult,
    ConfirmedBreedPage,
    ConfirmedBreedQuery,
    ConfirmedBreedRead,
    ConfirmScanRequest,
    FlagFilter,
    HelpfulFilter,
    SortOrder,
    UnconfirmedScanPage,
    UnconfirmedScanQuery,
)
from cattlescan.services.breeds import breed_exists
from cattlescan.services.moderation import (
    bulk_confirm_images,
    confirm_scan,
    delete_confirmed_breed,
    list_confirmed_breeds,
    list_unconfirmed_scans,
)
from cattlescan.services.storage import ArtifactStore


router = APIRouter(prefix="/moderation")


def _require_known_breed(db: Session, breed: str) -> None:
    if breed.strip() and not breed_exists(db, breed):
        raise HTTPException(status_code=422, detail=f"Unknown breed: {breed.strip()!r}")


@router.get("/scans/unconfirmed", response_model=ApiResponse[UnconfirmedScanPage])
def get_unconfirmed_scans(
    flag: FlagFilter = Query(default="any"),
    helpful: HelpfulFilter = Query(default="any"),
    submitter_id: str | None = Query(default=None),
    order: SortOrder = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[UnconfirmedScanPage]:
    """Page through scans that still need a confirmed breed."""

    query = UnconfirmedScanQuery(
        flag=flag,
        helpful=helpful,
        submitter_id=submitter_id,
        order=order,
        page=page,
    )
    return ApiResponse(data=list_unconfirmed_scans(db, query))


@router.get("/confirmed", response_model=ApiResponse[ConfirmedBreedPage])
def get_confirmed_breeds(
    breed: str | None = Query(default=None),
    submitter_id: str | None = Query(default=None),
    order: SortOrder = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[ConfirmedBreedPage]:
    query = ConfirmedBreedQuery(breed=breed, submitter_id=submitter_id, order=order, page=page)
    return ApiResponse(data=list_confirmed_breeds(db, query))


@router.post("/scans/{scan_id}/confirm", response_model=ApiResponse[ConfirmedBreedRead], status_code=201)
def post_confirm_scan(
    payload: ConfirmScanRequest,
    scan_id: str = Path(..., min_length=1),
    moderator_id: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[ConfirmedBreedRead]:
    """Commit the moderator's breed for one scan."""

    _require_known_breed(db, payload.breed)
    try:
        record = confirm_scan(db, scan_id, payload.breed, moderator_id)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if record is None:
        raise HTTPException(status_code=404, detail="Scan not found")
    return ApiResponse(data=ConfirmedBreedRead.model_validate(record))


@router.delete("/confirmed/{confirmed_id}", response_model=ApiResponse[DeleteResult])
def remove_confirmed_breed(
    confirmed_id: str = Path(..., min_length=1),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    try:
        deleted = delete_confirmed_breed(db, confirmed_id)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Confirmed breed not found")
    return ApiResponse(data=DeleteResult(id=confirmed_id, deleted=True))


@router.post("/confirmed/bulk", response_model=ApiResponse[BulkConfirmResult], status_code=201)
def post_bulk_confirmed_images(
    breed: str = Form(default=""),
    images: list[UploadFile] = File(default=[]),
    moderator_id: str = Depends(require_admin),
    db: Session = Depends(get_db),
    store: ArtifactStore = Depends(get_artifact_store),
) -> ApiResponse[BulkConfirmResult]:
    """Upload reference images of one breed; all or nothing is recorded."""

    _require_known_breed(db, breed)
    payloads = [to_image_payload(upload) for upload in images]
    try:
        records = bulk_confirm_images(
            db,
            store,
            breed,
            payloads,
            moderator_id,
            artifact_prefix=get_settings().artifact_prefix,
        )
    except ScanError as exc:
        raise to_http_error(exc) from exc
    return ApiResponse(
        data=BulkConfirmResult(
            breed=breed.strip(),
            created=[ConfirmedBreedRead.model_validate(record) for record in records],
        )
    )
