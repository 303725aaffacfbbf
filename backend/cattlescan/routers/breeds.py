"""Breed catalogue, lineage and map routes."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from cattlescan.config import get_settings
from cattlescan.db.dependencies import get_db
from cattlescan.errors import ScanError
from cattlescan.inference.types import ImagePayload
from cattlescan.routers.common import get_artifact_store, read_upload, require_admin, to_http_error
from cattlescan.schemas.breed import (
    BreedCreate,
    BreedDetailRead,
    BreedMapResponse,
    BreedOriginCreate,
    BreedOriginRead,
    BreedRead,
)
from cattlescan.schemas.common import ApiResponse, DeleteResult
from cattlescan.services.breeds import (
    attach_stock_image,
    create_breed,
    create_breed_origin,
    delete_breed,
    delete_breed_origin,
    get_breed,
    list_breed_map_points,
    list_breed_origins,
    list_breeds,
)
from cattlescan.services.storage import ArtifactStore


router = APIRouter()


@router.get("/breeds", response_model=ApiResponse[list[BreedRead]])
def get_breeds(db: Session = Depends(get_db)) -> ApiResponse[list[BreedRead]]:
    """List every known breed by name."""

    return ApiResponse(data=[BreedRead.model_validate(breed) for breed in list_breeds(db)])


@router.get("/breeds/{name}", response_model=ApiResponse[BreedDetailRead])
def get_breed_detail(
    name: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[BreedDetailRead]:
    """Breed information shown next to a prediction."""

    breed = get_breed(db, name)
    if breed is None:
        raise HTTPException(status_code=404, detail="Breed not found")
    return ApiResponse(data=breed)


@router.post("/breeds", response_model=ApiResponse[BreedRead], status_code=201)
def post_breed(
    payload: BreedCreate,
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[BreedRead]:
    try:
        breed = create_breed(db, payload)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    return ApiResponse(data=BreedRead.model_validate(breed))


@router.delete("/breeds/{name}", response_model=ApiResponse[DeleteResult])
def remove_breed(
    name: str = Path(..., min_length=1),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    try:
        deleted = delete_breed(db, name)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Breed not found")
    return ApiResponse(data=DeleteResult(id=name, deleted=True))


@router.post("/breeds/{name}/stock-image", response_model=ApiResponse[BreedRead])
def post_stock_image(
    name: str = Path(..., min_length=1),
    image: ImagePayload = Depends(read_upload),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
    store: ArtifactStore = Depends(get_artifact_store),
) -> ApiResponse[BreedRead]:
    """Attach a reference photo to a breed."""

    try:
        breed = attach_stock_image(db, store, name, image, artifact_prefix=get_settings().artifact_prefix)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if breed is None:
        raise HTTPException(status_code=404, detail="Breed not found")
    return ApiResponse(data=BreedRead.model_validate(breed))


@router.get("/breed-origins", response_model=ApiResponse[list[BreedOriginRead]])
def get_breed_origins(db: Session = Depends(get_db)) -> ApiResponse[list[BreedOriginRead]]:
    return ApiResponse(data=[BreedOriginRead.model_validate(origin) for origin in list_breed_origins(db)])


@router.post("/breed-origins", response_model=ApiResponse[BreedOriginRead], status_code=201)
def post_breed_origin(
    payload: BreedOriginCreate,
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[BreedOriginRead]:
    """Record that one breed descends from another."""

    try:
        origin = create_breed_origin(db, payload)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    return ApiResponse(data=BreedOriginRead.model_validate(origin))


@router.delete("/breed-origins/{origin_id}", response_model=ApiResponse[DeleteResult])
def remove_breed_origin(
    origin_id: int = Path(..., ge=1),
    _: str = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    try:
        deleted = delete_breed_origin(db, origin_id)
    except ScanError as exc:
        raise to_http_error(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Breed origin not found")
    return ApiResponse(data=DeleteResult(id=str(origin_id), deleted=True))


@router.get("/breed-map", response_model=ApiResponse[BreedMapResponse])
def get_breed_map(
    breed: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ApiResponse[BreedMapResponse]:
    """Located confirmed breeds, optionally narrowed to one breed."""

    return ApiResponse(data=list_breed_map_points(db, breed=breed))
