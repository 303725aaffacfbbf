"""Breed catalogue, lineage edges and the confirmed-breed map feed."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cattlescan.errors import PersistenceFailure, PreconditionFailure, ValidationFailure
from cattlescan.inference.types import ImagePayload
from cattlescan.models.breed import Breed
from cattlescan.models.breed_origin import BreedOrigin
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan
from cattlescan.schemas.breed import (
    BreedCreate,
    BreedDetailRead,
    BreedMapPoint,
    BreedMapResponse,
    BreedOriginCreate,
    BreedOriginLink,
    BreedRead,
)
from cattlescan.services.storage import ArtifactStore, build_artifact_path
from cattlescan.vocabulary import (
    BODY_WEIGHT_UNIT_VALUES,
    CONSERVATION_STATUS_VALUES,
    MILK_YIELD_UNIT_VALUES,
    SPECIES_VALUES,
    STATUS_VALUES,
    TEMPERAMENT_VALUES,
    require_vocabulary_value,
)

logger = logging.getLogger(__name__)


def list_breeds(db: Session) -> list[Breed]:
    return list(db.scalars(select(Breed).order_by(Breed.name.asc())).all())


def list_breed_names(db: Session) -> list[str]:
    """Return the known-breed enumeration moderators confirm against."""

    return list(db.scalars(select(Breed.name).order_by(Breed.name.asc())).all())


def breed_exists(db: Session, name: str) -> bool:
    return db.scalar(select(Breed.name).where(Breed.name == name.strip())) is not None


def get_breed(db: Session, name: str) -> BreedDetailRead | None:
    """Return one breed with its parent origins."""

    breed_name = name.strip()
    breed = db.scalar(select(Breed).where(Breed.name == breed_name))
    if breed is None:
        return None
    origins = db.scalars(
        select(BreedOrigin)
        .where(BreedOrigin.breed == breed.name)
        .order_by(BreedOrigin.contribution_percentage.desc(), BreedOrigin.parent_breed.asc())
    ).all()
    return BreedDetailRead(
        **BreedRead.model_validate(breed).model_dump(),
        origins=[BreedOriginLink.model_validate(origin) for origin in origins],
    )


def create_breed(db: Session, payload: BreedCreate) -> Breed:
    """Validate vocabulary and ranges, then insert one breed."""

    name = payload.name.strip()
    if not name:
        raise ValidationFailure("Breed name is required")
    if breed_exists(db, name):
        raise ValidationFailure(f"Breed {name!r} already exists")

    milk_unit = _validate_range(
        "avg_milk_yield",
        payload.avg_milk_yield_min,
        payload.avg_milk_yield_max,
        payload.milk_yield_unit,
        MILK_YIELD_UNIT_VALUES,
        "milk_yield_unit",
    )
    weight_unit = _validate_range(
        "avg_body_weight",
        payload.avg_body_weight_min,
        payload.avg_body_weight_max,
        payload.body_weight_unit,
        BODY_WEIGHT_UNIT_VALUES,
        "body_weight_unit",
    )

    breed = Breed(
        name=name,
        species=require_vocabulary_value("species", payload.species, SPECIES_VALUES),
        status=require_vocabulary_value("status", payload.status, STATUS_VALUES),
        temperament=require_vocabulary_value("temperament", payload.temperament, TEMPERAMENT_VALUES),
        conservation_status=require_vocabulary_value(
            "conservation_status",
            payload.conservation_status,
            CONSERVATION_STATUS_VALUES,
        ),
        origin=_clean_optional(payload.origin),
        native_region=_clean_optional(payload.native_region),
        description=_clean_optional(payload.description),
        key_characteristics_json=[item.strip() for item in payload.key_characteristics if item.strip()],
        adaptability=_clean_optional(payload.adaptability),
        avg_milk_yield_min=payload.avg_milk_yield_min,
        avg_milk_yield_max=payload.avg_milk_yield_max,
        milk_yield_unit=milk_unit,
        avg_body_weight_min=payload.avg_body_weight_min,
        avg_body_weight_max=payload.avg_body_weight_max,
        body_weight_unit=weight_unit,
    )
    db.add(breed)
    _commit(db, f"Saving breed {name!r} failed")
    db.refresh(breed)
    logger.info("breeds.created name=%s species=%s", breed.name, breed.species)
    return breed


def attach_stock_image(
    db: Session,
    store: ArtifactStore,
    name: str,
    image: ImagePayload,
    *,
    artifact_prefix: str | None = None,
) -> Breed | None:
    """Upload a reference image and point the breed at it."""

    breed_name = name.strip()
    breed = db.scalar(select(Breed).where(Breed.name == breed_name))
    if breed is None:
        return None
    path = build_artifact_path(image.filename, prefix=artifact_prefix)
    url = store.upload(path, image.content, image.content_type)
    breed.stock_img_url = url
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "breeds.orphaned_artifact name=%s image_url=%s reason=%s",
            breed_name,
            url,
            exc.__class__.__name__,
        )
        raise PersistenceFailure(
            f"Saving stock image for {breed_name!r} failed: {exc}",
            orphaned_artifact_url=url,
        ) from exc
    db.refresh(breed)
    return breed


def delete_breed(db: Session, name: str) -> bool:
    """Delete a breed and its lineage edges; refused while images confirm it."""

    breed = db.scalar(select(Breed).where(Breed.name == name.strip()))
    if breed is None:
        return False
    in_use = db.scalar(select(ConfirmedBreed.id).where(ConfirmedBreed.breed == breed.name).limit(1))
    if in_use is not None:
        raise PreconditionFailure(f"Breed {breed.name!r} still has confirmed images")

    db.execute(
        delete(BreedOrigin).where(
            (BreedOrigin.breed == breed.name) | (BreedOrigin.parent_breed == breed.name)
        )
    )
    db.delete(breed)
    _commit(db, f"Deleting breed {name.strip()!r} failed")
    return True


def list_breed_origins(db: Session) -> list[BreedOrigin]:
    return list(
        db.scalars(select(BreedOrigin).order_by(BreedOrigin.breed.asc(), BreedOrigin.parent_breed.asc())).all()
    )


def create_breed_origin(db: Session, payload: BreedOriginCreate) -> BreedOrigin:
    """Insert a child -> parent lineage edge between two known breeds."""

    child = payload.breed.strip()
    parent = payload.parent_breed.strip()
    if child == parent:
        raise ValidationFailure("A breed cannot be its own parent")
    for label, value in (("breed", child), ("parent_breed", parent)):
        if not breed_exists(db, value):
            raise ValidationFailure(f"Unknown {label}: {value!r}")
    percentage = payload.contribution_percentage
    if percentage is not None and not 0.0 <= percentage <= 100.0:
        raise ValidationFailure("contribution_percentage must be within [0, 100]")

    duplicate = db.scalar(
        select(BreedOrigin.id).where(BreedOrigin.breed == child, BreedOrigin.parent_breed == parent)
    )
    if duplicate is not None:
        raise ValidationFailure(f"{child!r} already lists {parent!r} as a parent")

    origin = BreedOrigin(breed=child, parent_breed=parent, contribution_percentage=percentage)
    db.add(origin)
    _commit(db, f"Saving lineage {child!r} -> {parent!r} failed")
    db.refresh(origin)
    return origin


def delete_breed_origin(db: Session, origin_id: int) -> bool:
    origin = db.scalar(select(BreedOrigin).where(BreedOrigin.id == origin_id))
    if origin is None:
        return False
    db.delete(origin)
    _commit(db, f"Deleting lineage {origin_id} failed")
    return True


def list_breed_map_points(db: Session, breed: str | None = None) -> BreedMapResponse:
    """Confirmed breeds whose source scan carries a location."""

    stmt = (
        select(ConfirmedBreed, Scan)
        .join(Scan, Scan.id == ConfirmedBreed.scan_id)
        .where(Scan.latitude.is_not(None), Scan.longitude.is_not(None))
        .order_by(ConfirmedBreed.created_at.asc(), ConfirmedBreed.id.asc())
    )
    rows = db.execute(stmt).all()

    known_breeds = sorted({record.breed for record, _ in rows})
    selected = (breed or "").strip()
    points = [
        BreedMapPoint(
            id=record.id,
            lat=scan.latitude,
            lng=scan.longitude,
            breed=record.breed,
            image_url=record.image_url,
        )
        for record, scan in rows
        if not selected or record.breed == selected
    ]
    return BreedMapResponse(points=points, breeds=known_breeds)


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure(f"{message}: {exc}") from exc


def _validate_range(
    field_prefix: str,
    minimum: float | None,
    maximum: float | None,
    unit: str | None,
    allowed_units: tuple[str, ...],
    unit_field: str,
) -> str | None:
    for bound_name, value in (("min", minimum), ("max", maximum)):
        if value is not None and value < 0:
            raise ValidationFailure(f"{field_prefix}_{bound_name} must not be negative")
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ValidationFailure(f"{field_prefix}_min must not exceed {field_prefix}_max")
    if minimum is None and maximum is None:
        if _clean_optional(unit) is None:
            return None
        return require_vocabulary_value(unit_field, unit, allowed_units)
    return require_vocabulary_value(unit_field, unit, allowed_units)


def _clean_optional(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None
