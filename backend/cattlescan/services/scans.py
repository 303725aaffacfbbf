"""Scan record persistence and lookup."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from cattlescan.inference.types import Prediction
from cattlescan.models.scan import Scan
from cattlescan.services.location import Coordinates


def create_scan(
    db: Session,
    *,
    image_url: str,
    predictions: list[Prediction] | tuple[Prediction, ...],
    location: Coordinates | None,
    submitter_id: str | None,
) -> Scan:
    """Insert one scan and commit; raises ``SQLAlchemyError`` on store failure."""

    scan = Scan(
        image_url=image_url,
        predictions_json=[prediction.as_dict() for prediction in predictions],
        latitude=location.latitude if location else None,
        longitude=location.longitude if location else None,
        location_accuracy_m=location.accuracy_m if location else None,
        submitter_id=(submitter_id or "").strip() or None,
    )
    db.add(scan)
    db.commit()
    db.refresh(scan)
    return scan


def get_scan(db: Session, scan_id: str) -> Scan | None:
    """Return one scan by id."""

    return db.scalar(select(Scan).where(Scan.id == scan_id))
