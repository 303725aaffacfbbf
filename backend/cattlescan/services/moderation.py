"""Moderation reconciliation: unconfirmed/confirmed views and breed confirmation."""

from __future__ import annotations

import logging
import math
from time import perf_counter

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cattlescan.config import get_settings
from cattlescan.errors import PersistenceFailure, PreconditionFailure, StorageFailure
from cattlescan.inference.types import ImagePayload
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan
from cattlescan.schemas.moderation import (
    ConfirmedBreedPage,
    ConfirmedBreedQuery,
    ConfirmedBreedRead,
    UnconfirmedScanPage,
    UnconfirmedScanQuery,
)
from cattlescan.schemas.scan import ScanRead
from cattlescan.services.scans import get_scan
from cattlescan.services.storage import ArtifactStore, build_artifact_path

logger = logging.getLogger(__name__)


def list_unconfirmed_scans(
    db: Session,
    query: UnconfirmedScanQuery,
    *,
    page_size: int | None = None,
) -> UnconfirmedScanPage:
    """Return one page of scans that no confirmed breed references.

    Exclusion is an anti-join evaluated by the database at read time, so a scan
    confirmed before this call never appears and a scan whose confirmation was
    deleted reappears.
    """

    size = _resolve_page_size(page_size)
    is_confirmed = select(ConfirmedBreed.id).where(ConfirmedBreed.scan_id == Scan.id).exists()
    filters = [~is_confirmed]

    if query.flag == "flagged":
        filters.append(Scan.flagged_for_inspection.is_(True))
    elif query.flag == "not_flagged":
        filters.append(Scan.flagged_for_inspection.is_(False))

    if query.helpful == "helpful":
        filters.append(Scan.is_helpful.is_(True))
    elif query.helpful == "not_helpful":
        filters.append(Scan.is_helpful.is_(False))

    submitter_id = (query.submitter_id or "").strip()
    if submitter_id:
        filters.append(Scan.submitter_id == submitter_id)

    total = int(db.scalar(select(func.count()).select_from(Scan).where(*filters)) or 0)
    if query.order == "asc":
        ordering = (Scan.created_at.asc(), Scan.id.asc())
    else:
        ordering = (Scan.created_at.desc(), Scan.id.desc())

    rows = db.scalars(
        select(Scan)
        .where(*filters)
        .order_by(*ordering)
        .limit(size)
        .offset((query.page - 1) * size)
    ).all()
    return UnconfirmedScanPage(
        items=[ScanRead.model_validate(scan) for scan in rows],
        total=total,
        page=query.page,
        page_size=size,
        page_count=_page_count(total, size),
    )


def list_confirmed_breeds(
    db: Session,
    query: ConfirmedBreedQuery,
    *,
    page_size: int | None = None,
) -> ConfirmedBreedPage:
    """Return one page of confirmed breed records."""

    size = _resolve_page_size(page_size)
    filters = []
    breed = (query.breed or "").strip()
    if breed:
        filters.append(ConfirmedBreed.breed == breed)
    submitter_id = (query.submitter_id or "").strip()
    if submitter_id:
        filters.append(ConfirmedBreed.confirmed_by_user_id == submitter_id)

    total = int(db.scalar(select(func.count()).select_from(ConfirmedBreed).where(*filters)) or 0)
    if query.order == "asc":
        ordering = (ConfirmedBreed.created_at.asc(), ConfirmedBreed.id.asc())
    else:
        ordering = (ConfirmedBreed.created_at.desc(), ConfirmedBreed.id.desc())

    rows = db.scalars(
        select(ConfirmedBreed)
        .where(*filters)
        .order_by(*ordering)
        .limit(size)
        .offset((query.page - 1) * size)
    ).all()
    return ConfirmedBreedPage(
        items=[ConfirmedBreedRead.model_validate(record) for record in rows],
        total=total,
        page=query.page,
        page_size=size,
        page_count=_page_count(total, size),
    )


def confirm_scan(db: Session, scan_id: str, breed: str | None, moderator_id: str | None) -> ConfirmedBreed | None:
    """Commit a moderator's breed for one scan.

    Returns ``None`` for an unknown scan. A scan carries at most one
    confirmation; a second confirm is rejected rather than duplicated.
    """

    clean_moderator = _require_moderator(moderator_id)
    clean_breed = (breed or "").strip()
    if not clean_breed:
        raise PreconditionFailure("Please select a breed")

    scan = get_scan(db, scan_id)
    if scan is None:
        return None
    already_confirmed = db.scalar(select(ConfirmedBreed.id).where(ConfirmedBreed.scan_id == scan.id))
    if already_confirmed is not None:
        raise PreconditionFailure(f"Scan {scan.id} is already confirmed")

    record = ConfirmedBreed(
        scan_id=scan.id,
        image_url=scan.image_url,
        breed=clean_breed,
        confirmed_by_user_id=clean_moderator,
    )
    db.add(record)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure(f"Confirming scan {scan.id} failed: {exc}") from exc
    db.refresh(record)
    logger.info(
        "moderation.confirmed scan_id=%s breed=%s moderator=%s confirmed_id=%s",
        scan.id,
        clean_breed,
        clean_moderator,
        record.id,
    )
    return record


def delete_confirmed_breed(db: Session, confirmed_id: str) -> bool:
    """Delete one confirmation; its source scan becomes unconfirmed again."""

    record = db.scalar(select(ConfirmedBreed).where(ConfirmedBreed.id == confirmed_id))
    if record is None:
        return False
    scan_id = record.scan_id
    db.delete(record)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure(f"Deleting confirmation {confirmed_id} failed: {exc}") from exc
    logger.info("moderation.confirmation_deleted confirmed_id=%s scan_id=%s", confirmed_id, scan_id)
    return True


def bulk_confirm_images(
    db: Session,
    store: ArtifactStore,
    breed: str | None,
    images: list[ImagePayload],
    moderator_id: str | None,
    *,
    artifact_prefix: str | None = None,
) -> list[ConfirmedBreed]:
    """Upload reference images and insert one confirmation per image in one batch.

    Every upload must succeed before anything is inserted: the first storage
    failure aborts the batch with zero rows written.
    """

    clean_moderator = _require_moderator(moderator_id)
    clean_breed = (breed or "").strip()
    if not clean_breed:
        raise PreconditionFailure("Please select a breed")
    if not images:
        raise PreconditionFailure("Please upload at least one image")

    started = perf_counter()
    uploaded_urls: list[str] = []
    for index, image in enumerate(images, start=1):
        path = build_artifact_path(image.filename, prefix=artifact_prefix)
        try:
            uploaded_urls.append(store.upload(path, image.content, image.content_type))
        except StorageFailure as exc:
            if uploaded_urls:
                logger.error(
                    "moderation.bulk_orphaned_artifacts breed=%s count=%d urls=%s",
                    clean_breed,
                    len(uploaded_urls),
                    ",".join(uploaded_urls),
                )
            raise StorageFailure(
                f"Upload {index}/{len(images)} ({image.filename}) failed: {exc}",
                orphaned_artifact_urls=uploaded_urls,
            ) from exc

    records = [
        ConfirmedBreed(
            scan_id=None,
            image_url=url,
            breed=clean_breed,
            confirmed_by_user_id=clean_moderator,
        )
        for url in uploaded_urls
    ]
    db.add_all(records)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "moderation.bulk_orphaned_artifacts breed=%s count=%d urls=%s",
            clean_breed,
            len(uploaded_urls),
            ",".join(uploaded_urls),
        )
        raise PersistenceFailure(
            f"Saving {len(records)} confirmed images failed: {exc}",
            orphaned_artifact_urls=uploaded_urls,
        ) from exc
    for record in records:
        db.refresh(record)

    logger.info(
        "moderation.bulk_confirmed breed=%s count=%d moderator=%s total_ms=%.2f",
        clean_breed,
        len(records),
        clean_moderator,
        (perf_counter() - started) * 1000.0,
    )
    return records


def _require_moderator(moderator_id: str | None) -> str:
    clean = (moderator_id or "").strip()
    if not clean:
        raise PreconditionFailure("Login required", login_required=True)
    return clean


def _resolve_page_size(page_size: int | None) -> int:
    size = page_size if page_size is not None else get_settings().moderation_page_size
    return max(1, int(size))


def _page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0
