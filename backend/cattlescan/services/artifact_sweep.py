"""Operator sweep for stored artifacts that no record references."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from cattlescan.config import get_settings
from cattlescan.errors import StorageFailure
from cattlescan.models.breed import Breed
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan
from cattlescan.services.storage import ArtifactStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SweepReport:
    scanned: int = 0
    orphaned_paths: list[str] = field(default_factory=list)
    deleted_paths: list[str] = field(default_factory=list)
    failed_paths: list[str] = field(default_factory=list)


def referenced_artifact_urls(db: Session) -> set[str]:
    """Every artifact URL a scan, confirmed breed or breed stock image points at."""

    urls: set[str] = set()
    urls.update(db.scalars(select(Scan.image_url)).all())
    urls.update(db.scalars(select(ConfirmedBreed.image_url)).all())
    urls.update(db.scalars(select(Breed.stock_img_url).where(Breed.stock_img_url.is_not(None))).all())
    return urls


def find_orphaned_artifacts(db: Session, store: ArtifactStore, *, prefix: str | None = None) -> list[str]:
    """Return stored paths under ``prefix`` whose public URL nothing references."""

    clean_prefix = get_settings().artifact_prefix if prefix is None else prefix
    return _unreferenced(db, store, store.list_paths(clean_prefix))


def _unreferenced(db: Session, store: ArtifactStore, paths: list[str]) -> list[str]:
    referenced = referenced_artifact_urls(db)
    return sorted(path for path in paths if store.public_url(path) not in referenced)


def sweep_orphaned_artifacts(
    db: Session,
    store: ArtifactStore,
    *,
    prefix: str | None = None,
    delete: bool = False,
) -> SweepReport:
    """List orphaned artifacts and, only when ``delete`` is set, remove them.

    A delete failure is recorded and the sweep moves on to the next path.
    """

    started = perf_counter()
    clean_prefix = get_settings().artifact_prefix if prefix is None else prefix
    paths = store.list_paths(clean_prefix)

    report = SweepReport(scanned=len(paths))
    report.orphaned_paths = _unreferenced(db, store, paths)

    if delete:
        for path in report.orphaned_paths:
            try:
                store.delete(path)
            except StorageFailure as exc:
                logger.warning("artifact_sweep.delete_failed path=%s error=%s", path, exc)
                report.failed_paths.append(path)
                continue
            report.deleted_paths.append(path)

    logger.info(
        "artifact_sweep.complete prefix=%s scanned=%d orphaned=%d deleted=%d failed=%d elapsed_ms=%.2f",
        clean_prefix,
        report.scanned,
        len(report.orphaned_paths),
        len(report.deleted_paths),
        len(report.failed_paths),
        (perf_counter() - started) * 1000.0,
    )
    return report
