"""End-user feedback on persisted scans: helpfulness and inspection flags."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cattlescan.errors import PersistenceFailure, PreconditionFailure
from cattlescan.models.scan import Scan
from cattlescan.services.scans import get_scan


def set_helpfulness(db: Session, scan_id: str, user_id: str | None, is_helpful: bool) -> Scan | None:
    """Record whether the prediction helped; idempotent for a repeated value."""

    _require_identity(user_id)
    scan = get_scan(db, scan_id)
    if scan is None:
        return None
    scan.is_helpful = is_helpful
    _commit(db, f"Saving helpfulness for scan {scan_id} failed")
    db.refresh(scan)
    return scan


def set_inspection_flag(
    db: Session,
    scan_id: str,
    user_id: str | None,
    flagged: bool,
    reason: str | None = None,
) -> Scan | None:
    """Flag or unflag a scan for inspection; unflagging clears the reason."""

    _require_identity(user_id)
    scan = get_scan(db, scan_id)
    if scan is None:
        return None
    scan.flagged_for_inspection = flagged
    scan.inspection_reason = ((reason or "").strip() or None) if flagged else None
    _commit(db, f"Saving inspection flag for scan {scan_id} failed")
    db.refresh(scan)
    return scan


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailure(f"{message}: {exc}") from exc


def _require_identity(user_id: str | None) -> None:
    if not (user_id or "").strip():
        raise PreconditionFailure("Login required", login_required=True)
