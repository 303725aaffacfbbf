"""List (and optionally delete) stored images that no record references.

Usage (from repository root):
    python backend/scripts/sweep_orphaned_artifacts.py
    python backend/scripts/sweep_orphaned_artifacts.py --delete
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Make `cattlescan` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from cattlescan.db.session import SessionLocal
from cattlescan.services.artifact_sweep import sweep_orphaned_artifacts
from cattlescan.services.storage import get_default_artifact_store


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Find stored images referenced by no scan or breed record.")
    parser.add_argument(
        "--prefix",
        default=None,
        help="Object key prefix to inspect (default: configured artifact prefix).",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete the orphaned objects instead of only listing them.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    store = get_default_artifact_store()
    with SessionLocal() as db:
        report = sweep_orphaned_artifacts(db, store, prefix=args.prefix, delete=args.delete)

    print(f"scanned={report.scanned}")
    print(f"orphaned={len(report.orphaned_paths)}")
    for path in report.orphaned_paths:
        print(f"  {store.public_url(path)}")
    if args.delete:
        print(f"deleted={len(report.deleted_paths)}")
        print(f"failed={len(report.failed_paths)}")
    else:
        print("Re-run with --delete to remove them.")


if __name__ == "__main__":
    main()
