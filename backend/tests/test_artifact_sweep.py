"""Tests for the orphaned artifact sweep."""

from __future__ import annotations

import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cattlescan.errors import StorageFailure
from cattlescan.models.base import Base
from cattlescan.models.breed import Breed
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan
from cattlescan.services.artifact_sweep import find_orphaned_artifacts, sweep_orphaned_artifacts


class _StubStore:
    def __init__(self, paths: list[str], undeletable: set[str] | None = None) -> None:
        self.paths = list(paths)
        self.undeletable = undeletable or set()
        self.deleted: list[str] = []

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.paths.append(path)
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return f"https://cdn.test/{path}"

    def list_paths(self, prefix: str) -> list[str]:
        return [path for path in self.paths if path.startswith(prefix)]

    def delete(self, path: str) -> None:
        if path in self.undeletable:
            raise StorageFailure(f"cannot delete {path}")
        self.deleted.append(path)
        self.paths.remove(path)


class ArtifactSweepTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self.db.execute(delete(ConfirmedBreed))
        self.db.execute(delete(Scan))
        self.db.execute(delete(Breed))
        self.db.add_all(
            [
                Scan(image_url="https://cdn.test/images/scan.jpg", predictions_json=[]),
                ConfirmedBreed(image_url="https://cdn.test/images/bulk.jpg", breed="Gir"),
                Breed(
                    name="Gir",
                    species="Cattle",
                    status="Indigenous",
                    temperament="Docile",
                    conservation_status="Common",
                    key_characteristics_json=[],
                    stock_img_url="https://cdn.test/images/stock.jpg",
                ),
            ]
        )
        self.db.commit()
        self.store = _StubStore(
            [
                "images/scan.jpg",
                "images/bulk.jpg",
                "images/stock.jpg",
                "images/orphan-b.jpg",
                "images/orphan-a.jpg",
                "exports/report.csv",
            ]
        )

    def tearDown(self) -> None:
        self.db.close()

    def test_finds_only_unreferenced_paths_under_prefix(self) -> None:
        orphans = find_orphaned_artifacts(self.db, self.store, prefix="images/")

        self.assertEqual(orphans, ["images/orphan-a.jpg", "images/orphan-b.jpg"])

    def test_listing_never_deletes(self) -> None:
        report = sweep_orphaned_artifacts(self.db, self.store, prefix="images/")

        self.assertEqual(report.scanned, 5)
        self.assertEqual(len(report.orphaned_paths), 2)
        self.assertEqual(report.deleted_paths, [])
        self.assertEqual(self.store.deleted, [])

    def test_sweep_and_finder_agree_after_new_references(self) -> None:
        self.db.add(Scan(image_url="https://cdn.test/images/orphan-a.jpg", predictions_json=[]))
        self.db.commit()

        report = sweep_orphaned_artifacts(self.db, self.store, prefix="images/")

        self.assertEqual(report.orphaned_paths, ["images/orphan-b.jpg"])
        self.assertEqual(report.orphaned_paths, find_orphaned_artifacts(self.db, self.store, prefix="images/"))

    def test_delete_removes_orphans_and_records_failures(self) -> None:
        self.store.undeletable = {"images/orphan-b.jpg"}

        report = sweep_orphaned_artifacts(self.db, self.store, prefix="images/", delete=True)

        self.assertEqual(report.deleted_paths, ["images/orphan-a.jpg"])
        self.assertEqual(report.failed_paths, ["images/orphan-b.jpg"])
        self.assertIn("images/scan.jpg", self.store.paths)
        self.assertIn("images/stock.jpg", self.store.paths)


if __name__ == "__main__":
    unittest.main()
