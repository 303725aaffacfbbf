"""Tests for the moderation reconciliation engine."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cattlescan.errors import PersistenceFailure, PreconditionFailure, StorageFailure
from cattlescan.inference.types import ImagePayload
from cattlescan.models.base import Base
from cattlescan.models.breed import Breed
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan
from cattlescan.schemas.moderation import ConfirmedBreedQuery, UnconfirmedScanQuery
from cattlescan.services.moderation import (
    bulk_confirm_images,
    confirm_scan,
    delete_confirmed_breed,
    list_confirmed_breeds,
    list_unconfirmed_scans,
)


class _StubStore:
    def __init__(self, fail_on_call: int | None = None) -> None:
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.objects: dict[str, bytes] = {}

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise StorageFailure("quota exceeded")
        self.objects[path] = content
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return f"https://cdn.test/{path}"

    def list_paths(self, prefix: str) -> list[str]:
        return sorted(self.objects)

    def delete(self, path: str) -> None:
        self.objects.pop(path, None)


BASE_TIME = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)


class ModerationServiceTests(unittest.TestCase):
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
                Breed(
                    name=name,
                    species="Cattle",
                    status="Indigenous",
                    temperament="Docile",
                    conservation_status="Common",
                    key_characteristics_json=[],
                )
                for name in ("Gir", "Sahiwal")
            ]
        )
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def _add_scans(self, count: int, **overrides) -> list[Scan]:
        existing = int(self.db.scalar(select(func.count()).select_from(Scan)) or 0)
        scans = []
        for offset in range(count):
            values = {
                "image_url": f"https://cdn.test/images/{existing + offset}.jpg",
                "predictions_json": [{"label": "Gir", "confidence": 82.3}],
                "submitter_id": "farmer-1",
                "created_at": BASE_TIME + timedelta(minutes=existing + offset),
            }
            values.update(overrides)
            scans.append(Scan(**values))
        self.db.add_all(scans)
        self.db.commit()
        return scans

    def test_pages_partition_the_unconfirmed_set(self) -> None:
        scans = self._add_scans(23)

        pages = [
            list_unconfirmed_scans(self.db, UnconfirmedScanQuery(page=page, order="asc"), page_size=10)
            for page in (1, 2, 3, 4)
        ]

        self.assertEqual([len(page.items) for page in pages], [10, 10, 3, 0])
        self.assertTrue(all(page.total == 23 for page in pages))
        self.assertTrue(all(page.page_count == 3 for page in pages))
        seen = [item.id for page in pages for item in page.items]
        self.assertEqual(len(seen), len(set(seen)))
        self.assertEqual(seen, [scan.id for scan in scans])

    def test_descending_order_puts_newest_first(self) -> None:
        scans = self._add_scans(3)

        page = list_unconfirmed_scans(self.db, UnconfirmedScanQuery(), page_size=10)

        self.assertEqual([item.id for item in page.items], [scan.id for scan in reversed(scans)])

    def test_empty_queue_has_zero_pages(self) -> None:
        page = list_unconfirmed_scans(self.db, UnconfirmedScanQuery(), page_size=10)

        self.assertEqual(page.items, [])
        self.assertEqual(page.total, 0)
        self.assertEqual(page.page_count, 0)

    def test_filters_combine_flag_helpfulness_and_submitter(self) -> None:
        flagged = self._add_scans(2, flagged_for_inspection=True, inspection_reason="blurry")
        helpful = self._add_scans(1, is_helpful=True)
        not_helpful = self._add_scans(1, is_helpful=False, submitter_id="farmer-2")
        unrated = self._add_scans(1)

        def ids(**kwargs) -> set[str]:
            page = list_unconfirmed_scans(self.db, UnconfirmedScanQuery(**kwargs), page_size=50)
            return {item.id for item in page.items}

        self.assertEqual(ids(flag="flagged"), {scan.id for scan in flagged})
        self.assertEqual(ids(flag="not_flagged"), {scan.id for scan in helpful + not_helpful + unrated})
        self.assertEqual(ids(helpful="helpful"), {scan.id for scan in helpful})
        self.assertEqual(ids(helpful="not_helpful"), {scan.id for scan in not_helpful})
        self.assertEqual(ids(submitter_id=" farmer-2 "), {scan.id for scan in not_helpful})
        self.assertEqual(ids(flag="flagged", helpful="helpful"), set())
        self.assertEqual(len(ids()), 5)

    def test_confirmed_scan_leaves_queue_and_returns_when_confirmation_deleted(self) -> None:
        target, other = self._add_scans(2)

        record = confirm_scan(self.db, target.id, " Gir ", "moderator-1")

        self.assertIsNotNone(record)
        self.assertEqual(record.breed, "Gir")
        self.assertEqual(record.scan_id, target.id)
        self.assertEqual(record.image_url, target.image_url)
        self.assertEqual(record.confirmed_by_user_id, "moderator-1")
        page = list_unconfirmed_scans(self.db, UnconfirmedScanQuery(), page_size=10)
        self.assertEqual([item.id for item in page.items], [other.id])
        self.assertEqual(page.total, 1)

        record_id = record.id
        self.assertTrue(delete_confirmed_breed(self.db, record_id))

        page = list_unconfirmed_scans(self.db, UnconfirmedScanQuery(), page_size=10)
        self.assertEqual({item.id for item in page.items}, {target.id, other.id})
        self.assertFalse(delete_confirmed_breed(self.db, record_id))

    def test_failed_confirmation_delete_keeps_the_record(self) -> None:
        (scan,) = self._add_scans(1)
        record_id = confirm_scan(self.db, scan.id, "Gir", "moderator-1").id
        outage = OperationalError("DELETE FROM confirmed_cattle_breeds", {}, Exception("disk I/O error"))

        with patch.object(self.db, "commit", side_effect=outage):
            with self.assertRaises(PersistenceFailure):
                delete_confirmed_breed(self.db, record_id)

        self.assertIsNotNone(self.db.get(ConfirmedBreed, record_id))
        page = list_unconfirmed_scans(self.db, UnconfirmedScanQuery(), page_size=10)
        self.assertEqual(page.total, 0)

    def test_scan_is_confirmed_at_most_once(self) -> None:
        (scan,) = self._add_scans(1)
        confirm_scan(self.db, scan.id, "Gir", "moderator-1")

        with self.assertRaises(PreconditionFailure) as ctx:
            confirm_scan(self.db, scan.id, "Sahiwal", "moderator-2")

        self.assertFalse(ctx.exception.login_required)
        count = self.db.scalar(select(func.count()).select_from(ConfirmedBreed))
        self.assertEqual(count, 1)

    def test_confirm_requires_breed_and_moderator(self) -> None:
        (scan,) = self._add_scans(1)

        with self.assertRaises(PreconditionFailure) as missing_breed:
            confirm_scan(self.db, scan.id, "  ", "moderator-1")
        self.assertEqual(str(missing_breed.exception), "Please select a breed")

        with self.assertRaises(PreconditionFailure) as missing_moderator:
            confirm_scan(self.db, scan.id, "Gir", None)
        self.assertTrue(missing_moderator.exception.login_required)

        self.assertIsNone(confirm_scan(self.db, "missing-scan", "Gir", "moderator-1"))

    def test_confirmed_view_filters_and_orders(self) -> None:
        first, second, third = self._add_scans(3)
        confirm_scan(self.db, first.id, "Gir", "moderator-1")
        confirm_scan(self.db, second.id, "Sahiwal", "moderator-2")
        confirm_scan(self.db, third.id, "Gir", "moderator-2")

        gir = list_confirmed_breeds(self.db, ConfirmedBreedQuery(breed="Gir", order="asc"), page_size=10)
        by_moderator = list_confirmed_breeds(self.db, ConfirmedBreedQuery(submitter_id="moderator-2"), page_size=10)
        paged = list_confirmed_breeds(self.db, ConfirmedBreedQuery(page=2), page_size=2)

        self.assertEqual({item.scan_id for item in gir.items}, {first.id, third.id})
        self.assertEqual(by_moderator.total, 2)
        self.assertEqual({item.breed for item in by_moderator.items}, {"Gir", "Sahiwal"})
        self.assertEqual(paged.total, 3)
        self.assertEqual(paged.page_count, 2)
        self.assertEqual(len(paged.items), 1)

    def test_bulk_import_records_one_confirmation_per_image(self) -> None:
        store = _StubStore()
        images = [ImagePayload(content=f"img-{idx}".encode(), filename=f"gir-{idx}.jpg") for idx in range(3)]

        records = bulk_confirm_images(self.db, store, "Gir", images, "moderator-1", artifact_prefix="images/")

        self.assertEqual(len(records), 3)
        self.assertTrue(all(record.scan_id is None for record in records))
        self.assertEqual({record.image_url for record in records}, {store.public_url(p) for p in store.objects})
        confirmed = list_confirmed_breeds(self.db, ConfirmedBreedQuery(breed="Gir"), page_size=10)
        self.assertEqual(confirmed.total, 3)

    def test_bulk_import_fails_fast_without_inserting(self) -> None:
        store = _StubStore(fail_on_call=2)
        images = [ImagePayload(content=f"img-{idx}".encode(), filename=f"gir-{idx}.jpg") for idx in range(4)]

        with self.assertRaises(StorageFailure) as ctx:
            bulk_confirm_images(self.db, store, "Gir", images, "moderator-1", artifact_prefix="images/")

        self.assertEqual(store.calls, 2)
        self.assertEqual(len(ctx.exception.orphaned_artifact_urls), 1)
        self.assertEqual(ctx.exception.stage, "upload")
        count = self.db.scalar(select(func.count()).select_from(ConfirmedBreed))
        self.assertEqual(count, 0)

    def test_bulk_import_requires_breed_images_and_moderator(self) -> None:
        store = _StubStore()
        image = ImagePayload(content=b"img")

        with self.assertRaises(PreconditionFailure):
            bulk_confirm_images(self.db, store, "", [image], "moderator-1")
        with self.assertRaises(PreconditionFailure):
            bulk_confirm_images(self.db, store, "Gir", [], "moderator-1")
        with self.assertRaises(PreconditionFailure) as ctx:
            bulk_confirm_images(self.db, store, "Gir", [image], " ")
        self.assertTrue(ctx.exception.login_required)
        self.assertEqual(store.calls, 0)


if __name__ == "__main__":
    unittest.main()
