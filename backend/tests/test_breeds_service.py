"""Tests for the breed catalogue, lineage edges and map feed."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cattlescan.errors import PersistenceFailure, PreconditionFailure, ValidationFailure
from cattlescan.inference.types import ImagePayload
from cattlescan.models.base import Base
from cattlescan.models.breed import Breed
from cattlescan.models.breed_origin import BreedOrigin
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan
from cattlescan.schemas.breed import BreedCreate, BreedOriginCreate
from cattlescan.services.breeds import (
    attach_stock_image,
    create_breed,
    create_breed_origin,
    delete_breed,
    delete_breed_origin,
    get_breed,
    list_breed_map_points,
    list_breed_names,
    list_breed_origins,
    list_breeds,
)


class _StubStore:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.objects[path] = content
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return f"https://cdn.test/{path}"

    def list_paths(self, prefix: str) -> list[str]:
        return sorted(self.objects)

    def delete(self, path: str) -> None:
        self.objects.pop(path, None)


def _breed_payload(name: str, **overrides) -> BreedCreate:
    values = {
        "name": name,
        "species": "Cattle",
        "status": "Indigenous",
        "temperament": "Docile",
        "conservation_status": "Common",
    }
    values.update(overrides)
    return BreedCreate(**values)


class BreedServiceTests(unittest.TestCase):
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
        self.db.execute(delete(BreedOrigin))
        self.db.execute(delete(Breed))
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def test_create_breed_normalizes_vocabulary(self) -> None:
        breed = create_breed(
            self.db,
            _breed_payload(
                " Gir ",
                species="cattle",
                temperament="DOCILE",
                conservation_status="Commom",
                key_characteristics=["Convex forehead", "  ", "Long ears"],
                avg_milk_yield_min=6,
                avg_milk_yield_max=10,
                milk_yield_unit="l/day",
            ),
        )

        self.assertEqual(breed.name, "Gir")
        self.assertEqual(breed.species, "Cattle")
        self.assertEqual(breed.temperament, "Docile")
        self.assertEqual(breed.conservation_status, "Common")
        self.assertEqual(breed.milk_yield_unit, "L/day")
        self.assertIsNone(breed.body_weight_unit)
        self.assertEqual(breed.key_characteristics_json, ["Convex forehead", "Long ears"])
        self.assertEqual(list_breed_names(self.db), ["Gir"])

    def test_create_breed_rejects_unknown_vocabulary_and_duplicates(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))

        with self.assertRaises(ValidationFailure):
            create_breed(self.db, _breed_payload("Gir"))
        with self.assertRaises(ValidationFailure):
            create_breed(self.db, _breed_payload("Yak", species="Yak"))
        with self.assertRaises(ValidationFailure):
            create_breed(self.db, _breed_payload("Sahiwal", conservation_status="Extinct"))
        self.assertEqual([breed.name for breed in list_breeds(self.db)], ["Gir"])

    def test_create_breed_validates_measurement_ranges(self) -> None:
        with self.assertRaises(ValidationFailure):
            create_breed(
                self.db,
                _breed_payload("Gir", avg_milk_yield_min=12, avg_milk_yield_max=6, milk_yield_unit="L/day"),
            )
        with self.assertRaises(ValidationFailure):
            create_breed(self.db, _breed_payload("Gir", avg_body_weight_min=-1, body_weight_unit="kg"))
        with self.assertRaises(ValidationFailure):
            create_breed(self.db, _breed_payload("Gir", avg_body_weight_max=500))
        with self.assertRaises(ValidationFailure):
            create_breed(self.db, _breed_payload("Gir", avg_body_weight_max=500, body_weight_unit="stone"))

        breed = create_breed(self.db, _breed_payload("Gir", avg_body_weight_max=500, body_weight_unit="KG"))
        self.assertEqual(breed.body_weight_unit, "kg")

    def test_origins_link_known_breeds_and_appear_on_detail(self) -> None:
        for name in ("Karan Fries", "Tharparkar", "Holstein Friesian"):
            create_breed(self.db, _breed_payload(name))

        create_breed_origin(
            self.db,
            BreedOriginCreate(breed="Karan Fries", parent_breed="Tharparkar", contribution_percentage=37.5),
        )
        create_breed_origin(
            self.db,
            BreedOriginCreate(breed="Karan Fries", parent_breed="Holstein Friesian", contribution_percentage=62.5),
        )

        detail = get_breed(self.db, "Karan Fries")
        self.assertIsNotNone(detail)
        self.assertEqual([origin.parent_breed for origin in detail.origins], ["Holstein Friesian", "Tharparkar"])
        self.assertEqual(get_breed(self.db, "Tharparkar").origins, [])
        self.assertIsNone(get_breed(self.db, "Unknown"))
        self.assertEqual(len(list_breed_origins(self.db)), 2)

    def test_origin_validation(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))
        create_breed(self.db, _breed_payload("Sahiwal"))
        create_breed_origin(self.db, BreedOriginCreate(breed="Sahiwal", parent_breed="Gir"))

        invalid = [
            BreedOriginCreate(breed="Gir", parent_breed="Gir"),
            BreedOriginCreate(breed="Gir", parent_breed="Ongole"),
            BreedOriginCreate(breed="Gir", parent_breed="Sahiwal", contribution_percentage=140),
            BreedOriginCreate(breed="Sahiwal", parent_breed="Gir"),
        ]
        for payload in invalid:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationFailure):
                    create_breed_origin(self.db, payload)

    def test_delete_breed_origin(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))
        create_breed(self.db, _breed_payload("Sahiwal"))
        origin = create_breed_origin(self.db, BreedOriginCreate(breed="Sahiwal", parent_breed="Gir"))
        origin_id = origin.id

        self.assertTrue(delete_breed_origin(self.db, origin_id))
        self.assertFalse(delete_breed_origin(self.db, origin_id))

    def test_delete_breed_is_refused_while_confirmed_images_reference_it(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))
        create_breed(self.db, _breed_payload("Sahiwal"))
        create_breed_origin(self.db, BreedOriginCreate(breed="Sahiwal", parent_breed="Gir"))
        self.db.add(ConfirmedBreed(image_url="https://cdn.test/images/a.jpg", breed="Gir"))
        self.db.commit()

        with self.assertRaises(PreconditionFailure):
            delete_breed(self.db, "Gir")

        self.db.execute(delete(ConfirmedBreed))
        self.db.commit()
        self.assertTrue(delete_breed(self.db, "Gir"))
        self.assertEqual(list_breed_names(self.db), ["Sahiwal"])
        self.assertEqual(self.db.scalar(select(func.count()).select_from(BreedOrigin)), 0)
        self.assertFalse(delete_breed(self.db, "Gir"))

    def test_attach_stock_image(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))
        store = _StubStore()

        breed = attach_stock_image(
            self.db,
            store,
            "Gir",
            ImagePayload(content=b"stock", filename="gir.png", content_type="image/png"),
            artifact_prefix="breeds/",
        )

        self.assertEqual(len(store.objects), 1)
        path = next(iter(store.objects))
        self.assertTrue(path.startswith("breeds/"))
        self.assertEqual(breed.stock_img_url, store.public_url(path))
        self.assertIsNone(attach_stock_image(self.db, store, "Unknown", ImagePayload(content=b"x")))
        self.assertEqual(len(store.objects), 1)

    def test_stock_image_commit_failure_reports_the_uploaded_url(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))
        store = _StubStore()
        outage = OperationalError("UPDATE breeds", {}, Exception("database is down"))

        with self.assertLogs("cattlescan.services.breeds", level="ERROR") as logs:
            with patch.object(self.db, "commit", side_effect=outage):
                with self.assertRaises(PersistenceFailure) as ctx:
                    attach_stock_image(self.db, store, "Gir", ImagePayload(content=b"stock", filename="gir.png"))

        orphan_url = store.public_url(next(iter(store.objects)))
        self.assertEqual(ctx.exception.orphaned_artifact_urls, [orphan_url])
        self.assertIn("breeds.orphaned_artifact", logs.output[0])
        breed = self.db.scalar(select(Breed).where(Breed.name == "Gir"))
        self.assertIsNone(breed.stock_img_url)

    def test_breed_writes_map_database_failures(self) -> None:
        outage = OperationalError("INSERT INTO breeds", {}, Exception("database is down"))

        with patch.object(self.db, "commit", side_effect=outage):
            with self.assertRaises(PersistenceFailure):
                create_breed(self.db, _breed_payload("Gir"))

        self.assertEqual(list_breed_names(self.db), [])

    def test_map_points_only_include_located_confirmed_scans(self) -> None:
        create_breed(self.db, _breed_payload("Gir"))
        create_breed(self.db, _breed_payload("Sahiwal"))
        located = Scan(
            image_url="https://cdn.test/images/1.jpg",
            predictions_json=[],
            latitude=21.5,
            longitude=70.9,
        )
        unlocated = Scan(image_url="https://cdn.test/images/2.jpg", predictions_json=[])
        second_located = Scan(
            image_url="https://cdn.test/images/3.jpg",
            predictions_json=[],
            latitude=30.6,
            longitude=73.1,
        )
        self.db.add_all([located, unlocated, second_located])
        self.db.flush()
        self.db.add_all(
            [
                ConfirmedBreed(scan_id=located.id, image_url=located.image_url, breed="Gir"),
                ConfirmedBreed(scan_id=unlocated.id, image_url=unlocated.image_url, breed="Gir"),
                ConfirmedBreed(scan_id=second_located.id, image_url=second_located.image_url, breed="Sahiwal"),
                ConfirmedBreed(image_url="https://cdn.test/images/bulk.jpg", breed="Sahiwal"),
            ]
        )
        self.db.commit()

        everything = list_breed_map_points(self.db)
        only_gir = list_breed_map_points(self.db, breed="Gir")

        self.assertEqual(everything.breeds, ["Gir", "Sahiwal"])
        self.assertEqual({point.image_url for point in everything.points}, {located.image_url, second_located.image_url})
        self.assertEqual([(point.lat, point.lng) for point in only_gir.points], [(21.5, 70.9)])
        self.assertEqual(only_gir.breeds, ["Gir", "Sahiwal"])


if __name__ == "__main__":
    unittest.main()
