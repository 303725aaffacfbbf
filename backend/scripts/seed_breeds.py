"""Seed a reference breed vocabulary and its lineage edges.

Usage (from repository root):
    python backend/scripts/seed_breeds.py

Usage (from backend directory):
    python scripts/seed_breeds.py
    # or
    python -m scripts.seed_breeds
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Make `cattlescan` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from cattlescan.db.session import SessionLocal
from cattlescan.errors import ValidationFailure
from cattlescan.schemas.breed import BreedCreate, BreedOriginCreate
from cattlescan.services.breeds import breed_exists, create_breed, create_breed_origin


def build_reference_breeds() -> list[BreedCreate]:
    """Return a small, deterministic set of common South Asian breeds."""

    return [
        BreedCreate(
            name="Gir",
            species="Cattle",
            status="Indigenous",
            temperament="Docile",
            conservation_status="Common",
            origin="Gir forest, Gujarat",
            native_region="Western India",
            description="Dairy zebu with a domed forehead and long pendulous ears.",
            key_characteristics=["Convex forehead", "Long curled ears", "Red to speckled coat"],
            adaptability="Heat and tick tolerant",
            avg_milk_yield_min=6,
            avg_milk_yield_max=10,
            milk_yield_unit="L/day",
            avg_body_weight_min=385,
            avg_body_weight_max=545,
            body_weight_unit="kg",
        ),
        BreedCreate(
            name="Sahiwal",
            species="Cattle",
            status="Indigenous",
            temperament="Docile",
            conservation_status="Common",
            origin="Sahiwal district, Punjab",
            native_region="Punjab",
            description="Heavy-milking zebu with loose skin and a reddish-brown coat.",
            key_characteristics=["Reddish-brown coat", "Loose skin", "Short horns"],
            adaptability="Hot arid climates",
            avg_milk_yield_min=8,
            avg_milk_yield_max=12,
            milk_yield_unit="L/day",
            avg_body_weight_min=300,
            avg_body_weight_max=500,
            body_weight_unit="kg",
        ),
        BreedCreate(
            name="Red Sindhi",
            species="Cattle",
            status="Indigenous",
            temperament="Calm",
            conservation_status="Rare",
            origin="Sindh",
            native_region="Sindh",
            key_characteristics=["Deep red coat", "Compact frame"],
            avg_milk_yield_min=5,
            avg_milk_yield_max=8,
            milk_yield_unit="L/day",
        ),
        BreedCreate(
            name="Tharparkar",
            species="Cattle",
            status="Indigenous",
            temperament="Docile",
            conservation_status="Common",
            origin="Thar desert",
            native_region="Rajasthan",
            key_characteristics=["White to grey coat", "Lyre-shaped horns"],
            adaptability="Drought tolerant",
        ),
        BreedCreate(
            name="Holstein Friesian",
            species="Cattle",
            status="Purebred",
            temperament="Docile",
            conservation_status="Common",
            origin="Netherlands",
            key_characteristics=["Black and white patches", "Large frame"],
            avg_milk_yield_min=20,
            avg_milk_yield_max=30,
            milk_yield_unit="L/day",
        ),
        BreedCreate(
            name="Karan Fries",
            species="Cattle",
            status="Crossbreed",
            temperament="Docile",
            conservation_status="Common",
            origin="Karnal, Haryana",
            key_characteristics=["Black with white patches"],
        ),
        BreedCreate(
            name="Murrah",
            species="Buffalo",
            status="Indigenous",
            temperament="Calm",
            conservation_status="Common",
            origin="Haryana",
            key_characteristics=["Jet black coat", "Tightly curled horns"],
            avg_milk_yield_min=7,
            avg_milk_yield_max=12,
            milk_yield_unit="L/day",
        ),
    ]


def build_reference_origins() -> list[BreedOriginCreate]:
    return [
        BreedOriginCreate(breed="Karan Fries", parent_breed="Tharparkar", contribution_percentage=37.5),
        BreedOriginCreate(breed="Karan Fries", parent_breed="Holstein Friesian", contribution_percentage=62.5),
    ]


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed the reference breed vocabulary.")
    parser.add_argument(
        "--skip-origins",
        action="store_true",
        help="Only seed breeds; do not add lineage edges.",
    )
    return parser.parse_args()


def main() -> None:
    """Insert missing reference breeds and print a short summary."""

    args = parse_args()
    created = 0
    skipped = 0
    origins_created = 0

    with SessionLocal() as db:
        for payload in build_reference_breeds():
            if breed_exists(db, payload.name):
                skipped += 1
                continue
            create_breed(db, payload)
            created += 1

        if not args.skip_origins:
            for origin in build_reference_origins():
                try:
                    create_breed_origin(db, origin)
                except ValidationFailure as exc:
                    print(f"origin_skipped {origin.breed}->{origin.parent_breed}: {exc}")
                    continue
                origins_created += 1

    print("Seed complete")
    print(f"breeds_created={created}")
    print(f"breeds_skipped={skipped}")
    print(f"origins_created={origins_created}")
    print()
    print("Inspect:")
    print("  GET /breeds")
    print("  GET /breed-origins")


if __name__ == "__main__":
    main()
