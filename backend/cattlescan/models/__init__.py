"""ORM models package exports."""

from cattlescan.models.breed import Breed
from cattlescan.models.breed_origin import BreedOrigin
from cattlescan.models.confirmed_breed import ConfirmedBreed
from cattlescan.models.scan import Scan

__all__ = [
    "Breed",
    "BreedOrigin",
    "ConfirmedBreed",
    "Scan",
]
