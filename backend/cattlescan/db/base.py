"""SQLAlchemy metadata registry import for Alembic."""

from cattlescan.models import Breed, BreedOrigin, ConfirmedBreed, Scan
from cattlescan.models.base import Base

__all__ = ["Base", "Breed", "BreedOrigin", "ConfirmedBreed", "Scan"]
