"""Breed vocabulary ORM model."""

from sqlalchemy import JSON, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cattlescan.models.base import Base, CreatedAtMixin


class Breed(Base, CreatedAtMixin):
    """Controlled breed entry; ``name`` is the key moderators confirm against."""

    __tablename__ = "breeds"

    name: Mapped[str] = mapped_column(String(128), primary_key=True)
    species: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    temperament: Mapped[str] = mapped_column(String(32), nullable=False)
    conservation_status: Mapped[str] = mapped_column(String(32), nullable=False)
    origin: Mapped[str | None] = mapped_column(String(255), nullable=True)
    native_region: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    key_characteristics_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    adaptability: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avg_milk_yield_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_milk_yield_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    milk_yield_unit: Mapped[str | None] = mapped_column(String(16), nullable=True)
    avg_body_weight_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_body_weight_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    body_weight_unit: Mapped[str | None] = mapped_column(String(16), nullable=True)
    stock_img_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
