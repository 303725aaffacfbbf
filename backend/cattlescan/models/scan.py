"""Cattle scan ORM model."""

from sqlalchemy import JSON, Boolean, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cattlescan.models.base import Base, CreatedAtMixin, UuidIdMixin


class Scan(Base, UuidIdMixin, CreatedAtMixin):
    """Submitted image with its ranked classifier output and review metadata."""

    __tablename__ = "cattle_scans"

    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    predictions_json: Mapped[list[dict[str, object]]] = mapped_column(JSON, default=list, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_accuracy_m: Mapped[float | None] = mapped_column(Float, nullable=True)
    submitter_id: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
    is_helpful: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    flagged_for_inspection: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    inspection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
