"""Moderator-confirmed breed label model."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cattlescan.models.base import Base, CreatedAtMixin, UuidIdMixin


class ConfirmedBreed(Base, UuidIdMixin, CreatedAtMixin):
    """Ground-truth breed for an image, optionally linked to its source scan."""

    __tablename__ = "confirmed_cattle_breeds"

    scan_id: Mapped[str | None] = mapped_column(
        ForeignKey("cattle_scans.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=True,
    )
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    breed: Mapped[str] = mapped_column(
        ForeignKey("breeds.name", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    confirmed_by_user_id: Mapped[str | None] = mapped_column(String(255), index=True, nullable=True)
