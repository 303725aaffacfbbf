"""Breed lineage edge model."""

from sqlalchemy import CheckConstraint, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cattlescan.models.base import Base, CreatedAtMixin, IdMixin


class BreedOrigin(Base, IdMixin, CreatedAtMixin):
    """Directed child -> parent breed edge with an optional contribution share."""

    __tablename__ = "breed_origins"
    __table_args__ = (
        UniqueConstraint("breed", "parent_breed", name="uq_breed_origins_breed_parent"),
        CheckConstraint("breed <> parent_breed", name="ck_breed_origins_no_self_loop"),
    )

    breed: Mapped[str] = mapped_column(
        ForeignKey("breeds.name", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    parent_breed: Mapped[str] = mapped_column(
        ForeignKey("breeds.name", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    contribution_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
