"""Company ORM model, the tenant root that owns farms and users."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ralfarm.models.base import Base, RecordStatusMixin, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from ralfarm.models.farm import Farm


class Company(Base, UUIDPrimaryKeyMixin, TimestampMixin, RecordStatusMixin):
    """A tenant. ``cui`` is the fiscal registration code."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    cui: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    farms: Mapped[list[Farm]] = relationship(
        back_populates="company",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"
