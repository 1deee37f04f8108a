"""User and farm-assignment ORM models for JWT authentication and farm scoping.

Users authenticate via email/password (JWT).  ``company_id`` is NULL only for
``super_admin`` accounts.  ``admin_farm`` and ``engineer`` users see a farm
only through a ``UserFarmAssignment`` row.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ralfarm.models.base import Base, RecordStatusMixin, TimestampMixin, UUIDPrimaryKeyMixin
from ralfarm.models.enums import RecordStatusEnum, UserRoleEnum


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin, RecordStatusMixin):
    """Application user; signs in with email and password for JWT tokens."""

    __tablename__ = "users"

    company_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(
        String(128), nullable=False
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRoleEnum] = mapped_column(
        Enum(
            UserRoleEnum,
            name="user_role",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=UserRoleEnum.engineer,
        server_default="engineer",
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Relationships ────────────────────────────────────────────────────
    farm_assignments: Mapped[list[UserFarmAssignment]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatusEnum.active

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


class UserFarmAssignment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Grants an ``admin_farm`` / ``engineer`` user access to one farm."""

    __tablename__ = "user_farm_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "farm_id", name="uq_user_farm_assignments_user_farm"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    farm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # ── Relationships ────────────────────────────────────────────────────
    user: Mapped[User] = relationship(back_populates="farm_assignments")

    def __repr__(self) -> str:
        return f"<UserFarmAssignment user={self.user_id} farm={self.farm_id}>"
