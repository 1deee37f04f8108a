"""Declarative base and the column mixins shared by RalFarm tables."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ralfarm.models.enums import RecordStatusEnum


class Base(DeclarativeBase):
    pass


class UUIDPrimaryKeyMixin:
    """UUID ``id``; generated client-side on insert, ``uuid_generate_v4()`` for raw SQL."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.uuid_generate_v4(),
    )


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class RecordStatusMixin:
    """Soft lifecycle for tenant records (companies, farms, users).

    Rows are never hard-deleted through the API; ``deleted`` hides them.
    """

    status: Mapped[RecordStatusEnum] = mapped_column(
        Enum(
            RecordStatusEnum,
            name="record_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=RecordStatusEnum.active,
        server_default=RecordStatusEnum.active.value,
    )
