from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, Text, DateTime, Numeric, Integer, SmallInteger, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from enums.enums import DEFAULT_LEVELS
from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class Farm(Base):
    __tablename__ = "farms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    location: Mapped[str | None] = mapped_column(String(200))
    latitude: Mapped[float | None] = mapped_column(Numeric(9, 6))
    longitude: Mapped[float | None] = mapped_column(Numeric(9, 6))
    size: Mapped[float | None] = mapped_column(Numeric(12, 2))
    description: Mapped[str | None] = mapped_column(Text())
    timezone: Mapped[str] = mapped_column(String(50), default="UTC", nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="RESTRICT"),
                                            nullable=False, index=True)
    is_active: Mapped[int] = mapped_column(SmallInteger, default=1, nullable=False)
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)


class Row(Base):
    """Fila de jaulas dentro de una granja. El nombre es único por granja."""
    __tablename__ = "rows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    levels: Mapped[list[str]] = mapped_column(JSON, default=lambda: list(DEFAULT_LEVELS), nullable=False)
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)
