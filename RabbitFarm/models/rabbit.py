from __future__ import annotations

from datetime import date as date_type, datetime
from sqlalchemy import String, Text, Date, DateTime, Numeric, Boolean, SmallInteger, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class Rabbit(Base):
    __tablename__ = "rabbits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    rabbit_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # etiqueta por granja
    name: Mapped[str | None] = mapped_column(String(100))
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    breed: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(50), nullable=False)
    birth_date: Mapped[date_type] = mapped_column(Date(), nullable=False)
    weight: Mapped[float] = mapped_column(Numeric(8, 2), nullable=False)
    hutch_id: Mapped[str | None] = mapped_column(String(50), index=True)
    is_pregnant: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pregnancy_start_date: Mapped[date_type | None] = mapped_column(Date())
    expected_birth_date: Mapped[date_type | None] = mapped_column(Date())
    actual_birth_date: Mapped[date_type | None] = mapped_column(Date())
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text())
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)


class RemovalRecord(Base):
    """Registro de baja de un conejo (venta, muerte, sacrificio, ...)."""
    __tablename__ = "removal_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    rabbit_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    hutch_id: Mapped[str | None] = mapped_column(String(50))
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    reason: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text())
    date: Mapped[date_type | None] = mapped_column(Date())
    sale_amount: Mapped[float | None] = mapped_column(Numeric(12, 2))
    sale_weight: Mapped[float | None] = mapped_column(Numeric(8, 2))
    sold_to: Mapped[str | None] = mapped_column(String(150))
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)
