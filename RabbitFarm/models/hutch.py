from __future__ import annotations

from datetime import date, datetime
from sqlalchemy import String, Text, Date, DateTime, Integer, Numeric, Boolean, SmallInteger, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from enums.enums import DEFAULT_HUTCH_FEATURES
from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class Hutch(Base):
    """
    Jaula. `id` es la etiqueta visible (p. ej. "R1-A1") y es única por granja
    entre las jaulas no eliminadas; `uid` es la llave técnica para que una
    etiqueta eliminada se pueda reutilizar.
    """
    __tablename__ = "hutches"

    uid: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    row_name: Mapped[str | None] = mapped_column(String(50))
    level: Mapped[str] = mapped_column(String(5), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    size: Mapped[str] = mapped_column(String(20), nullable=False)
    material: Mapped[str] = mapped_column(String(30), nullable=False)
    features: Mapped[list[str]] = mapped_column(JSON, default=lambda: list(DEFAULT_HUTCH_FEATURES), nullable=False)
    is_occupied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_cleaned: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)


class HutchRabbitHistory(Base):
    """Estancia de un conejo en una jaula (abierta mientras removed_at es NULL)."""
    __tablename__ = "hutch_rabbit_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    hutch_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    rabbit_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    removal_reason: Mapped[str | None] = mapped_column(String(100))
    removal_notes: Mapped[str | None] = mapped_column(Text())
    sale_amount: Mapped[float | None] = mapped_column(Numeric(12, 2))
    sale_date: Mapped[date | None] = mapped_column(Date())
    sale_weight: Mapped[float | None] = mapped_column(Numeric(8, 2))
    sold_to: Mapped[str | None] = mapped_column(String(150))
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)
