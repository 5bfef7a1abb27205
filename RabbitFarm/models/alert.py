from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, Text, DateTime, Boolean, SmallInteger, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class Alert(Base):
    """
    Recordatorio programado para una granja.

    Ciclo de vida del status: pending -> sent (email enviado) -> completed,
    o pending -> rejected cuando se cancela.
    """
    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    rabbit_id: Mapped[str | None] = mapped_column(String(50), index=True)
    hutch_id: Mapped[str | None] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    alert_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, index=True)
    alert_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False))
    alert_type: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)
    message: Mapped[str] = mapped_column(Text(), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text(), nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON)
    priority: Mapped[str] = mapped_column(String(10), default="medium", nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
