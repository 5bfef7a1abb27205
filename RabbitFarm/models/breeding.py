from __future__ import annotations

from datetime import date, datetime
from sqlalchemy import String, Text, Date, DateTime, Integer, Numeric, SmallInteger, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class BreedingRecord(Base):
    """Cruza entre una hembra (doe) y un macho (buck); doe_id/buck_id son etiquetas de conejo."""
    __tablename__ = "breeding_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    doe_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    buck_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    mating_date: Mapped[date] = mapped_column(Date(), nullable=False)
    expected_birth_date: Mapped[date] = mapped_column(Date(), nullable=False)
    actual_birth_date: Mapped[date | None] = mapped_column(Date())
    number_of_kits: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text())
    alert_date: Mapped[date | None] = mapped_column(Date())
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)


class KitRecord(Base):
    __tablename__ = "kit_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    breeding_record_id: Mapped[str] = mapped_column(String(36), ForeignKey("breeding_records.id", ondelete="CASCADE"),
                                                    nullable=False, index=True)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    kit_number: Mapped[str] = mapped_column(String(50), nullable=False)
    birth_weight: Mapped[float | None] = mapped_column(Numeric(8, 2))
    gender: Mapped[str | None] = mapped_column(String(10))
    color: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), default="alive", nullable=False)
    weaning_date: Mapped[date | None] = mapped_column(Date())
    weaning_weight: Mapped[float | None] = mapped_column(Numeric(8, 2))
    parent_male_id: Mapped[str | None] = mapped_column(String(50))
    parent_female_id: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text())
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)
