from __future__ import annotations

from datetime import date as date_type, datetime
from sqlalchemy import String, Text, Date, DateTime, Numeric, Boolean, SmallInteger, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class EarningsRecord(Base):
    __tablename__ = "earnings_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    farm_id: Mapped[str] = mapped_column(String(36), ForeignKey("farms.id", ondelete="RESTRICT"),
                                         nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # rabbit_sale/urine_sale/manure_sale/other
    rabbit_id: Mapped[str | None] = mapped_column(String(50))
    amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    date: Mapped[date_type] = mapped_column(Date(), nullable=False, index=True)
    weight: Mapped[float | None] = mapped_column(Numeric(8, 2))
    sale_type: Mapped[str | None] = mapped_column(String(20))  # whole/processed/live
    includes_urine: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    includes_manure: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    buyer_name: Mapped[str | None] = mapped_column(String(150))
    notes: Mapped[str | None] = mapped_column(Text())
    hutch_id: Mapped[str | None] = mapped_column(String(50))
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)
