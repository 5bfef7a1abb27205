from datetime import date as date_type, datetime

from schemas.shared import InputModel, ORMModel


class EarningsCreate(InputModel):
    type: str
    amount: float
    date: date_type
    currency: str = "USD"
    rabbit_id: str | None = None
    weight: float | None = None
    sale_type: str | None = None
    includes_urine: bool = False
    includes_manure: bool = False
    buyer_name: str | None = None
    notes: str | None = None
    hutch_id: str | None = None


class EarningsUpdate(InputModel):
    type: str | None = None
    amount: float | None = None
    date: date_type | None = None
    currency: str | None = None
    rabbit_id: str | None = None
    weight: float | None = None
    sale_type: str | None = None
    includes_urine: bool | None = None
    includes_manure: bool | None = None
    buyer_name: str | None = None
    notes: str | None = None
    hutch_id: str | None = None


class EarningsOut(ORMModel):
    id: str
    farm_id: str
    type: str
    rabbit_id: str | None = None
    amount: float
    currency: str
    date: date_type
    weight: float | None = None
    sale_type: str | None = None
    includes_urine: bool
    includes_manure: bool
    buyer_name: str | None = None
    notes: str | None = None
    hutch_id: str | None = None
    created_at: datetime
    updated_at: datetime
