from datetime import date, datetime

from pydantic import Field

from schemas.shared import InputModel, ORMModel


class HutchCreate(InputModel):
    id: str = Field(min_length=1, max_length=50)
    row_name: str | None = None
    level: str = Field(min_length=1, max_length=5)
    position: int = Field(ge=1)
    size: str = Field(min_length=1, max_length=20)
    material: str = Field(min_length=1, max_length=30)
    features: list[str] | None = None
    is_occupied: bool = False
    last_cleaned: datetime | None = None


class HutchUpdate(InputModel):
    row_name: str | None = None
    level: str | None = None
    position: int | None = Field(default=None, ge=1)
    size: str | None = None
    material: str | None = None
    features: list[str] | None = None
    is_occupied: bool | None = None
    last_cleaned: datetime | None = None


class HutchRabbitOut(ORMModel):
    rabbit_id: str
    name: str | None = None
    gender: str


class HutchOut(ORMModel):
    id: str
    farm_id: str
    row_name: str | None = None
    level: str
    position: int
    size: str
    material: str
    features: list[str]
    is_occupied: bool
    last_cleaned: datetime | None = None
    created_at: datetime
    updated_at: datetime


class HutchDetailOut(HutchOut):
    rabbits: list[HutchRabbitOut] = []


class HutchHistoryOut(ORMModel):
    id: str
    hutch_id: str
    rabbit_id: str
    farm_id: str
    assigned_at: datetime
    removed_at: datetime | None = None
    removal_reason: str | None = None
    removal_notes: str | None = None
    sale_amount: float | None = None
    sale_date: date | None = None
    sale_weight: float | None = None
    sold_to: str | None = None
