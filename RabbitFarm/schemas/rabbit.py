from datetime import date as date_type, datetime

from pydantic import Field

from enums.enums import GenderEnum
from schemas.hutch import HutchHistoryOut
from schemas.shared import InputModel, ORMModel


class RabbitCreate(InputModel):
    rabbit_id: str = Field(min_length=1, max_length=50)
    name: str | None = None
    gender: GenderEnum
    breed: str = Field(min_length=1)
    color: str = Field(min_length=1)
    birth_date: date_type
    weight: float = Field(gt=0)
    hutch_id: str | None = None
    is_pregnant: bool = False
    pregnancy_start_date: date_type | None = None
    expected_birth_date: date_type | None = None
    status: str = "active"
    notes: str | None = None


class RabbitUpdate(InputModel):
    name: str | None = None
    gender: GenderEnum | None = None
    breed: str | None = None
    color: str | None = None
    birth_date: date_type | None = None
    weight: float | None = Field(default=None, gt=0)
    hutch_id: str | None = None
    is_pregnant: bool | None = None
    pregnancy_start_date: date_type | None = None
    expected_birth_date: date_type | None = None
    status: str | None = None
    notes: str | None = None


class RabbitRemovalIn(InputModel):
    reason: str | None = None
    notes: str | None = None
    date: date_type | None = None
    sale_amount: float | None = Field(default=None, gt=0)
    sale_weight: float | None = Field(default=None, gt=0)
    sold_to: str | None = None
    sale_notes: str | None = None
    sale_type: str | None = None
    currency: str | None = None


class RabbitOut(ORMModel):
    id: str
    farm_id: str
    rabbit_id: str
    name: str | None = None
    gender: str
    breed: str
    color: str
    birth_date: date_type
    weight: float
    hutch_id: str | None = None
    is_pregnant: bool
    pregnancy_start_date: date_type | None = None
    expected_birth_date: date_type | None = None
    actual_birth_date: date_type | None = None
    status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class RabbitDetailOut(RabbitOut):
    history: list[HutchHistoryOut] = []
