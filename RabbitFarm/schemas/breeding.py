from datetime import date, datetime

from pydantic import Field

from schemas.shared import InputModel, ORMModel


class BreedingCreate(InputModel):
    doe_id: str = Field(min_length=1)
    buck_id: str = Field(min_length=1)
    mating_date: date
    expected_birth_date: date
    notes: str | None = None
    alert_message: str | None = None


class BreedingUpdate(InputModel):
    actual_birth_date: date | None = None
    number_of_kits: int | None = Field(default=None, ge=0)
    notes: str | None = None


class KitIn(InputModel):
    breeding_record_id: str = Field(min_length=1)
    kit_number: str = Field(min_length=1)
    birth_weight: float | None = Field(default=None, gt=0)
    gender: str | None = None
    color: str | None = None
    status: str | None = None
    parent_male_id: str | None = None
    parent_female_id: str | None = None
    notes: str | None = None
    actual_birth_date: date | None = None


class KitsCreate(InputModel):
    kitz: list[KitIn] = Field(default_factory=list)


class KitUpdate(InputModel):
    weaning_weight: float | None = None
    birth_weight: float | None = None
    status: str | None = None
    notes: str | None = None
    gender: str | None = None
    color: str | None = None
    parent_male_id: str | None = None
    parent_female_id: str | None = None


class KitOut(ORMModel):
    id: str
    breeding_record_id: str
    farm_id: str
    kit_number: str
    birth_weight: float | None = None
    gender: str | None = None
    color: str | None = None
    status: str
    weaning_date: date | None = None
    weaning_weight: float | None = None
    parent_male_id: str | None = None
    parent_female_id: str | None = None
    notes: str | None = None


class BreedingOut(ORMModel):
    id: str
    farm_id: str
    doe_id: str
    buck_id: str
    mating_date: date
    expected_birth_date: date
    actual_birth_date: date | None = None
    number_of_kits: int | None = None
    notes: str | None = None
    alert_date: date | None = None
    created_at: datetime
    updated_at: datetime


class BreedingDetailOut(BreedingOut):
    kits: list[KitOut] = []
