from datetime import datetime

from pydantic import Field, field_validator

from schemas.shared import InputModel, ORMModel


class FarmCreate(InputModel):
    name: str = Field(min_length=1, max_length=150)
    location: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    size: float | None = Field(default=None, ge=0)
    description: str | None = None
    timezone: str = "UTC"


class FarmUpdate(InputModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    location: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    size: float | None = Field(default=None, ge=0)
    description: str | None = None
    timezone: str | None = None
    is_active: bool | None = None


class FarmOut(ORMModel):
    id: str
    name: str
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    size: float | None = None
    description: str | None = None
    timezone: str
    created_by: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------
# Filas
# ---------------------------------------------------------------
class RowCreate(InputModel):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = None
    capacity: int = Field(ge=1)
    levels: list[str] = Field(default_factory=lambda: ["A", "B", "C"], min_length=1)

    @field_validator("levels")
    @classmethod
    def _upper_levels(cls, v: list[str]) -> list[str]:
        return [lvl.strip().upper() for lvl in v]


class RowUpdate(InputModel):
    description: str | None = None


class RowExpandIn(InputModel):
    additional_capacity: int = Field(ge=1)


class RowOut(ORMModel):
    id: str
    farm_id: str
    name: str
    description: str | None = None
    capacity: int
    levels: list[str]
    created_at: datetime
    updated_at: datetime
