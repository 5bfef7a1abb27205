from datetime import datetime

from enums.enums import AlertStatusEnum
from schemas.shared import InputModel, ORMModel


class AlertStatusIn(InputModel):
    status: AlertStatusEnum


class AlertOut(ORMModel):
    id: str
    farm_id: str
    user_id: str | None = None
    rabbit_id: str | None = None
    hutch_id: str | None = None
    name: str
    alert_start_date: datetime
    alert_end_date: datetime | None = None
    alert_type: str
    severity: str
    message: str
    status: str
    created_at: datetime


class NotificationOut(ORMModel):
    id: str
    user_id: str | None = None
    type: str
    title: str
    message: str
    data: dict | None = None
    priority: str
    is_read: bool
    created_at: datetime
