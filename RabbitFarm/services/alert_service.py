# ============================================================================
# SERVICES: services/alert_service.py
# ============================================================================
"""
Alertas de la granja (recordatorios de cruza, parto, destete, ...).

Las alertas se crean en estado pending; la tarea periódica de Celery envía
por email las que ya vencieron y las pasa a sent.
"""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import case
from sqlalchemy.orm import Session

from enums.enums import AlertSeverityEnum, AlertStatusEnum
from models.alert import Alert
from models.user import User
from services.common import ensure_farm_access, parse_pagination, require_user
from services.email_service import send_alert_email
from utils.datetime_utils import now_utc, to_utc_naive
from utils.errors import AppError, InternalError, NotFoundError, ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)

DEFAULT_ALERT_LIMIT = 10

_REQUIRED_FIELDS = ("farm_id", "name", "alert_start_date", "alert_type", "severity", "message")

_SEVERITY_RANK = case(
    (Alert.severity == AlertSeverityEnum.high.value, 3),
    (Alert.severity == AlertSeverityEnum.medium.value, 2),
    (Alert.severity == AlertSeverityEnum.low.value, 1),
    else_=0,
)


def add_alert(db: Session, data: dict[str, Any]) -> Alert:
    """
    Validar y agregar una alerta a la sesión (sin commit).

    Lo usan los servicios que crean alertas dentro de su propia transacción.

    Raises:
        ValidationError: si falta algún campo obligatorio
    """
    if any(not data.get(field) for field in _REQUIRED_FIELDS):
        raise ValidationError("Missing required alert fields")

    start = data["alert_start_date"]
    end = data.get("alert_end_date")
    alert = Alert(
        farm_id=data["farm_id"],
        user_id=data.get("user_id"),
        rabbit_id=data.get("rabbit_id"),
        hutch_id=data.get("hutch_id"),
        name=data["name"],
        alert_start_date=to_utc_naive(start) if isinstance(start, datetime) else start,
        alert_end_date=to_utc_naive(end) if isinstance(end, datetime) else end,
        alert_type=data["alert_type"],
        severity=data["severity"],
        message=data["message"],
        status=data.get("status") or AlertStatusEnum.pending.value,
        is_active=True,
    )
    db.add(alert)
    return alert


def create_alert(db: Session, data: dict[str, Any]) -> Alert:
    """Crear una alerta en su propia transacción."""
    with uow(db):
        alert = add_alert(db, data)
    db.refresh(alert)
    logger.info("Alerta %s creada para la granja %s", alert.id, alert.farm_id,
                extra={"alert_id": alert.id, "farm_id": alert.farm_id})
    return alert


def _active_alerts(db: Session, farm_id: str):
    return db.query(Alert).filter(Alert.farm_id == farm_id, Alert.is_active.is_(True), Alert.is_deleted == 0)


def list_farm_alerts(db: Session, farm_id: str, filters: dict[str, Any] | None = None) -> list[Alert]:
    """
    Alertas activas de una granja, las más severas primero y luego por fecha.

    Filtros: alert_type, severity, status, limit (10 por defecto).
    """
    filters = filters or {}
    limit, _ = parse_pagination(filters.get("limit"), None)
    if not farm_id:
        raise ValidationError("Missing farmId")

    q = _active_alerts(db, farm_id)
    if filters.get("alert_type"):
        q = q.filter(Alert.alert_type == filters["alert_type"])
    if filters.get("severity"):
        q = q.filter(Alert.severity == filters["severity"])
    if filters.get("status"):
        q = q.filter(Alert.status == filters["status"])

    return (
        q.order_by(_SEVERITY_RANK.desc(), Alert.alert_start_date.asc())
        .limit(DEFAULT_ALERT_LIMIT if limit is None else limit)
        .all()
    )


def list_calendar_alerts(db: Session, farm_id: str) -> list[Alert]:
    """Todas las alertas no rechazadas de la granja en orden cronológico (vista calendario)."""
    if not farm_id:
        raise ValidationError("Missing farmId")
    return (
        _active_alerts(db, farm_id)
        .filter(Alert.status != AlertStatusEnum.rejected.value)
        .order_by(Alert.alert_start_date.asc())
        .all()
    )


def update_alert_status(
    db: Session, alert_id: str, farm_id: str, status: AlertStatusEnum | str, user_id: str | None
) -> Alert:
    """
    Cambiar el estado de una alerta.

    Raises:
        NotFoundError: si la alerta no existe en la granja
    """
    user_id = require_user(user_id)
    ensure_farm_access(db, farm_id, user_id)

    alert = (
        db.query(Alert)
        .filter(Alert.id == alert_id, Alert.farm_id == farm_id, Alert.is_deleted == 0)
        .first()
    )
    if not alert:
        raise NotFoundError("Alert not found")

    value = status.value if isinstance(status, AlertStatusEnum) else status
    with uow(db):
        alert.status = value
    db.refresh(alert)

    logger.info("Estado de la alerta %s actualizado a %s", alert_id, value, extra={"alert_id": alert_id})
    return alert


def get_due_alerts(db: Session, now: datetime | None = None) -> list[Alert]:
    """Alertas pendientes cuya fecha de inicio ya llegó."""
    now = now or now_utc()
    return (
        db.query(Alert)
        .filter(
            Alert.alert_start_date <= now,
            Alert.status == AlertStatusEnum.pending.value,
            Alert.is_active.is_(True),
            Alert.is_deleted == 0,
        )
        .order_by(Alert.alert_start_date.asc())
        .all()
    )


def send_alert_notification(db: Session, alert: Alert) -> dict:
    """
    Enviar la alerta por email a su usuario (si tiene) y marcarla como sent.

    Raises:
        InternalError: si el email no se pudo enviar (la alerta sigue pending)
    """
    user = (
        db.query(User).filter(User.id == alert.user_id, User.is_deleted == 0).first()
        if alert.user_id else None
    )
    if user and not send_alert_email(user.email, alert.name, alert.message, alert.severity):
        logger.error("Fallo el envío de la alerta %s", alert.id, extra={"alert_id": alert.id})
        raise InternalError("Failed to send alert email")

    with uow(db):
        alert.status = AlertStatusEnum.sent.value

    logger.info("Notificación enviada para la alerta %s", alert.id, extra={"alert_id": alert.id})
    return {"success": True, "message": "Notification sent successfully"}


def process_due_alerts(db: Session, now: datetime | None = None) -> list[dict]:
    """
    Procesar alertas vencidas (la llama el scheduler).

    Un fallo en una alerta no detiene las demás; queda en el resultado.
    """
    results = []
    for alert in get_due_alerts(db, now):
        try:
            result = send_alert_notification(db, alert)
        except AppError as exc:
            logger.error("Error al procesar la alerta %s: %s", alert.id, exc.message, extra={"alert_id": alert.id})
            result = {"success": False, "message": exc.message}
        results.append({"alert_id": alert.id, **result})
    return results
