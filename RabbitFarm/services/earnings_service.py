# ============================================================================
# SERVICES: services/earnings_service.py
# ============================================================================

import logging
import re
from typing import Any

from sqlalchemy.orm import Session

from enums.enums import EarningsTypeEnum, SaleTypeEnum
from models.earnings import EarningsRecord
from models.hutch import Hutch
from models.rabbit import Rabbit
from schemas.earnings import EarningsCreate, EarningsUpdate
from services.common import (
    apply_changes,
    apply_pagination,
    ensure_farm_access,
    parse_date,
    parse_pagination,
    require_scope,
    require_user,
    soft_delete,
)
from utils.errors import NotFoundError, ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)

CURRENCY_RE = re.compile(r"^[A-Z]{3}$")

_TYPES = {e.value for e in EarningsTypeEnum}
_SALE_TYPES = {e.value for e in SaleTypeEnum}


def check_sale_fields(sale_type: str | None, currency: str | None) -> None:
    """
    sale_type y moneda de una venta.

    Raises:
        ValidationError: sale_type fuera de whole/processed/live o moneda que no es un código de 3 letras
    """
    if sale_type is not None and sale_type not in _SALE_TYPES:
        raise ValidationError("Sale type must be whole, processed, or live")
    if currency is not None and not CURRENCY_RE.match(currency):
        raise ValidationError("Currency must be a valid 3-letter code")


def _validate_fields(db: Session, farm_id: str, data: dict[str, Any]) -> None:
    """
    Reglas comunes de alta y edición (solo sobre los campos presentes).

    Raises:
        ValidationError: tipo, sale_type, moneda o monto inválidos; jaula o conejo inexistentes
    """
    if data.get("type") is not None and data["type"] not in _TYPES:
        raise ValidationError("Type must be rabbit_sale, urine_sale, manure_sale, or other")
    check_sale_fields(data.get("sale_type"), data.get("currency"))
    if data.get("amount") is not None and data["amount"] <= 0:
        raise ValidationError("Amount must be positive")

    if data.get("hutch_id"):
        hutch = (
            db.query(Hutch.uid)
            .filter(Hutch.id == data["hutch_id"], Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
            .first()
        )
        if not hutch:
            raise ValidationError("Hutch not found")


def create_earnings(db: Session, farm_id: str, payload: EarningsCreate, user_id: str | None) -> EarningsRecord:
    """
    Registrar un ingreso (venta de conejos, orina, estiércol u otro).
    """
    user_id = require_user(user_id)
    if not farm_id or not payload.type or not payload.amount or not payload.date:
        raise ValidationError("Missing required earnings fields")
    data = payload.model_dump()
    _validate_fields(db, farm_id, data)
    ensure_farm_access(db, farm_id, user_id)

    with uow(db):
        record = EarningsRecord(**data, farm_id=farm_id)
        db.add(record)
    db.refresh(record)

    logger.info("Ingreso %s (%s) creado por el usuario %s", record.id, record.type, user_id,
                extra={"farm_id": farm_id, "user_id": user_id})
    return record


def get_earnings(db: Session, earnings_id: str, farm_id: str) -> EarningsRecord:
    require_scope(earnings_id, farm_id, "earnings")
    record = (
        db.query(EarningsRecord)
        .filter(EarningsRecord.id == earnings_id, EarningsRecord.farm_id == farm_id, EarningsRecord.is_deleted == 0)
        .first()
    )
    if not record:
        raise NotFoundError("Earnings record not found")
    return record


def list_earnings(db: Session, farm_id: str, filters: dict[str, Any] | None = None) -> list[EarningsRecord]:
    """
    Listar ingresos de una granja (fecha más reciente primero).

    Filtros: type, date_from, date_to (YYYY-MM-DD), limit, offset.
    """
    filters = filters or {}
    limit, offset = parse_pagination(filters.get("limit"), filters.get("offset"))
    date_from = parse_date(filters.get("date_from"), "date_from")
    date_to = parse_date(filters.get("date_to"), "date_to")
    if not farm_id:
        raise ValidationError("Missing farmId")

    q = db.query(EarningsRecord).filter(EarningsRecord.farm_id == farm_id, EarningsRecord.is_deleted == 0)
    if filters.get("type"):
        q = q.filter(EarningsRecord.type == filters["type"])
    if date_from:
        q = q.filter(EarningsRecord.date >= date_from)
    if date_to:
        q = q.filter(EarningsRecord.date <= date_to)
    q = q.order_by(EarningsRecord.date.desc(), EarningsRecord.created_at.desc())
    return apply_pagination(q, limit, offset).all()


def update_earnings(
    db: Session, earnings_id: str, farm_id: str, payload: EarningsUpdate, user_id: str | None
) -> EarningsRecord:
    """
    Actualizar un ingreso. Los campos nulos conservan su valor.
    """
    user_id = require_user(user_id)
    require_scope(earnings_id, farm_id, "earnings")

    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    _validate_fields(db, farm_id, data)
    ensure_farm_access(db, farm_id, user_id)

    if data.get("rabbit_id"):
        rabbit = (
            db.query(Rabbit.id)
            .filter(Rabbit.rabbit_id == data["rabbit_id"], Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
            .first()
        )
        if not rabbit:
            raise ValidationError("Rabbit not found")

    record = get_earnings(db, earnings_id, farm_id)
    with uow(db):
        apply_changes(record, data)
    db.refresh(record)

    logger.info("Ingreso %s actualizado por el usuario %s", earnings_id, user_id)
    return record


def delete_earnings(db: Session, earnings_id: str, farm_id: str, user_id: str | None) -> EarningsRecord:
    user_id = require_user(user_id)
    require_scope(earnings_id, farm_id, "earnings")
    ensure_farm_access(db, farm_id, user_id)

    with uow(db):
        record = soft_delete(
            db, EarningsRecord, {"id": earnings_id, "farm_id": farm_id}, "Earnings record not found"
        )

    logger.info("Ingreso %s eliminado por el usuario %s", earnings_id, user_id)
    return record
