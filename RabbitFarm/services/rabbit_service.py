# services/rabbit_service.py
"""
Conejos: alta, consulta, movimiento entre jaulas y baja (venta, muerte, ...).

Cada estancia en una jaula queda en hutch_rabbit_history; la jaula se marca
ocupada mientras tenga al menos un conejo vivo.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from enums.enums import EarningsTypeEnum, MAX_RABBITS_PER_HUTCH, SaleTypeEnum
from models.earnings import EarningsRecord
from models.hutch import Hutch, HutchRabbitHistory
from models.rabbit import Rabbit, RemovalRecord
from schemas.rabbit import RabbitCreate, RabbitRemovalIn, RabbitUpdate
from services.common import (
    apply_changes,
    apply_pagination,
    ensure_farm_access,
    parse_pagination,
    require_scope,
    require_user,
    soft_delete,
)
from services.earnings_service import check_sale_fields
from services.hutch_service import count_rabbits_in_hutch
from utils.datetime_utils import now_utc, today_farm
from utils.errors import NotFoundError, ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)


def _check_hutch_room(db: Session, hutch_id: str, farm_id: str, exclude_rabbit_id: str | None = None) -> None:
    """
    La jaula debe existir y tener espacio.

    Raises:
        ValidationError: jaula inexistente o llena
    """
    exists = (
        db.query(Hutch.uid)
        .filter(Hutch.id == hutch_id, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
        .first()
    )
    if not exists:
        raise ValidationError("Hutch not found")
    if count_rabbits_in_hutch(db, hutch_id, farm_id, exclude_rabbit_id) >= MAX_RABBITS_PER_HUTCH:
        raise ValidationError(f"Hutch cannot have more than {MAX_RABBITS_PER_HUTCH} rabbits")


def _set_occupancy(db: Session, hutch_id: str, farm_id: str) -> None:
    db.flush()
    occupied = count_rabbits_in_hutch(db, hutch_id, farm_id) > 0
    (
        db.query(Hutch)
        .filter(Hutch.id == hutch_id, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
        .update({Hutch.is_occupied: occupied, Hutch.updated_at: now_utc()}, synchronize_session="fetch")
    )


def _open_history(db: Session, hutch_id: str, rabbit_id: str, farm_id: str) -> None:
    db.add(HutchRabbitHistory(hutch_id=hutch_id, rabbit_id=rabbit_id, farm_id=farm_id, assigned_at=now_utc()))


def _open_history_entry(db: Session, hutch_id: str, rabbit_id: str, farm_id: str) -> HutchRabbitHistory | None:
    return (
        db.query(HutchRabbitHistory)
        .filter(
            HutchRabbitHistory.hutch_id == hutch_id,
            HutchRabbitHistory.rabbit_id == rabbit_id,
            HutchRabbitHistory.farm_id == farm_id,
            HutchRabbitHistory.is_deleted == 0,
            HutchRabbitHistory.removed_at.is_(None),
        )
        .first()
    )


def _get_rabbit(db: Session, rabbit_id: str, farm_id: str) -> Rabbit:
    rabbit = (
        db.query(Rabbit)
        .filter(Rabbit.rabbit_id == rabbit_id, Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
        .first()
    )
    if not rabbit:
        raise NotFoundError("Rabbit not found")
    return rabbit


def create_rabbit(db: Session, farm_id: str, payload: RabbitCreate, user_id: str | None) -> Rabbit:
    """
    Registrar un conejo.

    Validaciones:
    - rabbit_id único en la granja
    - Si trae jaula: debe existir y tener menos de 6 conejos

    Si se asigna a una jaula, ésta queda ocupada y se abre su historial.
    """
    user_id = require_user(user_id)
    ensure_farm_access(db, farm_id, user_id)

    exists = (
        db.query(Rabbit.id)
        .filter(Rabbit.rabbit_id == payload.rabbit_id, Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
        .first()
    )
    if exists:
        raise ValidationError("Rabbit ID already exists")

    if payload.hutch_id:
        _check_hutch_room(db, payload.hutch_id, farm_id)

    data = payload.model_dump()
    data["gender"] = payload.gender.value
    with uow(db):
        rabbit = Rabbit(**data, farm_id=farm_id)
        db.add(rabbit)
        if payload.hutch_id:
            _open_history(db, payload.hutch_id, payload.rabbit_id, farm_id)
            _set_occupancy(db, payload.hutch_id, farm_id)
    db.refresh(rabbit)

    logger.info("Conejo %s creado por el usuario %s", rabbit.rabbit_id, user_id)
    return rabbit


def get_rabbit(db: Session, rabbit_id: str, farm_id: str) -> Rabbit:
    require_scope(rabbit_id, farm_id, "rabbit")
    return _get_rabbit(db, rabbit_id, farm_id)


def get_rabbit_history(db: Session, rabbit_id: str, farm_id: str) -> list[HutchRabbitHistory]:
    """Estancias del conejo en jaulas (más antiguas primero)."""
    return (
        db.query(HutchRabbitHistory)
        .filter(
            HutchRabbitHistory.rabbit_id == rabbit_id,
            HutchRabbitHistory.farm_id == farm_id,
            HutchRabbitHistory.is_deleted == 0,
        )
        .order_by(HutchRabbitHistory.assigned_at.asc())
        .all()
    )


def list_rabbits(db: Session, farm_id: str, filters: dict[str, Any] | None = None) -> list[Rabbit]:
    filters = filters or {}
    limit, offset = parse_pagination(filters.get("limit"), filters.get("offset"))
    if not farm_id:
        raise ValidationError("Missing farmId")

    q = db.query(Rabbit).filter(Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
    if filters.get("hutch_id"):
        q = q.filter(Rabbit.hutch_id == filters["hutch_id"])
    q = q.order_by(Rabbit.created_at.desc())
    return apply_pagination(q, limit, offset).all()


def update_rabbit(db: Session, rabbit_id: str, farm_id: str, payload: RabbitUpdate, user_id: str | None) -> Rabbit:
    """
    Actualizar un conejo. Si cambia de jaula se cierra la estancia anterior,
    se abre una nueva y se recalcula la ocupación de ambas jaulas.
    """
    user_id = require_user(user_id)
    require_scope(rabbit_id, farm_id, "rabbit")
    ensure_farm_access(db, farm_id, user_id)

    rabbit = _get_rabbit(db, rabbit_id, farm_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("gender") is not None:
        data["gender"] = payload.gender.value

    old_hutch = rabbit.hutch_id
    new_hutch = data.get("hutch_id", old_hutch)
    moved = new_hutch != old_hutch
    if moved and new_hutch:
        _check_hutch_room(db, new_hutch, farm_id, exclude_rabbit_id=rabbit_id)

    try:
        with uow(db):
            apply_changes(rabbit, {k: v for k, v in data.items() if v is not None or k == "hutch_id"})
            if moved:
                if old_hutch:
                    entry = _open_history_entry(db, old_hutch, rabbit_id, farm_id)
                    if entry:
                        entry.removed_at = now_utc()
                    _set_occupancy(db, old_hutch, farm_id)
                if new_hutch:
                    _open_history(db, new_hutch, rabbit_id, farm_id)
                    _set_occupancy(db, new_hutch, farm_id)
    except ValidationError as exc:
        logger.error("Error al actualizar el conejo %s: %s", rabbit_id, exc.message)
        raise
    db.refresh(rabbit)

    logger.info("Conejo %s actualizado por el usuario %s", rabbit_id, user_id)
    return rabbit


def remove_rabbit(db: Session, rabbit_id: str, farm_id: str, payload: RabbitRemovalIn, user_id: str | None) -> Rabbit:
    """
    Dar de baja un conejo en una sola transacción:

    1. Soft delete del conejo
    2. Registro de baja (removal_records)
    3. Cierre de la estancia en la jaula con los datos de venta
    4. Recalcular ocupación de la jaula
    5. Si el motivo es "Sale" con monto: ingreso rabbit_sale

    Raises:
        ValidationError: sin motivo de baja
        NotFoundError: si el conejo no existe
    """
    user_id = require_user(user_id)
    require_scope(rabbit_id, farm_id, "rabbit")
    if not payload.reason:
        raise ValidationError("Removal reason is required")
    if payload.reason == "Sale":
        check_sale_fields(payload.sale_type, payload.currency)
    ensure_farm_access(db, farm_id, user_id)

    removal_date = payload.date or today_farm()
    try:
        with uow(db):
            rabbit = soft_delete(db, Rabbit, {"rabbit_id": rabbit_id, "farm_id": farm_id}, "Rabbit not found")
            hutch_id = rabbit.hutch_id

            db.add(RemovalRecord(
                rabbit_id=rabbit_id,
                hutch_id=hutch_id,
                farm_id=farm_id,
                reason=payload.reason,
                notes=payload.notes,
                date=removal_date,
                sale_amount=payload.sale_amount,
                sale_weight=payload.sale_weight,
                sold_to=payload.sold_to,
            ))

            if hutch_id:
                entry = _open_history_entry(db, hutch_id, rabbit_id, farm_id)
                if entry:
                    entry.removed_at = now_utc()
                    entry.removal_reason = payload.reason
                    entry.removal_notes = payload.sale_notes or payload.notes
                    entry.sale_amount = payload.sale_amount
                    entry.sale_date = removal_date
                    entry.sale_weight = payload.sale_weight
                    entry.sold_to = payload.sold_to
                _set_occupancy(db, hutch_id, farm_id)

            if payload.reason == "Sale" and payload.sale_amount:
                db.add(EarningsRecord(
                    farm_id=farm_id,
                    rabbit_id=rabbit_id,
                    type=EarningsTypeEnum.rabbit_sale.value,
                    amount=payload.sale_amount,
                    currency=payload.currency or "USD",
                    date=removal_date,
                    weight=payload.sale_weight,
                    sale_type=payload.sale_type or SaleTypeEnum.whole.value,
                    buyer_name=payload.sold_to,
                    notes=payload.sale_notes,
                    hutch_id=hutch_id,
                ))
    except (ValidationError, NotFoundError) as exc:
        logger.error("Error al dar de baja el conejo %s: %s", rabbit_id, exc.message)
        raise

    logger.info("Conejo %s dado de baja (%s) por el usuario %s", rabbit_id, payload.reason, user_id)
    return rabbit
