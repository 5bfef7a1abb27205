# ============================================================================
# SERVICES: services/hutch_service.py
# ============================================================================

import logging
from typing import Any

from sqlalchemy.orm import Session

from enums.enums import DEFAULT_HUTCH_FEATURES, DEFAULT_LEVELS
from models.farm import Row
from models.hutch import Hutch, HutchRabbitHistory
from models.rabbit import Rabbit
from schemas.hutch import HutchCreate, HutchUpdate
from services.common import (
    apply_changes,
    apply_pagination,
    ensure_farm_access,
    parse_bool,
    parse_pagination,
    require_scope,
    require_user,
    soft_delete,
)
from utils.errors import NotFoundError, ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)


def _find_row(db: Session, farm_id: str, row_name: str) -> Row:
    row = (
        db.query(Row)
        .filter(Row.name == row_name, Row.farm_id == farm_id, Row.is_deleted == 0)
        .first()
    )
    if not row:
        raise ValidationError("Row not found")
    return row


def _check_level(level: str, levels: list[str] | None) -> None:
    allowed = levels or DEFAULT_LEVELS
    if level not in allowed:
        raise ValidationError(f"Level must be one of {', '.join(allowed)}")


def _get_hutch(db: Session, hutch_id: str, farm_id: str) -> Hutch:
    hutch = (
        db.query(Hutch)
        .filter(Hutch.id == hutch_id, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
        .first()
    )
    if not hutch:
        raise NotFoundError("Hutch not found")
    return hutch


def count_rabbits_in_hutch(db: Session, hutch_id: str, farm_id: str, exclude_rabbit_id: str | None = None) -> int:
    q = db.query(Rabbit).filter(Rabbit.hutch_id == hutch_id, Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
    if exclude_rabbit_id:
        q = q.filter(Rabbit.rabbit_id != exclude_rabbit_id)
    return q.count()


def create_hutch(db: Session, farm_id: str, payload: HutchCreate, user_id: str | None) -> Hutch:
    """
    Crear una jaula en una granja.

    Validaciones:
    - Usuario autenticado (antes de cualquier consulta)
    - Si trae fila: la fila existe, el nivel es de la fila y no se supera su capacidad
    - El id de jaula es único en la granja (entre no eliminadas)
    """
    user_id = require_user(user_id)
    if not farm_id or not payload.id or not payload.level or not payload.position \
            or not payload.size or not payload.material:
        raise ValidationError("Missing required hutch fields")

    ensure_farm_access(db, farm_id, user_id)

    if payload.row_name:
        row = _find_row(db, farm_id, payload.row_name)
        _check_level(payload.level, row.levels)
        in_row = (
            db.query(Hutch)
            .filter(Hutch.row_name == row.name, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
            .count()
        )
        if in_row >= row.capacity:
            raise ValidationError("Row capacity reached. Please expand row capacity.")
    else:
        _check_level(payload.level, None)

    exists = (
        db.query(Hutch.uid)
        .filter(Hutch.id == payload.id, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
        .first()
    )
    if exists:
        raise ValidationError("Hutch ID already exists")

    with uow(db):
        hutch = Hutch(
            id=payload.id,
            farm_id=farm_id,
            row_name=payload.row_name,
            level=payload.level,
            position=payload.position,
            size=payload.size,
            material=payload.material,
            features=payload.features or list(DEFAULT_HUTCH_FEATURES),
            is_occupied=payload.is_occupied,
            last_cleaned=payload.last_cleaned,
        )
        db.add(hutch)
    db.refresh(hutch)

    logger.info("Jaula %s creada por el usuario %s", hutch.id, user_id)
    return hutch


def get_hutch(db: Session, hutch_id: str, farm_id: str) -> Hutch:
    """
    Obtener una jaula por ID dentro de su granja.

    Raises:
        ValidationError: si falta hutch_id o farm_id
        NotFoundError: si no existe o está eliminada
    """
    require_scope(hutch_id, farm_id, "hutch")
    return _get_hutch(db, hutch_id, farm_id)


def list_hutch_rabbits(db: Session, hutch_id: str, farm_id: str) -> list[Rabbit]:
    return (
        db.query(Rabbit)
        .filter(Rabbit.hutch_id == hutch_id, Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
        .order_by(Rabbit.rabbit_id.asc())
        .all()
    )


def list_hutches(db: Session, farm_id: str, filters: dict[str, Any] | None = None) -> list[Hutch]:
    """
    Listar jaulas de una granja.

    Filtros: row_name, is_occupied ("true"/"false"), limit, offset.
    limit/offset se validan antes de consultar.
    """
    filters = filters or {}
    limit, offset = parse_pagination(filters.get("limit"), filters.get("offset"))
    is_occupied = parse_bool(filters.get("is_occupied"), "is_occupied")
    if not farm_id:
        raise ValidationError("Missing farmId")

    q = db.query(Hutch).filter(Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
    if filters.get("row_name"):
        q = q.filter(Hutch.row_name == filters["row_name"])
    if is_occupied is not None:
        q = q.filter(Hutch.is_occupied.is_(is_occupied))
    q = q.order_by(Hutch.id.asc())
    return apply_pagination(q, limit, offset).all()


def update_hutch(db: Session, hutch_id: str, farm_id: str, payload: HutchUpdate, user_id: str | None) -> Hutch:
    """
    Actualizar una jaula. Los campos ausentes o nulos conservan su valor.
    """
    user_id = require_user(user_id)
    require_scope(hutch_id, farm_id, "hutch")
    ensure_farm_access(db, farm_id, user_id)

    hutch = _get_hutch(db, hutch_id, farm_id)
    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    row_name = data.get("row_name", hutch.row_name)
    level = data.get("level", hutch.level)
    if "row_name" in data or "level" in data:
        levels = _find_row(db, farm_id, row_name).levels if row_name else None
        _check_level(level, levels)

    with uow(db):
        apply_changes(hutch, data)
    db.refresh(hutch)

    logger.info("Jaula %s actualizada por el usuario %s", hutch_id, user_id)
    return hutch


def delete_hutch(db: Session, hutch_id: str, farm_id: str, user_id: str | None) -> Hutch:
    """
    Eliminar (soft delete) una jaula dentro de una transacción.

    Raises:
        ValidationError: si la jaula aún tiene conejos
        NotFoundError: si no se afectó ninguna fila (rollback completo)
    """
    user_id = require_user(user_id)
    require_scope(hutch_id, farm_id, "hutch")
    ensure_farm_access(db, farm_id, user_id)

    try:
        with uow(db):
            if count_rabbits_in_hutch(db, hutch_id, farm_id) > 0:
                raise ValidationError("Cannot delete hutch with rabbits. Please remove rabbits first.")
            hutch = soft_delete(db, Hutch, {"id": hutch_id, "farm_id": farm_id}, "Hutch not found")
    except (ValidationError, NotFoundError) as exc:
        logger.error("Error al eliminar la jaula %s: %s", hutch_id, exc.message)
        raise

    logger.info("Jaula %s eliminada por el usuario %s", hutch_id, user_id)
    return hutch


def get_hutch_removed_rabbit_history(db: Session, hutch_id: str, farm_id: str) -> list[HutchRabbitHistory]:
    """
    Historial de conejos que pasaron por la jaula (más recientes primero).

    Si la etiqueta pertenece a una jaula viva, solo cuentan las estancias
    posteriores a su creación (una etiqueta eliminada se puede reutilizar).
    """
    require_scope(hutch_id, farm_id, "hutch")
    q = db.query(HutchRabbitHistory).filter(
        HutchRabbitHistory.farm_id == farm_id,
        HutchRabbitHistory.hutch_id == hutch_id,
        HutchRabbitHistory.is_deleted == 0,
    )
    live = (
        db.query(Hutch.created_at)
        .filter(Hutch.id == hutch_id, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
        .first()
    )
    if live:
        q = q.filter(HutchRabbitHistory.assigned_at >= live.created_at)
    return q.order_by(HutchRabbitHistory.updated_at.desc()).all()
