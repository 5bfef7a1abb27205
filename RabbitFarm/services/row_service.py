# services/row_service.py
"""
Filas de jaulas. Al crear una fila se generan sus jaulas repartidas entre niveles.
"""
import logging

from sqlalchemy.orm import Session

from enums.enums import DEFAULT_HUTCH_FEATURES
from models.farm import Row
from models.hutch import Hutch
from schemas.farm import RowCreate, RowUpdate
from services.common import ensure_farm_access, require_scope, require_user, soft_delete
from utils.datetime_utils import now_utc
from utils.errors import NotFoundError, ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)


def distribute_hutches(capacity: int, levels: list[str]) -> dict[str, int]:
    """
    Reparte `capacity` jaulas entre niveles; el sobrante va a los primeros niveles.

    >>> distribute_hutches(7, ["A", "B", "C"])
    {'A': 3, 'B': 2, 'C': 2}
    """
    base, remainder = divmod(capacity, len(levels))
    return {level: base + (1 if i < remainder else 0) for i, level in enumerate(levels)}


def _get_row(db: Session, name: str, farm_id: str) -> Row:
    row = (
        db.query(Row)
        .filter(Row.name == name, Row.farm_id == farm_id, Row.is_deleted == 0)
        .first()
    )
    if not row:
        raise NotFoundError("Row not found")
    return row


def create_row(db: Session, farm_id: str, payload: RowCreate, user_id: str | None) -> Row:
    """
    Crear una fila y sus `capacity` jaulas (ids "<fila>-<nivel><n>").
    """
    user_id = require_user(user_id)
    ensure_farm_access(db, farm_id, user_id)

    if not payload.name or payload.capacity < 1 or not payload.levels:
        raise ValidationError("Farm ID, name, valid capacity, and levels are required")

    exists = db.query(Row.id).filter(Row.name == payload.name, Row.farm_id == farm_id, Row.is_deleted == 0).first()
    if exists:
        raise ValidationError("Row already exists")

    distribution = distribute_hutches(payload.capacity, payload.levels)
    labels = [f"{payload.name}-{level}{n}" for level, count in distribution.items() for n in range(1, count + 1)]
    taken = (
        db.query(Hutch.id)
        .filter(Hutch.id.in_(labels), Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
        .first()
    )
    if taken:
        raise ValidationError("Hutch ID already exists")

    with uow(db):
        row = Row(
            farm_id=farm_id,
            name=payload.name,
            description=payload.description,
            capacity=payload.capacity,
            levels=list(payload.levels),
        )
        db.add(row)
        for level, count in distribution.items():
            for position in range(1, count + 1):
                db.add(Hutch(
                    id=f"{payload.name}-{level}{position}",
                    farm_id=farm_id,
                    row_name=payload.name,
                    level=level,
                    position=position,
                    size="medium",
                    material="wire",
                    features=list(DEFAULT_HUTCH_FEATURES),
                    is_occupied=False,
                ))
    db.refresh(row)

    logger.info("Fila %s creada con %s jaulas %s por el usuario %s", row.name, payload.capacity, distribution, user_id)
    return row


def get_row(db: Session, name: str, farm_id: str) -> Row:
    require_scope(name, farm_id, "row")
    return _get_row(db, name, farm_id)


def list_rows(db: Session, farm_id: str) -> list[Row]:
    if not farm_id:
        raise ValidationError("Missing farmId")
    return (
        db.query(Row)
        .filter(Row.farm_id == farm_id, Row.is_deleted == 0)
        .order_by(Row.created_at.desc())
        .all()
    )


def update_row(db: Session, name: str, farm_id: str, payload: RowUpdate, user_id: str | None) -> Row:
    user_id = require_user(user_id)
    require_scope(name, farm_id, "row")
    ensure_farm_access(db, farm_id, user_id)

    row = _get_row(db, name, farm_id)
    with uow(db):
        row.description = payload.description
    db.refresh(row)

    logger.info("Fila %s actualizada por el usuario %s", name, user_id)
    return row


def expand_row_capacity(db: Session, name: str, farm_id: str, additional_capacity: int, user_id: str | None) -> Row:
    """Aumentar la capacidad de la fila (las jaulas nuevas se crean aparte)."""
    user_id = require_user(user_id)
    require_scope(name, farm_id, "row")
    if not additional_capacity or additional_capacity < 1:
        raise ValidationError("Additional capacity must be at least 1")
    ensure_farm_access(db, farm_id, user_id)

    row = _get_row(db, name, farm_id)
    with uow(db):
        row.capacity = row.capacity + additional_capacity
    db.refresh(row)

    logger.info("Fila %s ampliada en %s jaulas (total %s) por el usuario %s",
                name, additional_capacity, row.capacity, user_id)
    return row


def delete_row(db: Session, name: str, farm_id: str, user_id: str | None) -> Row:
    """Eliminar (soft delete) la fila y sus jaulas en una sola transacción."""
    user_id = require_user(user_id)
    require_scope(name, farm_id, "row")
    ensure_farm_access(db, farm_id, user_id)

    with uow(db):
        row = soft_delete(db, Row, {"name": name, "farm_id": farm_id}, "Row not found")
        (
            db.query(Hutch)
            .filter(Hutch.row_name == name, Hutch.farm_id == farm_id, Hutch.is_deleted == 0)
            .update({Hutch.is_deleted: 1, Hutch.updated_at: now_utc()}, synchronize_session=False)
        )

    logger.info("Fila %s eliminada por el usuario %s", name, user_id)
    return row
