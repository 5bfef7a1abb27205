# services/common.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Type, TypeVar

from sqlalchemy.orm import Query, Session

from models.farm import Farm
from utils.datetime_utils import now_utc
from utils.errors import AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# -------------------------------------------------------------------
# Guardas
# -------------------------------------------------------------------
def require_user(user_id: str | None) -> str:
    """Toda operación que modifica datos exige un usuario autenticado."""
    if not user_id:
        raise AuthenticationError("User not authenticated")
    return user_id


def require_scope(entity_id: str | None, farm_id: str | None, label: str) -> None:
    """Las búsquedas acotadas exigen id de la entidad y de la granja."""
    if not entity_id or not farm_id:
        raise ValidationError(f"Missing farmId or {label} id")


def ensure_farm_access(db: Session, farm_id: str | None, user_id: str) -> Farm:
    """
    Verifica que la granja exista, no esté eliminada y pertenezca al usuario.

    Raises:
        ValidationError: si falta farm_id
        NotFoundError: si la granja no existe o es de otro usuario
    """
    if not farm_id:
        raise ValidationError("Missing farmId")
    farm = (
        db.query(Farm)
        .filter(Farm.id == farm_id, Farm.created_by == user_id, Farm.is_deleted == 0)
        .first()
    )
    if not farm:
        raise NotFoundError("Farm not found")
    return farm


# -------------------------------------------------------------------
# Filtros de listado
# -------------------------------------------------------------------
def _parse_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text.lstrip("-").isdigit():
        raise ValueError(value)
    return int(text)


def parse_pagination(limit: Any = None, offset: Any = None) -> tuple[int | None, int | None]:
    """
    Valida limit/offset antes de tocar la BD.

    Raises:
        ValidationError: si alguno no es un entero no negativo
    """
    try:
        parsed_limit = _parse_int(limit)
        parsed_offset = _parse_int(offset)
    except ValueError:
        raise ValidationError("Limit and offset must be valid integers")
    if (parsed_limit is not None and parsed_limit < 0) or (parsed_offset is not None and parsed_offset < 0):
        raise ValidationError("Limit and offset must be valid integers")
    return parsed_limit, parsed_offset


def apply_pagination(query: Query, limit: int | None, offset: int | None) -> Query:
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query


def parse_bool(value: Any, field: str) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValidationError(f"{field} must be true or false")


def parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"{field} must be a valid date (YYYY-MM-DD)")


# -------------------------------------------------------------------
# Soft delete genérico
# -------------------------------------------------------------------
def soft_delete(
    db: Session,
    model: Type[T],
    scope: Mapping[str, Any],
    not_found_message: str,
) -> T:
    """
    Marca una fila como eliminada: is_deleted=1, updated_at=ahora.

    `scope` son las columnas que identifican la fila (id + padre), p. ej.
    {"id": "R1-A1", "farm_id": farm_id}. Solo afecta filas con is_deleted=0.
    No hace commit: el llamador lo envuelve en uow().

    Returns:
        La fila eliminada.

    Raises:
        NotFoundError: si no se afectó ninguna fila
    """
    conditions = [getattr(model, col) == value for col, value in scope.items()]
    row = db.query(model).filter(*conditions, model.is_deleted == 0).first()

    affected = (
        db.query(model)
        .filter(*conditions, model.is_deleted == 0)
        .update({model.is_deleted: 1, model.updated_at: now_utc()}, synchronize_session="fetch")
    )
    if row is None or affected == 0:
        raise NotFoundError(not_found_message)

    logger.debug("Soft delete en %s: %s", model.__tablename__, dict(scope))
    return row


def apply_changes(obj: Any, data: Mapping[str, Any]) -> Any:
    """Aplica un dict parcial (model_dump(exclude_unset=True)) sobre un objeto ORM."""
    for k, v in data.items():
        setattr(obj, k, v)
    return obj
