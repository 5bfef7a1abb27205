# ============================================================================
# SERVICES: services/farm_service.py
# ============================================================================

import logging

from sqlalchemy.orm import Session

from models.farm import Farm, Row
from models.hutch import Hutch
from models.rabbit import Rabbit
from schemas.farm import FarmCreate, FarmUpdate
from services.common import apply_changes, ensure_farm_access, require_user, soft_delete
from utils.datetime_utils import now_utc
from utils.errors import ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)


def _name_taken(db: Session, user_id: str, name: str, exclude_id: str | None = None) -> bool:
    q = db.query(Farm.id).filter(Farm.created_by == user_id, Farm.name == name, Farm.is_deleted == 0)
    if exclude_id:
        q = q.filter(Farm.id != exclude_id)
    return q.first() is not None


def list_farms(db: Session, user_id: str | None) -> list[Farm]:
    """
    Listar las granjas del usuario (más recientes primero).
    """
    user_id = require_user(user_id)
    return (
        db.query(Farm)
        .filter(Farm.created_by == user_id, Farm.is_deleted == 0)
        .order_by(Farm.created_at.desc())
        .all()
    )


def create_farm(db: Session, payload: FarmCreate, user_id: str | None) -> Farm:
    """
    Crear una nueva granja. El nombre es único entre las granjas del usuario.
    """
    user_id = require_user(user_id)
    if _name_taken(db, user_id, payload.name):
        raise ValidationError("Farm with this name already exists")

    with uow(db):
        farm = Farm(**payload.model_dump(), created_by=user_id, is_active=1)
        db.add(farm)
    db.refresh(farm)

    logger.info("Granja %s creada por el usuario %s", farm.id, user_id)
    return farm


def get_farm(db: Session, farm_id: str, user_id: str | None) -> Farm:
    """
    Obtener una granja por ID.

    Returns:
        Granja encontrada

    Raises:
        AuthenticationError: sin usuario
        NotFoundError: Si la granja no existe o no es del usuario
    """
    user_id = require_user(user_id)
    return ensure_farm_access(db, farm_id, user_id)


def update_farm(db: Session, farm_id: str, payload: FarmUpdate, user_id: str | None) -> Farm:
    """
    Actualizar una granja existente (solo el dueño).
    """
    user_id = require_user(user_id)
    farm = ensure_farm_access(db, farm_id, user_id)

    data = payload.model_dump(exclude_unset=True)
    if data.get("name") and _name_taken(db, user_id, data["name"], exclude_id=farm.id):
        raise ValidationError("Farm with this name already exists")
    if "is_active" in data and data["is_active"] is not None:
        data["is_active"] = 1 if data["is_active"] else 0

    with uow(db):
        apply_changes(farm, data)
    db.refresh(farm)

    logger.info("Granja %s actualizada por el usuario %s", farm_id, user_id)
    return farm


def delete_farm(db: Session, farm_id: str, user_id: str | None) -> Farm:
    """
    Eliminar (soft delete) una granja junto con sus filas, jaulas y conejos,
    todo en una sola transacción.
    """
    user_id = require_user(user_id)
    ensure_farm_access(db, farm_id, user_id)

    now = now_utc()
    with uow(db):
        farm = soft_delete(db, Farm, {"id": farm_id, "created_by": user_id}, "Farm not found")
        for model in (Row, Hutch, Rabbit):
            (
                db.query(model)
                .filter(model.farm_id == farm_id, model.is_deleted == 0)
                .update({model.is_deleted: 1, model.updated_at: now}, synchronize_session=False)
            )

    logger.info("Granja %s eliminada por el usuario %s", farm_id, user_id)
    return farm
