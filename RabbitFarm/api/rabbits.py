# api/rabbits.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from models.farm import Farm
from schemas.hutch import HutchHistoryOut
from schemas.rabbit import RabbitCreate, RabbitDetailOut, RabbitOut, RabbitRemovalIn, RabbitUpdate
from services.rabbit_service import (
    create_rabbit, get_rabbit, get_rabbit_history, list_rabbits, remove_rabbit, update_rabbit
)
from utils.db import get_db
from utils.dependencies import get_current_user_id, get_farm_scope, get_pagination
from utils.responses import success_response

router = APIRouter(prefix="/farms/{farm_id}/rabbits", tags=["Rabbits"])


@router.post(
    "",
    status_code=201,
    summary="Registrar conejo",
    description="Alta de un conejo. Si trae `hutch_id`, la jaula debe existir y tener menos de 6 conejos."
)
def create_rabbit_endpoint(
        farm_id: str,
        payload: RabbitCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    rabbit = create_rabbit(db, farm_id, payload, user_id)
    return success_response(RabbitOut.model_validate(rabbit), "Rabbit created successfully", status_code=201)


@router.get("", summary="Listar conejos")
def list_rabbits_endpoint(
        hutch_id: str | None = Query(None, description="Filtrar por jaula"),
        page: tuple[int | None, int | None] = Depends(get_pagination),
        farm: Farm = Depends(get_farm_scope),
        db: Session = Depends(get_db),
):
    rabbits = list_rabbits(db, farm.id, {"hutch_id": hutch_id, "limit": page[0], "offset": page[1]})
    return success_response([RabbitOut.model_validate(r) for r in rabbits])


@router.get("/{rabbit_id}", summary="Obtener conejo con su historial de jaulas")
def get_rabbit_endpoint(rabbit_id: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    detail = RabbitDetailOut.model_validate(get_rabbit(db, rabbit_id, farm.id))
    detail.history = [HutchHistoryOut.model_validate(h) for h in get_rabbit_history(db, rabbit_id, farm.id)]
    return success_response(detail)


@router.put(
    "/{rabbit_id}",
    summary="Actualizar conejo",
    description="Si cambia `hutch_id` se cierra la estancia anterior y se abre una nueva."
)
def update_rabbit_endpoint(
        farm_id: str,
        rabbit_id: str,
        payload: RabbitUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    rabbit = update_rabbit(db, rabbit_id, farm_id, payload, user_id)
    return success_response(RabbitOut.model_validate(rabbit), "Rabbit updated successfully")


@router.post(
    "/{rabbit_id}/removal",
    summary="Dar de baja conejo",
    description=(
        "Baja con motivo (`reason`).\n\n"
        "Si `reason` es `Sale` y trae `sale_amount`, se registra el ingreso `rabbit_sale`."
    )
)
def remove_rabbit_endpoint(
        farm_id: str,
        rabbit_id: str,
        payload: RabbitRemovalIn,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    rabbit = remove_rabbit(db, rabbit_id, farm_id, payload, user_id)
    return success_response({"rabbit_id": rabbit.rabbit_id}, "Rabbit removed successfully")
