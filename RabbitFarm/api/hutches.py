# api/hutches.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from models.farm import Farm
from schemas.hutch import HutchCreate, HutchDetailOut, HutchHistoryOut, HutchOut, HutchRabbitOut, HutchUpdate
from services.hutch_service import (
    create_hutch,
    delete_hutch,
    get_hutch,
    get_hutch_removed_rabbit_history,
    list_hutch_rabbits,
    list_hutches,
    update_hutch,
)
from utils.db import get_db
from utils.dependencies import get_current_user_id, get_farm_scope, get_pagination
from utils.responses import success_response

router = APIRouter(prefix="/farms/{farm_id}/hutches", tags=["Hutches"])


@router.post(
    "",
    status_code=201,
    summary="Crear jaula",
    description=(
        "Crea una jaula. Si se indica `row_name`, el nivel debe pertenecer a la fila "
        "y no se puede superar su capacidad."
    )
)
def create_hutch_endpoint(
        farm_id: str,
        payload: HutchCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    hutch = create_hutch(db, farm_id, payload, user_id)
    return success_response(HutchOut.model_validate(hutch), "Hutch created successfully", status_code=201)


@router.get(
    "",
    summary="Listar jaulas",
    description=(
        "**Query params:**\n"
        "- `row_name`: filtrar por fila\n"
        "- `is_occupied`: `true` / `false`\n"
        "- `limit`, `offset`: enteros no negativos"
    )
)
def list_hutches_endpoint(
        row_name: str | None = Query(None),
        is_occupied: str | None = Query(None),
        page: tuple[int | None, int | None] = Depends(get_pagination),
        farm: Farm = Depends(get_farm_scope),
        db: Session = Depends(get_db),
):
    hutches = list_hutches(db, farm.id, {
        "row_name": row_name, "is_occupied": is_occupied, "limit": page[0], "offset": page[1],
    })
    return success_response([HutchOut.model_validate(h) for h in hutches])


@router.get("/{hutch_id}", summary="Obtener jaula con sus conejos")
def get_hutch_endpoint(hutch_id: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    hutch = get_hutch(db, hutch_id, farm.id)
    detail = HutchDetailOut.model_validate(hutch)
    detail.rabbits = [HutchRabbitOut.model_validate(r) for r in list_hutch_rabbits(db, hutch_id, farm.id)]
    return success_response(detail)


@router.put("/{hutch_id}", summary="Actualizar jaula")
def update_hutch_endpoint(
        farm_id: str,
        hutch_id: str,
        payload: HutchUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    hutch = update_hutch(db, hutch_id, farm_id, payload, user_id)
    return success_response(HutchOut.model_validate(hutch), "Hutch updated successfully")


@router.delete(
    "/{hutch_id}",
    summary="Eliminar jaula",
    description="Soft delete transaccional. Falla si la jaula todavía tiene conejos."
)
def delete_hutch_endpoint(
        farm_id: str,
        hutch_id: str,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    hutch = delete_hutch(db, hutch_id, farm_id, user_id)
    return success_response({"id": hutch.id}, "Hutch deleted successfully")


@router.get("/{hutch_id}/history", summary="Historial de conejos de la jaula")
def hutch_history_endpoint(hutch_id: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    history = get_hutch_removed_rabbit_history(db, hutch_id, farm.id)
    return success_response([HutchHistoryOut.model_validate(h) for h in history])
