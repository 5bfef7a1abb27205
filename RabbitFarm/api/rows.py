# api/rows.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from models.farm import Farm
from schemas.farm import RowCreate, RowExpandIn, RowOut, RowUpdate
from services.row_service import (
    create_row, delete_row, expand_row_capacity, get_row, list_rows, update_row
)
from utils.db import get_db
from utils.dependencies import get_current_user_id, get_farm_scope
from utils.responses import success_response

router = APIRouter(prefix="/farms/{farm_id}/rows", tags=["Rows"])


@router.post(
    "",
    status_code=201,
    summary="Crear fila",
    description=(
        "Crea una fila y genera sus jaulas.\n\n"
        "Las `capacity` jaulas se reparten entre `levels` (por defecto A, B, C); "
        "el sobrante va a los primeros niveles. Ids: `<fila>-<nivel><n>`."
    )
)
def create_row_endpoint(
        farm_id: str,
        payload: RowCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    row = create_row(db, farm_id, payload, user_id)
    return success_response(RowOut.model_validate(row), "Row created successfully", status_code=201)


@router.get("", summary="Listar filas de la granja")
def list_rows_endpoint(farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    return success_response([RowOut.model_validate(r) for r in list_rows(db, farm.id)])


@router.get("/{name}", summary="Obtener fila por nombre")
def get_row_endpoint(name: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    return success_response(RowOut.model_validate(get_row(db, name, farm.id)))


@router.put("/{name}", summary="Actualizar descripción de la fila")
def update_row_endpoint(
        farm_id: str,
        name: str,
        payload: RowUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    row = update_row(db, name, farm_id, payload, user_id)
    return success_response(RowOut.model_validate(row), "Row updated successfully")


@router.post(
    "/{name}/expand",
    summary="Ampliar capacidad de la fila",
    description="Suma `additional_capacity` a la capacidad de la fila para poder crear más jaulas."
)
def expand_row_endpoint(
        farm_id: str,
        name: str,
        payload: RowExpandIn,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    row = expand_row_capacity(db, name, farm_id, payload.additional_capacity, user_id)
    return success_response(RowOut.model_validate(row), "Row capacity expanded successfully")


@router.delete("/{name}", summary="Eliminar fila (y sus jaulas)")
def delete_row_endpoint(
        farm_id: str,
        name: str,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    row = delete_row(db, name, farm_id, user_id)
    return success_response({"name": row.name}, "Row deleted successfully")
