# api/farms.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from schemas.farm import FarmCreate, FarmOut, FarmUpdate
from services.farm_service import create_farm, delete_farm, get_farm, list_farms, update_farm
from utils.db import get_db
from utils.dependencies import get_current_user_id
from utils.responses import success_response

router = APIRouter(prefix="/farms", tags=["Farms"])


@router.post(
    "",
    status_code=201,
    summary="Crear granja",
    description="Crea una granja cuyo dueño es el usuario autenticado. El nombre es único por dueño."
)
def create_farm_endpoint(
        payload: FarmCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    farm = create_farm(db, payload, user_id)
    return success_response(FarmOut.model_validate(farm), "Farm created successfully", status_code=201)


@router.get(
    "",
    summary="Listar granjas",
    description="Lista las granjas del usuario autenticado (más recientes primero)."
)
def list_farms_endpoint(
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    farms = list_farms(db, user_id)
    return success_response([FarmOut.model_validate(f) for f in farms])


@router.get("/{farm_id}", summary="Obtener granja por ID")
def get_farm_endpoint(
        farm_id: str,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    return success_response(FarmOut.model_validate(get_farm(db, farm_id, user_id)))


@router.put(
    "/{farm_id}",
    summary="Actualizar granja",
    description="Actualización parcial: solo se modifican los campos enviados."
)
def update_farm_endpoint(
        farm_id: str,
        payload: FarmUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    farm = update_farm(db, farm_id, payload, user_id)
    return success_response(FarmOut.model_validate(farm), "Farm updated successfully")


@router.delete(
    "/{farm_id}",
    summary="Eliminar granja",
    description="Soft delete de la granja junto con sus filas, jaulas y conejos."
)
def delete_farm_endpoint(
        farm_id: str,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    farm = delete_farm(db, farm_id, user_id)
    return success_response({"id": farm.id}, "Farm deleted successfully")
