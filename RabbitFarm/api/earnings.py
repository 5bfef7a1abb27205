# api/earnings.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from models.farm import Farm
from schemas.earnings import EarningsCreate, EarningsOut, EarningsUpdate
from services.earnings_service import (
    create_earnings, delete_earnings, get_earnings, list_earnings, update_earnings
)
from utils.db import get_db
from utils.dependencies import get_current_user_id, get_farm_scope, get_pagination
from utils.responses import success_response

router = APIRouter(prefix="/farms/{farm_id}/earnings", tags=["Earnings"])


@router.post(
    "",
    status_code=201,
    summary="Registrar ingreso",
    description=(
        "**Tipos:** `rabbit_sale`, `urine_sale`, `manure_sale`, `other`\n\n"
        "`amount` > 0, `currency` de 3 letras (USD por defecto)."
    )
)
def create_earnings_endpoint(
        farm_id: str,
        payload: EarningsCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    record = create_earnings(db, farm_id, payload, user_id)
    return success_response(EarningsOut.model_validate(record), "Earnings record created successfully",
                            status_code=201)


@router.get(
    "",
    summary="Listar ingresos",
    description=(
        "**Query params:**\n"
        "- `type`\n"
        "- `date_from`, `date_to` (YYYY-MM-DD)\n"
        "- `limit`, `offset`: enteros no negativos"
    )
)
def list_earnings_endpoint(
        type: str | None = Query(None),
        date_from: str | None = Query(None),
        date_to: str | None = Query(None),
        page: tuple[int | None, int | None] = Depends(get_pagination),
        farm: Farm = Depends(get_farm_scope),
        db: Session = Depends(get_db),
):
    records = list_earnings(db, farm.id, {
        "type": type, "date_from": date_from, "date_to": date_to, "limit": page[0], "offset": page[1],
    })
    return success_response([EarningsOut.model_validate(r) for r in records])


@router.get("/{earnings_id}", summary="Obtener ingreso por ID")
def get_earnings_endpoint(earnings_id: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    return success_response(EarningsOut.model_validate(get_earnings(db, earnings_id, farm.id)))


@router.put("/{earnings_id}", summary="Actualizar ingreso")
def update_earnings_endpoint(
        farm_id: str,
        earnings_id: str,
        payload: EarningsUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    record = update_earnings(db, earnings_id, farm_id, payload, user_id)
    return success_response(EarningsOut.model_validate(record), "Earnings record updated successfully")


@router.delete("/{earnings_id}", summary="Eliminar ingreso")
def delete_earnings_endpoint(
        farm_id: str,
        earnings_id: str,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    record = delete_earnings(db, earnings_id, farm_id, user_id)
    return success_response({"id": record.id}, "Earnings record deleted successfully")
