# api/alerts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from models.farm import Farm
from schemas.alert import AlertOut, AlertStatusIn
from services.alert_service import list_calendar_alerts, list_farm_alerts, update_alert_status
from utils.db import get_db
from utils.dependencies import get_current_user_id, get_farm_scope, get_pagination
from utils.responses import success_response

router = APIRouter(prefix="/farms/{farm_id}/alerts", tags=["Alerts"])


@router.get(
    "",
    summary="Alertas de la granja",
    description=(
        "Alertas activas ordenadas por severidad y fecha.\n\n"
        "**Query params:** `alert_type`, `severity`, `status`, `limit` (10 por defecto)"
    )
)
def list_alerts_endpoint(
        alert_type: str | None = Query(None),
        severity: str | None = Query(None),
        status: str | None = Query(None),
        page: tuple[int | None, int | None] = Depends(get_pagination),
        farm: Farm = Depends(get_farm_scope),
        db: Session = Depends(get_db),
):
    alerts = list_farm_alerts(db, farm.id, {
        "alert_type": alert_type, "severity": severity, "status": status, "limit": page[0],
    })
    return success_response([AlertOut.model_validate(a) for a in alerts], "Alerts loaded successfully")


@router.get("/calendar", summary="Alertas para la vista calendario")
def calendar_alerts_endpoint(farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    alerts = list_calendar_alerts(db, farm.id)
    return success_response([AlertOut.model_validate(a) for a in alerts], "Alerts loaded successfully")


@router.put("/{alert_id}/status", summary="Cambiar estado de una alerta")
def update_alert_status_endpoint(
        farm_id: str,
        alert_id: str,
        payload: AlertStatusIn,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    alert = update_alert_status(db, alert_id, farm_id, payload.status, user_id)
    return success_response(AlertOut.model_validate(alert), "Alert status updated successfully")
