# api/breeding.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from models.farm import Farm
from schemas.breeding import (
    BreedingCreate, BreedingDetailOut, BreedingOut, BreedingUpdate, KitOut, KitsCreate, KitUpdate
)
from services.breeding_service import (
    create_breeding_record,
    create_kit_records,
    delete_breeding_record,
    get_breeding_history,
    get_breeding_record,
    kits_by_record,
    list_breeding_records,
    update_breeding_record,
    update_kit_record,
)
from utils.db import get_db
from utils.dependencies import get_current_user_id, get_farm_scope, get_pagination
from utils.responses import success_response

router = APIRouter(prefix="/farms/{farm_id}", tags=["Breeding"])


def _with_kits(db: Session, records) -> list[BreedingDetailOut]:
    grouped = kits_by_record(db, [r.id for r in records])
    out = []
    for record in records:
        detail = BreedingDetailOut.model_validate(record)
        detail.kits = [KitOut.model_validate(k) for k in grouped[record.id]]
        out.append(detail)
    return out


@router.post(
    "/breeding-records",
    status_code=201,
    summary="Registrar cruza",
    description=(
        "Registra la monta de una hembra (`doe_id`) con un macho (`buck_id`).\n\n"
        "**Reglas:**\n"
        "- El macho descansa 3 días entre servicios\n"
        "- La hembra descansa una semana después del destete\n\n"
        "**Alertas:** éxito de la cruza, nidal (día 26) y revisión de parto (días 28 a 31)."
    )
)
def create_breeding_endpoint(
        farm_id: str,
        payload: BreedingCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    record = create_breeding_record(db, farm_id, payload, user_id)
    return success_response(BreedingOut.model_validate(record), "Breeding record created successfully",
                            status_code=201)


@router.get("/breeding-records", summary="Listar cruzas (con crías)")
def list_breeding_endpoint(
        page: tuple[int | None, int | None] = Depends(get_pagination),
        farm: Farm = Depends(get_farm_scope),
        db: Session = Depends(get_db),
):
    records = list_breeding_records(db, farm.id, {"limit": page[0], "offset": page[1]})
    return success_response(_with_kits(db, records))


@router.get("/breeding-records/history/{rabbit_id}", summary="Historial de cruzas de una hembra")
def breeding_history_endpoint(rabbit_id: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    records = get_breeding_history(db, farm.id, rabbit_id)
    return success_response([BreedingOut.model_validate(r) for r in records])


@router.get("/breeding-records/{record_id}", summary="Obtener cruza con sus crías")
def get_breeding_endpoint(record_id: str, farm: Farm = Depends(get_farm_scope), db: Session = Depends(get_db)):
    record = get_breeding_record(db, record_id, farm.id)
    return success_response(_with_kits(db, [record])[0])


@router.put(
    "/breeding-records/{record_id}",
    summary="Actualizar cruza / registrar parto",
    description=(
        "Con `actual_birth_date` y `number_of_kits` se registra el parto: fin de la preñez, "
        "alertas de adopción, retiro de nidal y destete, y aviso de descarte si la camada lo amerita."
    )
)
def update_breeding_endpoint(
        farm_id: str,
        record_id: str,
        payload: BreedingUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    record = update_breeding_record(db, record_id, farm_id, payload, user_id)
    return success_response(BreedingOut.model_validate(record), "Breeding record updated successfully")


@router.delete("/breeding-records/{record_id}", summary="Eliminar cruza (y sus crías)")
def delete_breeding_endpoint(
        farm_id: str,
        record_id: str,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    record = delete_breeding_record(db, record_id, farm_id, user_id)
    return success_response({"id": record.id}, "Breeding record deleted successfully")


@router.post(
    "/kits",
    status_code=201,
    summary="Registrar crías",
    description="Alta masiva: `{\"kitz\": [...]}`. Calcula la fecha de destete y programa la reubicación."
)
def create_kits_endpoint(
        farm_id: str,
        payload: KitsCreate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    kits = create_kit_records(db, farm_id, payload, user_id)
    return success_response([KitOut.model_validate(k) for k in kits], f"{len(kits)} kits created successfully",
                            status_code=201)


@router.put("/kits/{kit_id}", summary="Actualizar cría")
def update_kit_endpoint(
        farm_id: str,
        kit_id: str,
        payload: KitUpdate,
        db: Session = Depends(get_db),
        user_id: str | None = Depends(get_current_user_id),
):
    kit = update_kit_record(db, kit_id, farm_id, payload, user_id)
    return success_response(KitOut.model_validate(kit), "Kit record updated successfully")
