# services/breeding_service.py
"""
Servicio de reproducción: cruzas, partos y registros de crías (kits).

Calendario que se programa como alertas (días desde la monta / el parto):
- Monta: éxito de la cruza (hoy), nidal día 26, revisión de parto días 28-31
- Parto: adopción día 4, retirar nidal día 20, destete día 42
- Crías: reubicación en la fecha de destete
"""
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Any

from sqlalchemy.orm import Session

from enums.enums import AlertSeverityEnum, AlertStatusEnum, AlertTypeEnum, GenderEnum, KitStatusEnum
from models.alert import Alert, Notification
from models.breeding import BreedingRecord, KitRecord
from models.rabbit import Rabbit
from schemas.breeding import BreedingCreate, BreedingUpdate, KitsCreate, KitUpdate
from services.alert_service import add_alert
from services.common import (
    apply_changes,
    apply_pagination,
    ensure_farm_access,
    parse_pagination,
    require_scope,
    require_user,
    soft_delete,
)
from utils.datetime_utils import add_days, format_farm_date, now_utc, start_of_day
from utils.errors import NotFoundError, ValidationError
from utils.transactions import uow

logger = logging.getLogger(__name__)

GESTATION_CONFIRM_DAYS = 21
NESTING_BOX_DAY = 26
BIRTH_CHECK_DAYS = (28, 29, 30, 31)
FOSTERING_DAY = 4
NESTING_BOX_REMOVAL_DAY = 20
WEANING_DAYS = 42
BUCK_REST_DAYS = 3
DOE_REST_AFTER_WEANING_DAYS = 7
MIN_LITTER = 5
MAX_LITTER = 10
CULLING_GENERATIONS = 3
KIT_TOLERANCE = 1


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _find_rabbit(db: Session, rabbit_id: str, farm_id: str, gender: GenderEnum | None = None) -> Rabbit | None:
    q = db.query(Rabbit).filter(Rabbit.rabbit_id == rabbit_id, Rabbit.farm_id == farm_id, Rabbit.is_deleted == 0)
    if gender is not None:
        q = q.filter(Rabbit.gender == gender.value)
    return q.first()


def _get_record(db: Session, record_id: str, farm_id: str) -> BreedingRecord:
    record = (
        db.query(BreedingRecord)
        .filter(BreedingRecord.id == record_id, BreedingRecord.farm_id == farm_id, BreedingRecord.is_deleted == 0)
        .first()
    )
    if not record:
        raise NotFoundError("Breeding record not found")
    return record


def _doe_hutch(db: Session, doe_id: str, farm_id: str) -> str | None:
    doe = _find_rabbit(db, doe_id, farm_id)
    return doe.hutch_id if doe else None


def _schedule(db: Session, farm_id: str, user_id: str, doe_id: str, hutch_id: str | None,
              name: str, on: date, alert_type: AlertTypeEnum, severity: AlertSeverityEnum, message: str) -> Alert:
    return add_alert(db, {
        "farm_id": farm_id,
        "user_id": user_id,
        "rabbit_id": doe_id,
        "hutch_id": hutch_id,
        "name": name,
        "alert_start_date": start_of_day(on),
        "alert_type": alert_type.value,
        "severity": severity.value,
        "message": message,
    })


def _set_alert_status(db: Session, doe_id: str, farm_id: str, types: list[str], status: AlertStatusEnum) -> int:
    return (
        db.query(Alert)
        .filter(
            Alert.rabbit_id == doe_id,
            Alert.farm_id == farm_id,
            Alert.alert_type.in_(types),
            Alert.status == AlertStatusEnum.pending.value,
            Alert.is_deleted == 0,
        )
        .update({Alert.status: status.value, Alert.updated_at: now_utc()}, synchronize_session=False)
    )


def _clear_pregnancy(doe: Rabbit | None, actual_birth_date: date | None = None) -> None:
    if doe is None:
        return
    doe.is_pregnant = False
    doe.pregnancy_start_date = None
    doe.expected_birth_date = None
    if actual_birth_date is not None:
        doe.actual_birth_date = actual_birth_date


# -------------------------------------------------------------------
# Cruzas
# -------------------------------------------------------------------
def create_breeding_record(db: Session, farm_id: str, payload: BreedingCreate, user_id: str | None) -> BreedingRecord:
    """
    Registrar una monta.

    Validaciones:
    - doe_id es hembra y buck_id es macho de la granja
    - El macho descansa 3 días entre servicios
    - La hembra descansa una semana después del destete (parto + 42 días)

    Efectos: la hembra queda preñada y se programan las alertas de gestación.
    """
    user_id = require_user(user_id)
    ensure_farm_access(db, farm_id, user_id)

    doe = _find_rabbit(db, payload.doe_id, farm_id, GenderEnum.female)
    if not doe:
        raise ValidationError("Doe not found or invalid")
    if not _find_rabbit(db, payload.buck_id, farm_id, GenderEnum.male):
        raise ValidationError("Buck not found or invalid")

    mating = payload.mating_date
    recent_service = (
        db.query(BreedingRecord.id)
        .filter(
            BreedingRecord.buck_id == payload.buck_id,
            BreedingRecord.farm_id == farm_id,
            BreedingRecord.mating_date >= mating - timedelta(days=BUCK_REST_DAYS),
            BreedingRecord.is_deleted == 0,
        )
        .first()
    )
    if recent_service:
        raise ValidationError("Buck has served within the last 3 days")

    last_birth = (
        db.query(BreedingRecord)
        .filter(
            BreedingRecord.doe_id == payload.doe_id,
            BreedingRecord.farm_id == farm_id,
            BreedingRecord.actual_birth_date.isnot(None),
            BreedingRecord.is_deleted == 0,
        )
        .order_by(BreedingRecord.actual_birth_date.desc())
        .first()
    )
    if last_birth:
        rest_until = add_days(last_birth.actual_birth_date, WEANING_DAYS + DOE_REST_AFTER_WEANING_DAYS)
        if mating < rest_until:
            raise ValidationError("Doe cannot be served within 1 week of weaning")

    doe_id = payload.doe_id
    hutch_id = doe.hutch_id
    hutch_label = hutch_id or "unknown"
    default_message = (
        f"Breeding recorded for doe {doe_id} and buck {payload.buck_id} on {format_farm_date(mating)}. "
        f"Expected birth date: {format_farm_date(payload.expected_birth_date)}"
    )

    with uow(db):
        record = BreedingRecord(
            farm_id=farm_id,
            doe_id=doe_id,
            buck_id=payload.buck_id,
            mating_date=mating,
            expected_birth_date=payload.expected_birth_date,
            notes=payload.notes,
            alert_date=add_days(mating, GESTATION_CONFIRM_DAYS),
        )
        db.add(record)

        doe.is_pregnant = True
        doe.pregnancy_start_date = mating
        doe.expected_birth_date = payload.expected_birth_date

        _schedule(db, farm_id, user_id, doe_id, hutch_id,
                  f"Breeding Success for {doe_id} and {payload.buck_id}", now_utc().date(),
                  AlertTypeEnum.breeding, AlertSeverityEnum.medium, payload.alert_message or default_message)

        nesting = add_days(mating, NESTING_BOX_DAY)
        _schedule(db, farm_id, user_id, doe_id, hutch_id,
                  f"Add Nesting Box for {doe_id}", nesting, AlertTypeEnum.breeding, AlertSeverityEnum.high,
                  f"Add nesting box for rabbit {doe_id} on hutch {hutch_label} by {format_farm_date(nesting)}")

        for day in BIRTH_CHECK_DAYS:
            check = add_days(mating, day)
            _schedule(db, farm_id, user_id, doe_id, hutch_id,
                      f"Check Birth for {doe_id}", check, AlertTypeEnum.birth, AlertSeverityEnum.high,
                      f"Check for birth of rabbit {doe_id} on hutch {hutch_label} on {format_farm_date(check)}")
    db.refresh(record)

    logger.info("Cruza registrada para la hembra %s por el usuario %s", doe_id, user_id,
                extra={"farm_id": farm_id, "user_id": user_id})
    return record


def get_breeding_record(db: Session, record_id: str, farm_id: str) -> BreedingRecord:
    require_scope(record_id, farm_id, "breeding record")
    return _get_record(db, record_id, farm_id)


def kits_by_record(db: Session, record_ids: list[str]) -> dict[str, list[KitRecord]]:
    """Crías vivas (no eliminadas) agrupadas por cruza."""
    grouped: dict[str, list[KitRecord]] = {rid: [] for rid in record_ids}
    if not record_ids:
        return grouped
    kits = (
        db.query(KitRecord)
        .filter(KitRecord.breeding_record_id.in_(record_ids), KitRecord.is_deleted == 0)
        .order_by(KitRecord.kit_number.asc())
        .all()
    )
    for kit in kits:
        grouped[kit.breeding_record_id].append(kit)
    return grouped


def list_breeding_records(db: Session, farm_id: str, filters: dict[str, Any] | None = None) -> list[BreedingRecord]:
    filters = filters or {}
    limit, offset = parse_pagination(filters.get("limit"), filters.get("offset"))
    if not farm_id:
        raise ValidationError("Missing farmId")
    q = (
        db.query(BreedingRecord)
        .filter(BreedingRecord.farm_id == farm_id, BreedingRecord.is_deleted == 0)
        .order_by(BreedingRecord.created_at.desc())
    )
    return apply_pagination(q, limit, offset).all()


def get_breeding_history(db: Session, farm_id: str, rabbit_id: str) -> list[BreedingRecord]:
    """
    Historial de cruzas de una hembra.

    Raises:
        NotFoundError: si la hembra no tiene cruzas registradas
    """
    require_scope(rabbit_id, farm_id, "rabbit")
    records = (
        db.query(BreedingRecord)
        .filter(BreedingRecord.doe_id == rabbit_id, BreedingRecord.farm_id == farm_id, BreedingRecord.is_deleted == 0)
        .order_by(BreedingRecord.mating_date.desc())
        .all()
    )
    if not records:
        raise NotFoundError("Breeding record not found")
    return records


def _culling_message(db: Session, record: BreedingRecord, number_of_kits: int) -> str | None:
    """
    Mensaje de descarte si corresponde: las últimas 3 camadas (incluida la
    actual) bajo 5 crías, o la camada actual fuera del rango 5-10.
    """
    db.flush()
    litters = [
        n for (n,) in (
            db.query(BreedingRecord.number_of_kits)
            .filter(
                BreedingRecord.doe_id == record.doe_id,
                BreedingRecord.farm_id == record.farm_id,
                BreedingRecord.actual_birth_date.isnot(None),
                BreedingRecord.is_deleted == 0,
            )
            .order_by(BreedingRecord.actual_birth_date.desc())
            .limit(CULLING_GENERATIONS)
            .all()
        )
        if n
    ]
    if len(litters) >= CULLING_GENERATIONS and all(n < MIN_LITTER for n in litters):
        return (f"Doe {record.doe_id} recommended for culling due to low litter size (<{MIN_LITTER}) "
                f"over {CULLING_GENERATIONS} generations.")
    if number_of_kits < MIN_LITTER or number_of_kits > MAX_LITTER:
        return f"Doe {record.doe_id} recommended for culling due to litter size {number_of_kits}."
    return None


def update_breeding_record(
    db: Session, record_id: str, farm_id: str, payload: BreedingUpdate, user_id: str | None
) -> BreedingRecord:
    """
    Actualizar una cruza. Al registrar el parto (fecha + número de crías):

    1. Notificación de descarte si la camada lo amerita
    2. La hembra deja de estar preñada
    3. Alertas de gestación pendientes pasan a completed
    4. Se programan adopción (día 4), retiro de nidal (día 20) y destete (día 42)
    """
    user_id = require_user(user_id)
    require_scope(record_id, farm_id, "breeding record")
    ensure_farm_access(db, farm_id, user_id)

    record = _get_record(db, record_id, farm_id)
    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    birth = payload.actual_birth_date and payload.number_of_kits

    with uow(db):
        apply_changes(record, data)

        if birth:
            doe_id = record.doe_id
            message = _culling_message(db, record, payload.number_of_kits)
            if message:
                db.add(Notification(
                    user_id=user_id,
                    type="culling_alert",
                    title="Doe Culling Alert",
                    message=message,
                    data={"doe_id": doe_id, "farm_id": farm_id},
                    priority="high",
                ))
                logger.info("Hembra %s marcada para descarte", doe_id, extra={"farm_id": farm_id})

            doe = _find_rabbit(db, doe_id, farm_id)
            _clear_pregnancy(doe, payload.actual_birth_date)
            _set_alert_status(db, doe_id, farm_id, [AlertTypeEnum.breeding.value], AlertStatusEnum.completed)

            hutch_id = doe.hutch_id if doe else None
            hutch_label = hutch_id or "unknown"
            born = payload.actual_birth_date
            fostering = add_days(born, FOSTERING_DAY)
            removal = add_days(born, NESTING_BOX_REMOVAL_DAY)
            weaning = add_days(born, WEANING_DAYS)
            _schedule(db, farm_id, user_id, doe_id, hutch_id,
                      f"Fostering Check for {doe_id}", fostering, AlertTypeEnum.birth, AlertSeverityEnum.medium,
                      f"Check fostering needs for rabbit {doe_id} on hutch {hutch_label} "
                      f"by {format_farm_date(fostering)}")
            _schedule(db, farm_id, user_id, doe_id, hutch_id,
                      f"Remove Nesting Box for {doe_id}", removal, AlertTypeEnum.birth, AlertSeverityEnum.medium,
                      f"Remove nesting box for rabbit {doe_id} on hutch {hutch_label} by {format_farm_date(removal)}")
            _schedule(db, farm_id, user_id, doe_id, hutch_id,
                      f"Wean Kits for {doe_id}", weaning, AlertTypeEnum.birth, AlertSeverityEnum.high,
                      f"Wean kits for rabbit {doe_id} on hutch {hutch_label} by {format_farm_date(weaning)}")
    db.refresh(record)

    logger.info("Cruza %s actualizada por el usuario %s", record_id, user_id)
    return record


def delete_breeding_record(db: Session, record_id: str, farm_id: str, user_id: str | None) -> BreedingRecord:
    """
    Eliminar una cruza y sus crías. Si aún no hubo parto, la hembra deja de
    estar preñada y se rechazan sus alertas pendientes de cruza/parto.
    """
    user_id = require_user(user_id)
    require_scope(record_id, farm_id, "breeding record")
    ensure_farm_access(db, farm_id, user_id)

    with uow(db):
        record = soft_delete(db, BreedingRecord, {"id": record_id, "farm_id": farm_id}, "Breeding record not found")
        (
            db.query(KitRecord)
            .filter(KitRecord.breeding_record_id == record_id, KitRecord.is_deleted == 0)
            .update({KitRecord.is_deleted: 1, KitRecord.updated_at: now_utc()}, synchronize_session=False)
        )
        if not record.actual_birth_date:
            _clear_pregnancy(_find_rabbit(db, record.doe_id, farm_id))
            _set_alert_status(db, record.doe_id, farm_id,
                              [AlertTypeEnum.breeding.value, AlertTypeEnum.birth.value], AlertStatusEnum.rejected)

    logger.info("Cruza %s eliminada por el usuario %s", record_id, user_id)
    return record


# -------------------------------------------------------------------
# Crías
# -------------------------------------------------------------------
def create_kit_records(db: Session, farm_id: str, payload: KitsCreate, user_id: str | None) -> list[KitRecord]:
    """
    Alta masiva de crías.

    Validaciones:
    - La lista no está vacía y todas las cruzas existen en la granja
    - No se supera el tamaño de camada de cada cruza (+1 de tolerancia)
    - kit_number no se repite en la granja
    - Los padres indicados existen; la madre es hembra y coincide con la cruza

    Se calcula la fecha de destete (parto + 42 días) y se programa la
    alerta de reubicación de las crías.
    """
    user_id = require_user(user_id)
    ensure_farm_access(db, farm_id, user_id)

    kits = payload.kitz
    if not kits:
        raise ValidationError("kitz array is required and must not be empty")

    record_ids = list(dict.fromkeys(k.breeding_record_id for k in kits))
    records = {
        r.id: r for r in (
            db.query(BreedingRecord)
            .filter(BreedingRecord.id.in_(record_ids), BreedingRecord.farm_id == farm_id,
                    BreedingRecord.is_deleted == 0)
            .all()
        )
    }
    if len(records) != len(record_ids):
        raise ValidationError("One or more breeding records not found")

    new_per_record = Counter(k.breeding_record_id for k in kits)
    for rid, record in records.items():
        existing = (
            db.query(KitRecord)
            .filter(KitRecord.breeding_record_id == rid, KitRecord.is_deleted == 0)
            .count()
        )
        if existing + new_per_record[rid] > (record.number_of_kits or 0) + KIT_TOLERANCE:
            raise ValidationError(f"Total kits significantly exceed breeding record litter size for breeding record {rid}")

    numbers = [k.kit_number for k in kits]
    repeated = [n for n, c in Counter(numbers).items() if c > 1]
    taken = [
        n for (n,) in (
            db.query(KitRecord.kit_number)
            .filter(KitRecord.farm_id == farm_id, KitRecord.kit_number.in_(numbers), KitRecord.is_deleted == 0)
            .all()
        )
    ]
    duplicates = list(dict.fromkeys(repeated + taken))
    if duplicates:
        raise ValidationError(f"Duplicate kit numbers: {', '.join(duplicates)}")

    parent_ids = list(dict.fromkeys(
        pid for k in kits for pid in (k.parent_male_id, k.parent_female_id) if pid
    ))
    genders = {}
    if parent_ids:
        genders = dict(
            db.query(Rabbit.rabbit_id, Rabbit.gender)
            .filter(Rabbit.farm_id == farm_id, Rabbit.rabbit_id.in_(parent_ids), Rabbit.is_deleted == 0)
            .all()
        )
        missing = [pid for pid in parent_ids if pid not in genders]
        if missing:
            raise ValidationError(f"Invalid parent IDs: {', '.join(missing)}")

    for kit in kits:
        if kit.parent_female_id and genders.get(kit.parent_female_id) != GenderEnum.female.value:
            raise ValidationError(f"Parent female ID {kit.parent_female_id} is not a doe")
        record = records[kit.breeding_record_id]
        if kit.parent_female_id and record.doe_id != kit.parent_female_id:
            raise ValidationError(f"Breeding record {record.id} does not match doe {kit.parent_female_id}")

    created = []
    with uow(db):
        for kit in kits:
            record = records[kit.breeding_record_id]
            born = kit.actual_birth_date or record.actual_birth_date
            item = KitRecord(
                breeding_record_id=record.id,
                farm_id=farm_id,
                kit_number=kit.kit_number,
                birth_weight=kit.birth_weight,
                gender=kit.gender,
                color=kit.color,
                status=kit.status or KitStatusEnum.alive.value,
                weaning_date=add_days(born, WEANING_DAYS) if born else None,
                parent_male_id=kit.parent_male_id or record.buck_id,
                parent_female_id=kit.parent_female_id or record.doe_id,
                notes=kit.notes,
            )
            db.add(item)
            created.append(item)

        first = created[0]
        if first.weaning_date:
            doe_id = first.parent_female_id
            _schedule(db, farm_id, user_id, doe_id, _doe_hutch(db, doe_id, farm_id),
                      f"Relocate Kits for {doe_id}", first.weaning_date, AlertTypeEnum.birth,
                      AlertSeverityEnum.medium,
                      f"Relocate kits for rabbit {doe_id} to individual hutches by "
                      f"{format_farm_date(first.weaning_date)}")
    for item in created:
        db.refresh(item)

    logger.info("%s crías creadas en la granja %s por el usuario %s", len(created), farm_id, user_id,
                extra={"farm_id": farm_id, "user_id": user_id})
    return created


def _positive(value: float | None, message: str) -> None:
    if value is not None and value <= 0:
        raise ValidationError(message)


def update_kit_record(db: Session, kit_id: str, farm_id: str, payload: KitUpdate, user_id: str | None) -> KitRecord:
    """
    Actualizar una cría.

    Raises:
        NotFoundError: si la cría no existe
        ValidationError: madre que no es hembra o pesos no positivos
    """
    user_id = require_user(user_id)
    require_scope(kit_id, farm_id, "kit")
    ensure_farm_access(db, farm_id, user_id)

    kit = (
        db.query(KitRecord)
        .filter(KitRecord.id == kit_id, KitRecord.farm_id == farm_id, KitRecord.is_deleted == 0)
        .first()
    )
    if not kit:
        raise NotFoundError("Kit record not found")

    if payload.parent_female_id:
        mother = _find_rabbit(db, payload.parent_female_id, farm_id)
        if mother is None:
            logger.warning("Madre %s no encontrada para la cría %s", payload.parent_female_id, kit_id)
        elif mother.gender != GenderEnum.female.value:
            raise ValidationError("Parent female rabbit must be a doe (female)")
    if payload.parent_male_id and _find_rabbit(db, payload.parent_male_id, farm_id) is None:
        logger.warning("Padre %s no encontrado para la cría %s", payload.parent_male_id, kit_id)

    _positive(payload.birth_weight, "Birth weight must be a positive number")
    _positive(payload.weaning_weight, "Weaning weight must be a positive number")

    data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    with uow(db):
        apply_changes(kit, data)
    db.refresh(kit)

    logger.info("Cría %s actualizada por el usuario %s", kit_id, user_id)
    return kit
