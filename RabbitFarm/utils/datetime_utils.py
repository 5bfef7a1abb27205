"""
Utilidades centralizadas para manejo de fechas y timestamps.

Convención del sistema:
- Los timestamps se persisten en **UTC naive** (sin tzinfo).
- Las fechas que se muestran en mensajes de alertas se formatean en la zona
  horaria de la granja (settings.FARM_TIMEZONE, por defecto Africa/Nairobi).
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from config.settings import settings


def farm_tz() -> ZoneInfo:
    return ZoneInfo(settings.FARM_TIMEZONE)


def now_utc() -> datetime:
    """
    Retorna el datetime actual en UTC (naive, para columnas DATETIME).
    """
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def today_farm() -> date:
    """
    Retorna la fecha actual (date) en la zona horaria de la granja.
    """
    return datetime.now(farm_tz()).date()


def to_utc_naive(dt: datetime) -> datetime:
    """
    Normaliza un datetime a UTC sin tzinfo.

    - NAIVE => se asume que ya está en UTC.
    - AWARE => se convierte a UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(microsecond=0)
    return dt.astimezone(timezone.utc).replace(tzinfo=None, microsecond=0)


def start_of_day(d: date) -> datetime:
    """Medianoche UTC (naive) del día indicado."""
    return datetime.combine(d, time.min)


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def format_farm_date(value: date | datetime) -> str:
    """
    Formato legible para mensajes, p. ej. "March 5, 2025".
    Los datetime (UTC naive) se convierten primero a la zona de la granja.
    """
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        value = aware.astimezone(farm_tz()).date()
    return f"{value.strftime('%B')} {value.day}, {value.year}"
