# api/migrate.py
import logging

from fastapi import APIRouter

from utils.db import create_schema
from utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Operations"])


@router.post(
    "/migrate",
    summary="Crear esquema",
    description="Crea las tablas que falten (idempotente). No borra ni modifica tablas existentes."
)
def run_migrations():
    tables = create_schema()
    logger.info("Esquema verificado: %s tablas", len(tables))
    return success_response({"tables": tables}, "Migrations completed successfully")
