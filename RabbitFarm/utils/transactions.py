# utils/transactions.py
import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session

from utils.db import SessionLocal

logger = logging.getLogger(__name__)


@contextmanager
def uow(session: Session | None = None):
    """
    Uso:
        with uow(db) as db:
            ... # operaciones de varios pasos
        # commit/rollback automático

    Si ya traes una sesión de get_db(), pásala para no abrir otra.
    Ante cualquier excepción se hace rollback completo y se relanza.
    """
    owns_session = session is None
    db = session or SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("Rollback de la unidad de trabajo")
        db.rollback()
        raise
    finally:
        if owns_session:
            db.close()
