import logging

from celery.signals import worker_process_init
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from workers.celery_config import app
from utils.db import SessionLocal
from utils.logging_config import setup_logging
from services import alert_service, auth_service, password_reset_service

logger = logging.getLogger(__name__)


@worker_process_init.connect
def _init_worker_logging(**kwargs):
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)


@app.task(bind=True, max_retries=2)
def process_due_alerts_task(self):
    """Envía por email las alertas pendientes que ya vencieron."""
    db = SessionLocal()
    try:
        results = alert_service.process_due_alerts(db)
        sent = sum(1 for r in results if r["success"])
        logger.info("Alertas procesadas: %s enviadas, %s fallidas", sent, len(results) - sent)
        return {"processed": len(results), "sent": sent}
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error procesando alertas: %s", exc)
        raise self.retry(exc=exc, countdown=30)
    finally:
        db.close()


@app.task(bind=True, max_retries=2)
def cleanup_expired_tokens_task(self):
    """Limpieza diaria de tokens de recuperación y de la lista negra de JWT."""
    db = SessionLocal()
    try:
        resets = password_reset_service.cleanup_expired_tokens(db)
        blacklisted = auth_service.cleanup_expired_blacklist(db)
        logger.info("Tokens eliminados: %s de recuperación, %s en lista negra", resets, blacklisted)
        return {"reset_tokens": resets, "blacklisted_tokens": blacklisted}
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error limpiando tokens: %s", exc)
        raise self.retry(exc=exc, countdown=60)
    finally:
        db.close()
