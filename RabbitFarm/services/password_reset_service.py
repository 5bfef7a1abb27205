# services/password_reset_service.py
"""
Servicio para gestión de tokens de recuperación de contraseña.

Un token es válido si: expires_at > ahora AND used = false AND is_deleted = 0.
En BD solo se guarda su hash SHA-256.
"""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from config.settings import settings
from models.password_reset import PasswordReset
from models.user import User
from services.auth_service import get_user_by_email
from services.email_service import send_password_reset_email
from utils.datetime_utils import now_utc
from utils.errors import InternalError, NotFoundError, RateLimitError, ValidationError
from utils.security import generate_token, hash_password, hash_token
from utils.transactions import uow

logger = logging.getLogger(__name__)


def _check_rate_limit(db: Session, user_id: str) -> None:
    """
    Verificar límite de solicitudes por hora.

    Raises:
        RateLimitError: Si excede el límite
    """
    one_hour_ago = now_utc() - timedelta(hours=1)

    recent_attempts = (
        db.query(PasswordReset)
        .filter(
            PasswordReset.user_id == user_id,
            PasswordReset.created_at >= one_hour_ago
        )
        .count()
    )

    if recent_attempts >= settings.PASSWORD_RESET_MAX_ATTEMPTS_PER_HOUR:
        raise RateLimitError("Too many password reset requests. Please try again in an hour.")


def _find_valid_token(db: Session, token: str | None) -> PasswordReset:
    """
    Buscar un token vigente (no expirado, no usado, no eliminado).

    Raises:
        ValidationError: si el token falta o no es válido
    """
    if not token:
        raise ValidationError("Missing reset token")

    reset = (
        db.query(PasswordReset)
        .filter(
            PasswordReset.token_hash == hash_token(token),
            PasswordReset.expires_at > now_utc(),
            PasswordReset.used.is_(False),
            PasswordReset.is_deleted == 0,
        )
        .first()
    )
    if not reset:
        raise ValidationError("Invalid or expired reset token")
    return reset


def validate_reset_token(db: Session, token: str | None) -> dict:
    """
    Comprobar un token sin modificar nada.

    Returns:
        {"valid": True}

    Raises:
        ValidationError: si el token falta, expiró, ya se usó o fue revocado
    """
    _find_valid_token(db, token)
    return {"valid": True}


def request_password_reset(db: Session, email: str) -> dict:
    """
    Solicitar recuperación de contraseña.

    Pasos:
    1. Buscar usuario por email
    2. Verificar rate limit
    3. Generar token único y guardar su hash
    4. Enviar email con link de reset (si falla, se elimina el token)

    Raises:
        NotFoundError: Si el usuario no existe o está inactivo
        RateLimitError: Si excede el límite por hora
        InternalError: Si el email no se pudo enviar
    """
    user = get_user_by_email(db, email)
    if not user or user.is_active != 1:
        raise NotFoundError("User not found")

    _check_rate_limit(db, user.id)

    token = generate_token()
    with uow(db):
        reset = PasswordReset(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=now_utc() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        )
        db.add(reset)

    reset_link = f"{settings.FRONTEND_URL}/reset-password/{token}"

    email_sent = send_password_reset_email(
        to_email=user.email,
        reset_link=reset_link,
        user_name=user.name
    )

    if not email_sent:
        with uow(db):
            db.delete(reset)
        raise InternalError("Failed to send reset email")

    logger.info("Token de recuperación emitido para %s", user.email)
    return {"message": "Password reset email sent"}


def reset_password(db: Session, token: str | None, password: str, confirm_password: str) -> dict:
    """
    Resetear contraseña con token.

    El cambio de contraseña y el consumo del token se confirman juntos
    (ambos o ninguno).

    Raises:
        ValidationError: contraseñas distintas, token inválido/expirado/usado
        NotFoundError: si el usuario del token ya no existe
    """
    if password != confirm_password:
        raise ValidationError("New password and confirmation do not match")

    with uow(db):
        reset = _find_valid_token(db, token)

        user = (
            db.query(User)
            .filter(User.id == reset.user_id, User.is_deleted == 0, User.is_active == 1)
            .first()
        )
        if not user:
            raise NotFoundError("User not found")

        user.password_hash = hash_password(password)
        reset.used = True

        # Los demás tokens vigentes del usuario quedan revocados
        db.query(PasswordReset).filter(
            PasswordReset.user_id == user.id,
            PasswordReset.id != reset.id,
            PasswordReset.used.is_(False),
            PasswordReset.is_deleted == 0,
        ).update({PasswordReset.is_deleted: 1, PasswordReset.updated_at: now_utc()}, synchronize_session=False)

    logger.info("Contraseña restablecida para el usuario %s", reset.user_id)
    return {"message": "Password reset successfully"}


def cleanup_expired_tokens(db: Session) -> int:
    """
    Limpiar tokens expirados de la BD (tarea de mantenimiento).

    Elimina tokens expirados hace más de 7 días.

    Returns:
        Número de tokens eliminados
    """
    cutoff_date = now_utc() - timedelta(days=7)

    with uow(db):
        deleted = (
            db.query(PasswordReset)
            .filter(PasswordReset.expires_at < cutoff_date)
            .delete(synchronize_session=False)
        )

    return deleted
