# services/auth_service.py
"""
Servicio de autenticación.
Registro, login, verificación de email y logout (lista negra de JWT).
"""
import logging
import re
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from config.settings import settings
from models.user import User, TokenBlacklist
from schemas.user import RegisterIn
from services.email_service import send_verification_email
from utils.datetime_utils import now_utc
from utils.errors import AuthenticationError, InternalError, NotFoundError, ValidationError
from utils.security import (
    create_access_token,
    decode_access_token,
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)
from utils.transactions import uow

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return (
        db.query(User)
        .filter(User.email == _normalize_email(email), User.is_deleted == 0)
        .first()
    )


def get_active_user(db: Session, user_id: str) -> User | None:
    return (
        db.query(User)
        .filter(User.id == user_id, User.is_deleted == 0, User.is_active == 1)
        .first()
    )


def _verification_link(token: str) -> str:
    return f"{settings.API_BASE_URL}/auth/verify-email/{token}"


def _issue_verification_token(user: User) -> str:
    token = generate_token()
    user.verification_token = token
    user.verification_expires_at = now_utc() + timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
    user.last_verification_sent_at = now_utc()
    return token


def register(db: Session, payload: RegisterIn) -> User:
    """
    Registrar un usuario nuevo (sin verificar) y enviarle el email de verificación.

    Un fallo del correo se registra pero no invalida el registro.

    Raises:
        ValidationError: campos faltantes, email mal formado o ya registrado
    """
    email = _normalize_email(payload.email)
    if not email or not payload.name or not payload.phone:
        raise ValidationError("Email, name, and phone are required fields")
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    if get_user_by_email(db, email):
        raise ValidationError("Email is already registered")

    with uow(db):
        user = User(
            email=email,
            password_hash=hash_password(payload.password),
            name=payload.name,
            phone=payload.phone,
            email_verified=False,
        )
        token = _issue_verification_token(user)
        db.add(user)
    db.refresh(user)

    if not send_verification_email(user.email, _verification_link(token), user.name):
        logger.warning("No se pudo enviar el email de verificación a %s", user.email)

    logger.info("Usuario registrado: %s", user.email)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """
    Autenticar usuario con email y password; actualiza login_count y last_login.

    Raises:
        AuthenticationError: si credenciales inválidas o usuario inactivo
    """
    user = get_user_by_email(db, email)

    if not user or user.is_active != 1 or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    with uow(db):
        user.login_count = (user.login_count or 0) + 1
        user.last_login = now_utc()
    db.refresh(user)
    return user


def issue_access_token(user: User) -> str:
    """Generar token JWT para un usuario."""
    return create_access_token(subject=user.id)


def login(db: Session, email: str, password: str) -> dict:
    """
    Login completo.

    Returns:
        {"token", "user", "requires_email_verification"}
    """
    user = authenticate_user(db, email, password)
    token = issue_access_token(user)
    logger.info("Login de %s", user.email)
    return {
        "token": token,
        "user": user,
        "requires_email_verification": not user.email_verified,
    }


def verify_email(db: Session, token: str) -> tuple[str, User]:
    """
    Verificar el email a partir del token del link.

    Returns:
        (mensaje, usuario)

    Raises:
        ValidationError: token inexistente o expirado
    """
    user = (
        db.query(User)
        .filter(User.verification_token == token, User.is_deleted == 0, User.is_active == 1)
        .first()
        if token else None
    )
    if not user:
        raise ValidationError("Invalid verification token")

    if user.email_verified:
        return "Email is already verified!", user

    if user.verification_expires_at and user.verification_expires_at < now_utc():
        raise ValidationError("Verification token has expired")

    with uow(db):
        user.email_verified = True
        user.verification_token = None
        user.verification_expires_at = None
    db.refresh(user)

    logger.info("Email verificado: %s", user.email)
    return "Email verified successfully! You can now receive notifications.", user


def resend_verification_email(db: Session, email: str) -> dict:
    """
    Reemitir el token de verificación (máximo uno cada N minutos).

    Returns:
        {"success": bool, "message": str}

    Raises:
        NotFoundError: si el usuario no existe
        InternalError: si el email no se pudo enviar
    """
    user = get_user_by_email(db, email)
    if not user or user.is_active != 1:
        raise NotFoundError("User not found")

    if user.email_verified:
        return {"success": False, "message": "Email is already verified"}

    cooldown = timedelta(minutes=settings.EMAIL_VERIFICATION_RESEND_COOLDOWN_MINUTES)
    if user.last_verification_sent_at and now_utc() - user.last_verification_sent_at < cooldown:
        return {
            "success": False,
            "message": (
                "Verification email was sent recently. Please wait "
                f"{settings.EMAIL_VERIFICATION_RESEND_COOLDOWN_MINUTES} minutes before requesting another."
            ),
        }

    with uow(db):
        token = _issue_verification_token(user)

    if not send_verification_email(user.email, _verification_link(token), user.name):
        raise InternalError("Failed to send verification email")

    logger.info("Email de verificación reenviado a %s", user.email)
    return {"success": True, "message": "Verification email sent successfully"}


def is_token_revoked(db: Session, token: str) -> bool:
    return (
        db.query(TokenBlacklist.id)
        .filter(TokenBlacklist.token_hash == hash_token(token), TokenBlacklist.is_deleted == 0)
        .first()
        is not None
    )


def logout(db: Session, token: str | None) -> dict:
    """
    Invalidar un JWT guardándolo en token_blacklist hasta su expiración.

    Raises:
        AuthenticationError: si no hay token o no es válido
    """
    if not token:
        raise AuthenticationError("User not authenticated")
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        raise AuthenticationError("Invalid or expired token")

    if not is_token_revoked(db, token):
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
        with uow(db):
            db.add(TokenBlacklist(
                token=token,
                token_hash=hash_token(token),
                user_id=payload["sub"],
                expires_at=expires_at,
            ))

    logger.info("Logout del usuario %s", payload["sub"])
    return {"message": "Logged out successfully"}


def cleanup_expired_blacklist(db: Session) -> int:
    """Eliminar de la lista negra los tokens que ya expiraron por sí mismos."""
    with uow(db):
        deleted = (
            db.query(TokenBlacklist)
            .filter(TokenBlacklist.expires_at < now_utc())
            .delete(synchronize_session=False)
        )
    return deleted
