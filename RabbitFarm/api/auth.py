# api/auth.py
"""
API de autenticación.
Endpoints: register, login, me, verify-email, resend-verification,
forgot-password, reset-password (validate / reset) y logout.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from config.settings import settings
from models.user import User
from schemas.password_reset import ForgotPasswordIn, ResetPasswordIn
from schemas.user import LoginIn, RegisterIn, ResendVerificationIn, UserOut
from services import auth_service, password_reset_service
from utils.db import get_db
from utils.dependencies import get_current_user
from utils.errors import AppError
from utils.responses import success_response
from utils.security import oauth2_scheme
from utils.templates import FALLBACK_ERROR_PAGE, render_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

DEFAULT_VERIFY_ERROR = "The verification link is invalid or has expired."


@router.post(
    "/register",
    status_code=201,
    summary="Registrar usuario",
    description=(
        "Crea un usuario sin verificar y envía el email de verificación.\n\n"
        "**Campos:** `email`, `password` (mín. 6), `name`, `phone`"
    )
)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    """Registro de un usuario nuevo"""
    user = auth_service.register(db, payload)
    return success_response(
        UserOut.model_validate(user),
        "Registration successful! Please check your email to verify your account.",
        status_code=201,
    )


@router.post(
    "/login",
    summary="Login",
    description=(
        "Autenticación con email y contraseña.\n\n"
        "**Response:**\n"
        "- `token`: JWT para usar en header `Authorization: Bearer <token>`\n"
        "- `requires_email_verification`: true si el email aún no se verificó"
    )
)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    """Login con email y password"""
    result = auth_service.login(db, payload.email, payload.password)
    message = (
        "Login successful, but please verify your email to receive notifications."
        if result["requires_email_verification"]
        else "Login successful"
    )
    data = {
        "token": result["token"],
        "token_type": "bearer",
        "user": UserOut.model_validate(result["user"]),
        "requires_email_verification": result["requires_email_verification"],
    }
    return success_response(data, message)


@router.get(
    "/me",
    summary="Obtener usuario actual",
    description="Retorna la información del usuario autenticado.\n\n**Requiere autenticación:** Sí"
)
def me(current_user: User = Depends(get_current_user)):
    """Obtener información del usuario autenticado"""
    return success_response(UserOut.model_validate(current_user))


@router.get(
    "/verify-email/{token}",
    response_class=HTMLResponse,
    summary="Verificar email",
    description="Link que llega por email. Responde una página HTML (200 éxito, 400 error)."
)
def verify_email(token: str, db: Session = Depends(get_db)):
    """Verificación del email desde el link"""
    try:
        message, user = auth_service.verify_email(db, token)
    except AppError as exc:
        logger.error("Error al verificar email: %s", exc.message)
        page = render_template(
            "email_verification_error.html",
            {"errorMessage": exc.message or DEFAULT_VERIFY_ERROR, "appName": settings.APP_NAME},
        )
        return HTMLResponse(page or FALLBACK_ERROR_PAGE, status_code=400)

    page = render_template(
        "email_verification_success.html",
        {"message": message, "userName": user.name, "appName": settings.APP_NAME},
    )
    if page is None:
        return HTMLResponse(FALLBACK_ERROR_PAGE, status_code=500)
    return HTMLResponse(page, status_code=200)


@router.post(
    "/resend-verification",
    summary="Reenviar email de verificación",
    description="Reemite el token de verificación (como máximo uno cada pocos minutos)."
)
def resend_verification(payload: ResendVerificationIn, db: Session = Depends(get_db)):
    result = auth_service.resend_verification_email(db, payload.email)
    return success_response({"success": result["success"]}, result["message"])


@router.get(
    "/reset-password/{token}/validate",
    summary="Validar token de recuperación",
    description="Comprueba que el token exista, no haya expirado y no se haya usado. No modifica nada."
)
def validate_reset_token(token: str, db: Session = Depends(get_db)):
    result = password_reset_service.validate_reset_token(db, token)
    return success_response(result, "Token is valid")


@router.post(
    "/forgot-password",
    summary="Solicitar recuperación de contraseña",
    description=(
        "Envía un email con un link para restablecer la contraseña.\n\n"
        "**Proceso:**\n"
        "1. Valida que el email exista\n"
        "2. Verifica rate limit (máx 5 intentos por hora)\n"
        "3. Genera token único con expiración de 60 minutos\n"
        "4. Envía email con link de reset"
    )
)
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    """Solicitar recuperación de contraseña"""
    result = password_reset_service.request_password_reset(db, payload.email)
    return success_response(message=result["message"])


@router.post(
    "/reset-password/{token}",
    summary="Restablecer contraseña con token",
    description=(
        "Cambia la contraseña usando el token recibido por email.\n\n"
        "**Validaciones:**\n"
        "- `password` y `confirm_password` coinciden\n"
        "- Token vigente y no usado\n\n"
        "**Efecto:** cambia la contraseña y consume el token en la misma transacción"
    )
)
def reset_password(token: str, payload: ResetPasswordIn, db: Session = Depends(get_db)):
    """Restablecer contraseña con token"""
    result = password_reset_service.reset_password(db, token, payload.password, payload.confirm_password)
    return success_response(message=result["message"])


@router.post(
    "/logout",
    summary="Cerrar sesión",
    description="Invalida el Bearer token actual hasta su expiración."
)
def logout(token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    result = auth_service.logout(db, token)
    return success_response(message=result["message"])
