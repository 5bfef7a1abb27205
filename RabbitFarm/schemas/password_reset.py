# schemas/password_reset.py
from pydantic import EmailStr, Field

from schemas.shared import InputModel


class ForgotPasswordIn(InputModel):
    """Request para solicitar recuperación de contraseña"""
    email: EmailStr


class ResetPasswordIn(InputModel):
    """Request para resetear contraseña con el token del link"""
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str = Field(..., min_length=6, max_length=100)
