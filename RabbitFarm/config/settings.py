# config/settings.py
"""
Configuración centralizada de la aplicación usando Pydantic Settings.
Las variables se cargan desde el archivo .env
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    APP_NAME: str = "Rabbit Farm"

    # Base de datos
    DATABASE_URL: str

    # JWT
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 días
    ALGORITHM: str = "HS256"
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ALLOW_ORIGINS: List[str] = ["http://localhost:3000"]

    # URLs públicas (links en correos)
    API_BASE_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"

    # Email (SMTP)
    MAIL_USER: str | None = None
    MAIL_PASS: str | None = None
    MAIL_HOST: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_FROM_NAME: str = "Rabbit Farm"
    MAIL_FROM_EMAIL: str | None = None  # Si es None, usa MAIL_USER

    # Verificación de email
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    EMAIL_VERIFICATION_RESEND_COOLDOWN_MINUTES: int = 5

    # Password Reset
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 60
    PASSWORD_RESET_MAX_ATTEMPTS_PER_HOUR: int = 5

    # Zona horaria usada en los mensajes de alertas
    FARM_TIMEZONE: str = "Africa/Nairobi"

    # Plantillas HTML (páginas de verificación)
    TEMPLATES_DIR: Path = BASE_DIR / "templates"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json | text

    # Celery
    REDIS_URL: str = "redis://localhost:6379/0"

    class Config:
        env_file = ".env"
        case_sensitive = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Si MAIL_FROM_EMAIL no está configurado, usar MAIL_USER
        if not self.MAIL_FROM_EMAIL and self.MAIL_USER:
            self.MAIL_FROM_EMAIL = self.MAIL_USER


settings = Settings()
