# models/password_reset.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import Boolean, CHAR, DateTime, ForeignKey, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.user import new_id
from utils.db import Base
from utils.datetime_utils import now_utc


class PasswordReset(Base):
    """
    Token de recuperación de contraseña.

    Características:
    - Se guarda solo el hash SHA-256 del token enviado por email (único)
    - Expira después de N minutos (configurable)
    - Un token es válido si: expires_at > ahora AND used = false AND is_deleted = 0
    - `used` solo pasa de False a True (un solo uso)
    """
    __tablename__ = "password_resets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    token_hash: Mapped[str] = mapped_column(CHAR(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, index=True)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_deleted: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=now_utc, onupdate=now_utc,
                                                 nullable=False)

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
