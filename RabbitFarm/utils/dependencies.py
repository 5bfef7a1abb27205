from fastapi import Depends, Path, Query
from sqlalchemy.orm import Session

from models.farm import Farm
from models.user import User
from services.auth_service import get_active_user, is_token_revoked
from services.common import ensure_farm_access, parse_pagination, require_user
from utils.db import get_db
from utils.errors import AuthenticationError
from utils.security import oauth2_scheme, decode_access_token


def get_current_user_id(db: Session = Depends(get_db), token: str | None = Depends(oauth2_scheme)) -> str | None:
    """
    Id del usuario del Bearer token, o None si no se envió token.

    Los servicios deciden si la operación exige usuario (require_user).
    """
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or "sub" not in payload or is_token_revoked(db, token):
        raise AuthenticationError("Invalid or expired token")
    if not get_active_user(db, payload["sub"]):
        raise AuthenticationError("Invalid or expired token")
    return payload["sub"]


def get_current_user(db: Session = Depends(get_db), user_id: str | None = Depends(get_current_user_id)) -> User:
    user = get_active_user(db, require_user(user_id))
    if not user:
        raise AuthenticationError("User not authenticated")
    return user


def get_farm_scope(
    farm_id: str = Path(...),
    db: Session = Depends(get_db),
    user_id: str | None = Depends(get_current_user_id),
) -> Farm:
    """Lecturas bajo /farms/{farm_id}: usuario autenticado y dueño de la granja."""
    return ensure_farm_access(db, farm_id, require_user(user_id))


def get_pagination(
    limit: str | None = Query(None, description="Entero no negativo"),
    offset: str | None = Query(None, description="Entero no negativo"),
) -> tuple[int | None, int | None]:
    """limit/offset validados; declarar antes de get_farm_scope para fallar sin consultar la BD."""
    return parse_pagination(limit, offset)
