# utils/responses.py
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: str | None = None, status_code: int = 200) -> JSONResponse:
    """
    Sobre estándar de éxito: {"success": true, "message"?: str, "data"?: ...}

    `message` y `data` se omiten cuando no vienen.
    """
    content: dict[str, Any] = {"success": True}
    if message:
        content["message"] = message
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)
