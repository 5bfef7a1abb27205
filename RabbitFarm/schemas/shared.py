# schemas/shared.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


# -------------------------------------------------------------------
# Base común para todos los schemas (Pydantic v2)
# -------------------------------------------------------------------
class ORMModel(BaseModel):
    """
    Modelo base para schemas de salida.
    - from_attributes=True: permite construir el schema desde objetos ORM.
    - populate_by_name=True: habilita usar 'alias' si decides nombrar distinto.
    - str_strip_whitespace=True: limpia espacios en strings.
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class InputModel(BaseModel):
    """Base para payloads de entrada: limpia espacios e ignora campos desconocidos."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")
