# utils/templates.py
"""
Páginas HTML con Jinja2 (autoescape activo): {{ clave }} se reemplaza por el valor escapado.
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from jinja2 import Environment, FileSystemLoader, TemplateError

from config.settings import settings

logger = logging.getLogger(__name__)

FALLBACK_ERROR_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Error</title></head>
<body>
    <h1>Something went wrong</h1>
    <p>We could not process your request. Please try again later.</p>
</body>
</html>
"""


@lru_cache
def _environment(templates_dir: str) -> Environment:
    return Environment(loader=FileSystemLoader(templates_dir), autoescape=True)


def render_string(template: str, values: Mapping[str, object]) -> str:
    """Renderiza un texto; las claves desconocidas quedan vacías."""
    return Environment(autoescape=True).from_string(template).render(**values)


def render_template(name: str, values: Mapping[str, object], templates_dir: Path | None = None) -> str | None:
    """
    Carga `name` desde el directorio de plantillas y lo renderiza.

    Returns:
        El HTML renderizado, o None si la plantilla no se pudo cargar
        (el error se registra y el llamador decide la página alternativa).
    """
    directory = str(templates_dir or settings.TEMPLATES_DIR)
    try:
        return _environment(directory).get_template(name).render(**values)
    except TemplateError as exc:
        logger.error("No se pudo cargar la plantilla %s en %s: %s", name, directory, exc)
        return None
