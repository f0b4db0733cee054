"""
Configuration des logs de l'API.

- Console en développement (ou si aucun dossier de logs n'est configuré)
- Fichiers rotatifs error.log (ERROR+) et combined.log dans LOG_DIR
- Chaque handler masque les champs sensibles des arguments structurés (redact)
"""

import logging
import re
import time
from collections.abc import Mapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from fastapi import FastAPI, Request
from pydantic import BaseModel

from app.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_SIZE = 20 * 1024 * 1024  # 20 MB
LOG_BACKUP_COUNT = 5

REDACTED = "[REDACTED]"

# Noms normalisés (minuscules, sans séparateurs) des champs à masquer
SENSITIVE_FIELDS = frozenset({
    "password",
    "token",
    "authorization",
    "pin",
    "securitycode",
    "cvv",
    "apikey",
})
# Fragments couvrant les variantes courantes : password_hash, access_token, x-api-key
SENSITIVE_FRAGMENTS = ("password", "token", "apikey")

# Modèle de valeur accepté par redact : dictionnaire, liste ou scalaire
LogValue = Union[Mapping, Sequence, str, int, float, bool, None]

_installed_handlers: List[logging.Handler] = []


def _normalize_key(key: Any) -> str:
    return re.sub(r"[\s_\-]", "", str(key)).lower()


def is_sensitive_field(key: Any) -> bool:
    normalized = _normalize_key(key)
    return normalized in SENSITIVE_FIELDS or any(fragment in normalized for fragment in SENSITIVE_FRAGMENTS)


def redact(value: Any) -> LogValue:
    """
    Retourne une copie de `value` où chaque champ sensible est remplacé par [REDACTED].

    Parcours récursif limité à trois formes :
    - dictionnaire : clés conservées, valeurs masquées ou parcourues
    - liste / tuple / ensemble : éléments parcourus (rendus en liste)
    - scalaire (str, int, float, bool, None) : inchangé

    Tout autre objet est rendu via str() ; un modèle Pydantic est d'abord sérialisé.
    La valeur d'origine n'est jamais modifiée.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)

    if isinstance(value, Mapping):
        return {
            key: REDACTED if is_sensitive_field(key) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class RedactingFilter(logging.Filter):
    """Masque les champs sensibles des arguments structurés d'un enregistrement de log."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, Mapping):
            record.args = redact(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(
                redact(arg) if isinstance(arg, (Mapping, list, tuple, set, BaseModel)) else arg
                for arg in record.args
            )
        return True


def setup_logging() -> None:
    """
    Installe les handlers sur le logger racine (appelé au démarrage de l'API).
    Ré-appelable : les handlers posés lors d'un appel précédent sont retirés.
    """
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    handlers: List[logging.Handler] = []
    if not settings.is_production or not settings.LOG_DIR:
        handlers.append(logging.StreamHandler())

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        error_handler = RotatingFileHandler(
            log_dir / "error.log",
            maxBytes=LOG_MAX_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)
        handlers.append(RotatingFileHandler(
            log_dir / "combined.log",
            maxBytes=LOG_MAX_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(RedactingFilter())
        root.addHandler(handler)
        _installed_handlers.append(handler)

    root.setLevel(settings.LOG_LEVEL.upper())


def create_logging_middleware(app: FastAPI) -> FastAPI:
    """
    Ajoute un middleware qui journalise chaque requête : méthode, chemin, statut, durée.
    Les paramètres de requête passent par redact ; les corps (images base64) ne sont pas loggés.
    """
    access_logger = logging.getLogger("app.access")

    @app.middleware("http")
    async def log_request_response_time(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        query: Dict[str, Any] = dict(request.query_params)
        access_logger.info(
            "%s %s %s → %d (%.4fs)",
            request.method,
            request.url.path,
            redact(query) if query else "",
            response.status_code,
            process_time,
        )
        response.headers["X-Process-Time"] = str(round(process_time, 4))
        return response

    return app
