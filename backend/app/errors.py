"""
Taxonomie des erreurs de l'API et classificateur unique vers les réponses HTTP.

Deux familles distinctes :
- AppError : erreurs de l'API d'administration, rendues en {success: false, error}
- DeviceProtocolError : erreurs du protocole terminal, rendues en {result: 0, success: false, msg}
  par les routers terminaux eux-mêmes (les terminaux ne lisent que cette enveloppe)

classify_error() est la seule table de correspondance cause → (statut, message, opérationnel).
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.logging_config import redact

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Une erreur interne est survenue."
HANDLER_FAILURE_MESSAGE = "Une erreur interne est survenue lors du traitement d'une autre erreur."


class AppError(Exception):
    """Erreur opérationnelle prévue, avec un statut HTTP et un message client définis."""

    kind = "bad_request"
    http_status = 400
    message = "Requête invalide."
    operational = True

    def __init__(self, message: Optional[str] = None):
        self.message = message or type(self).message
        super().__init__(self.message)


class NotFoundError(AppError):
    kind = "not_found"
    http_status = 404
    message = "Ressource introuvable."


class ConflictError(AppError):
    kind = "unique_violation"
    http_status = 409
    message = "Cette valeur est déjà utilisée."


class InvalidCredentials(AppError):
    kind = "invalid_credentials"
    http_status = 401
    message = "Email ou mot de passe incorrect."


class Unauthenticated(AppError):
    kind = "unauthenticated"
    http_status = 401
    message = "Authentification requise."


class TokenInvalid(Unauthenticated):
    kind = "token_invalid"
    message = "Jeton invalide."


class TokenExpired(Unauthenticated):
    kind = "token_expired"
    message = "Jeton expiré."


class Forbidden(AppError):
    kind = "forbidden"
    http_status = 403
    message = "Accès refusé pour ce rôle."


class PayloadTooLarge(AppError):
    kind = "payload_too_large"
    http_status = 413
    message = "Corps de requête trop volumineux."


class MalformedRequest(AppError):
    kind = "malformed_request"
    http_status = 400
    message = "Corps JSON invalide."


class DeviceProtocolError(Exception):
    """Erreur du protocole terminal (getPersonList, getPersonInfo, dataUpload)."""

    http_status = 400
    msg = "Requête terminal invalide."

    def __init__(self, msg: Optional[str] = None):
        self.msg = msg or type(self).msg
        super().__init__(self.msg)


class MissingParameters(DeviceProtocolError):
    msg = "Paramètres manquants."

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        super().__init__(f"Paramètres manquants : {', '.join(self.names)}")


class InvalidParameters(DeviceProtocolError):
    msg = "Paramètres invalides."


class UnknownDevice(DeviceProtocolError):
    msg = "deviceKey invalide."


class VisitorNotFound(DeviceProtocolError):
    http_status = 404
    msg = "Visiteur introuvable."


class DevicePayloadTooLarge(DeviceProtocolError):
    http_status = 413
    msg = "Corps de requête trop volumineux."


class DeviceStoreError(DeviceProtocolError):
    http_status = 500
    msg = "Échec de l'enregistrement."


@dataclass(frozen=True)
class ErrorInfo:
    """Résultat de la classification d'une erreur."""

    kind: str
    http_status: int
    message: str
    operational: bool


def classify_error(exc: BaseException, debug: Optional[bool] = None) -> ErrorInfo:
    """
    Associe une exception à sa classe d'erreur HTTP.

    | Cause                                   | Statut |
    |-----------------------------------------|--------|
    | Ressource introuvable                   | 404    |
    | Contrainte d'unicité                    | 409    |
    | Contrainte référentielle                | 400    |
    | Autre erreur de la base                 | 400    |
    | Base injoignable / non initialisée      | 503    |
    | Validation du payload                   | 422    |
    | JSON mal formé                          | 400    |
    | Jeton invalide ou expiré                | 401    |
    | Corps trop volumineux                   | 413    |
    | Non classée                             | 500    |

    En production le message d'une erreur non classée reste générique ;
    en développement il reprend le message de l'exception.
    """
    if debug is None:
        debug = not settings.is_production

    if isinstance(exc, AppError):
        return ErrorInfo(exc.kind, exc.http_status, exc.message, exc.operational)

    if isinstance(exc, NoResultFound):
        return ErrorInfo("not_found", 404, NotFoundError.message, True)
    if isinstance(exc, IntegrityError):
        return _classify_integrity_error(exc)
    if isinstance(exc, (OperationalError, InterfaceError)):
        return ErrorInfo("store_unavailable", 503, "Base de données indisponible.", True)
    if isinstance(exc, SQLAlchemyError):
        return ErrorInfo("store_error", 400, "Erreur de requête en base de données.", True)

    if isinstance(exc, RequestValidationError):
        errors = exc.errors()
        if any(err.get("type") == "json_invalid" for err in errors):
            return ErrorInfo(MalformedRequest.kind, 400, MalformedRequest.message, True)
        return ErrorInfo("validation_error", 422, _validation_message(errors), True)
    if isinstance(exc, ValidationError):
        return ErrorInfo("validation_error", 422, _validation_message(exc.errors()), True)

    if isinstance(exc, jwt.ExpiredSignatureError):
        return ErrorInfo(TokenExpired.kind, 401, TokenExpired.message, True)
    if isinstance(exc, jwt.InvalidTokenError):
        return ErrorInfo(TokenInvalid.kind, 401, TokenInvalid.message, True)

    if isinstance(exc, StarletteHTTPException):
        return ErrorInfo("http_error", exc.status_code, str(exc.detail), exc.status_code < 500)

    message = str(exc) if debug and str(exc) else GENERIC_ERROR_MESSAGE
    return ErrorInfo("internal_error", 500, message, False)


def _classify_integrity_error(exc: IntegrityError) -> ErrorInfo:
    """Distingue unicité et intégrité référentielle via le code SQLSTATE ou le message du driver."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig if orig is not None else exc).lower()

    if code == "23505" or "unique" in text or "duplicate" in text:
        field = _constraint_field(text)
        message = f"Valeur déjà utilisée pour le champ : {field}" if field else ConflictError.message
        return ErrorInfo(ConflictError.kind, 409, message, True)
    if code == "23503" or "foreign key" in text:
        return ErrorInfo("foreign_key_violation", 400, "Référence vers une ressource inexistante.", True)
    return ErrorInfo("store_error", 400, "Erreur de requête en base de données.", True)


def _constraint_field(text: str) -> Optional[str]:
    # SQLite : "unique constraint failed: devices.device_key"
    # PostgreSQL : "key (email)=(...) already exists"
    match = re.search(r"constraint failed: ([\w.]+)", text) or re.search(r"key \(([^)]+)\)=", text)
    if match is None:
        return None
    return match.group(1).split(".")[-1]


def _validation_message(errors: Iterable[Dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts) or "Données invalides."


def loggable_body(body: Any) -> Any:
    """Corps de requête structuré masqué ; un corps brut (JSON invalide) n'est pas journalisé."""
    if isinstance(body, (Mapping, list)):
        return redact(body)
    return "<corps non structuré>"


def error_response(info: ErrorInfo) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if info.http_status == 401 else None
    return JSONResponse(
        status_code=info.http_status,
        content={"success": False, "error": info.message},
        headers=headers,
    )


async def handle_error(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler FastAPI commun : classe l'erreur, la journalise et rend l'enveloppe d'erreur.
    Ne lève jamais : un échec interne produit une réponse 500 fixe, loggée en CRITICAL.
    """
    try:
        info = classify_error(exc)
        _log_error(request, exc, info)
        return error_response(info)
    except Exception:
        logger.critical(
            "Échec du classificateur d'erreurs sur %s %s",
            request.method, request.url.path, exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": HANDLER_FAILURE_MESSAGE},
        )


def _log_error(request: Request, exc: Exception, info: ErrorInfo) -> None:
    if not info.operational:
        logger.error(
            "Erreur non gérée sur %s %s : %s",
            request.method, request.url.path, exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return

    if isinstance(exc, RequestValidationError):
        logger.warning(
            "%s %s → %d %s, payload=%s",
            request.method, request.url.path, info.http_status, info.kind, loggable_body(exc.body),
        )
        return

    logger.warning("%s %s → %d %s", request.method, request.url.path, info.http_status, info.kind)


def register_error_handlers(app: FastAPI) -> None:
    """Branche handle_error sur toutes les familles d'exceptions classées."""
    for exc_class in (
        AppError,
        SQLAlchemyError,
        RequestValidationError,
        ValidationError,
        jwt.PyJWTError,
        StarletteHTTPException,
        Exception,
    ):
        app.add_exception_handler(exc_class, handle_error)
