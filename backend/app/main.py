"""
Point d'entrée principal de l'API VisiTrack.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

import app.models  # noqa: F401 (enregistre tous les modèles dans Base.metadata)
from app.config import settings
from app.database import close_db, init_db
from app.errors import DevicePayloadTooLarge, PayloadTooLarge, handle_error, register_error_handlers
from app.logging_config import create_logging_middleware, setup_logging
from app.routers import attendances, auth, device_protocol, devices, stats, users, visitors

logger = logging.getLogger(__name__)

DEVICE_PROTOCOL_PATHS = frozenset(route.path for route in device_protocol.router.routes)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : logs et tables au démarrage, fermeture du pool de connexions à l'arrêt."""
    setup_logging()
    if settings.DB_AUTO_CREATE:
        init_db()
    logger.info("API VisiTrack démarrée (env=%s).", settings.ENV)
    yield
    close_db()


app = FastAPI(
    title="VisiTrack API",
    description="API de gestion des visiteurs et des présences pour terminaux de contrôle d'accès",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(devices.router)
app.include_router(visitors.router)
app.include_router(attendances.router)
app.include_router(stats.router)
app.include_router(device_protocol.router)

register_error_handlers(app)


class BodySizeLimitMiddleware:
    """
    Rejette (413) les requêtes dont le corps dépasse MAX_BODY_SIZE_MB.

    - Content-Length annoncé trop grand : rejet avant toute lecture du corps
    - Corps sans Content-Length (chunked) : octets comptés pendant la lecture ; au
      dépassement la lecture échoue et la réponse de l'application est remplacée par le 413

    Les endpoints terminal répondent dans leur enveloppe {result, success, msg}.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        limit = settings.MAX_BODY_SIZE_MB * 1024 * 1024
        content_length = request.headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > limit:
            response = await self._too_large(request)
            await response(scope, receive, send)
            return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    exceeded = True
                    raise PayloadTooLarge()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            if not exceeded or response_started:
                raise

        if exceeded and not response_started:
            response = await self._too_large(request)
            await response(scope, receive, send)

    @staticmethod
    async def _too_large(request: Request) -> Response:
        if request.url.path in DEVICE_PROTOCOL_PATHS:
            logger.warning("Corps trop volumineux rejeté sur %s", request.url.path)
            return device_protocol.device_error_response(DevicePayloadTooLarge())
        return await handle_error(request, PayloadTooLarge())


app.add_middleware(BodySizeLimitMiddleware)
create_logging_middleware(app)

# CORS ajouté en dernier : il enveloppe les autres middlewares, réponses d'erreur comprises.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "VisiTrack API", "version": "0.1.0"}
