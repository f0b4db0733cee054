"""
Router du protocole terminal (synchronisation du roster et remontée des présences).

POST /api/visitors/getPersonList   : page du roster avec empreintes md5
POST /api/visitors/getPersonInfo   : fiche d'un visiteur par idcardNum
POST /api/attendances/dataUpload   : enregistrement d'un passage

Pas de jeton Bearer : la deviceKey du corps est le seul facteur d'authentification.
Toutes les réponses, erreurs comprises, utilisent l'enveloppe fixe {result, success, msg}
que le firmware sait lire ; aucune erreur ne passe par le handler générique.
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import DeviceProtocolError, DeviceStoreError, InvalidParameters, loggable_body
from app.schemas.device_protocol import (
    DataUploadRequest,
    DeviceAck,
    PersonInfoRequest,
    PersonInfoResponse,
    RosterPageRequest,
    RosterPageResponse,
)
from app.services import attendance_service, roster_service

logger = logging.getLogger(__name__)

UPLOAD_SUCCESS_MSG = "Reçu avec succès"
UNEXPECTED_ERROR_MSG = "Erreur interne du serveur."


def device_error_response(exc: DeviceProtocolError) -> JSONResponse:
    """Réponse d'échec dans l'enveloppe terminal : {result: 0, success: false, msg}."""
    return JSONResponse(
        status_code=exc.http_status,
        content=DeviceAck(result=0, success=False, msg=exc.msg).model_dump(),
    )


class DeviceProtocolRoute(APIRoute):
    """
    Route dont les erreurs de parsing (JSON invalide, type incorrect, corps absent)
    sont rendues en HTTP 400 dans l'enveloppe terminal au lieu d'un 422 générique.
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def device_route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except RequestValidationError as exc:
                logger.warning(
                    "Requête terminal rejetée sur %s : %s",
                    request.url.path, loggable_body(exc.body),
                )
                return device_error_response(InvalidParameters("Requête invalide."))

        return device_route_handler


router = APIRouter(prefix="/api", tags=["Protocole terminal"], route_class=DeviceProtocolRoute)


@router.post(
    "/visitors/getPersonList",
    response_model=RosterPageResponse,
    summary="Roster paginé pour un terminal",
)
def get_person_list(data: RosterPageRequest, db: Session = Depends(get_db)):
    """
    Retourne une page de visiteurs triés par ID croissant, chacun avec son empreinte md5.

    Paramètres obligatoires : groupId, deviceKey, page, pageSize.
    - Paramètre manquant ou deviceKey inconnue → 400, result = 0
    - Roster vide → 200, result = 1, total = 0, data = []
    """
    try:
        return roster_service.get_person_list(db, data)
    except DeviceProtocolError as e:
        return device_error_response(e)
    except SQLAlchemyError:
        logger.exception("Échec de lecture du roster")
        return device_error_response(DeviceStoreError("Échec de lecture du roster."))
    except Exception:
        logger.exception("Erreur inattendue sur getPersonList")
        return device_error_response(DeviceStoreError(UNEXPECTED_ERROR_MSG))


@router.post(
    "/visitors/getPersonInfo",
    response_model=PersonInfoResponse,
    summary="Fiche d'un visiteur pour un terminal",
)
def get_person_info(data: PersonInfoRequest, db: Session = Depends(get_db)):
    """
    Retourne la fiche d'un visiteur (idcardNum) avec son empreinte md5.
    Paramètres obligatoires : groupId, deviceKey, idcardNum. Visiteur inconnu → 404, result = 0.
    """
    try:
        return roster_service.get_person_info(db, data)
    except DeviceProtocolError as e:
        return device_error_response(e)
    except SQLAlchemyError:
        logger.exception("Échec de lecture d'une fiche visiteur")
        return device_error_response(DeviceStoreError("Échec de lecture du visiteur."))
    except Exception:
        logger.exception("Erreur inattendue sur getPersonInfo")
        return device_error_response(DeviceStoreError(UNEXPECTED_ERROR_MSG))


@router.post(
    "/attendances/dataUpload",
    response_model=DeviceAck,
    summary="Remontée d'un passage par un terminal",
)
def data_upload(data: DataUploadRequest, db: Session = Depends(get_db)):
    """
    Enregistre un passage (append-only, sans déduplication sur recordId).

    - deviceKey inconnue → 400, result = 0
    - idcardNumber inconnu → passage enregistré quand même (visiteur inconnu)
    - time : epoch en millisecondes
    """
    try:
        attendance_service.data_upload(db, data)
    except DeviceProtocolError as e:
        return device_error_response(e)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Échec d'enregistrement d'une présence")
        return device_error_response(DeviceStoreError("Échec de l'enregistrement de la présence."))
    except Exception:
        db.rollback()
        logger.exception("Erreur inattendue sur dataUpload")
        return device_error_response(DeviceStoreError(UNEXPECTED_ERROR_MSG))

    return DeviceAck(result=1, success=True, msg=UPLOAD_SUCCESS_MSG)
