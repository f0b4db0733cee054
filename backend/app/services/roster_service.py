"""
Service de synchronisation du roster visiteurs vers les terminaux.

Les terminaux gardent un cache local des visiteurs. À chaque synchro, ils comparent
l'empreinte md5 reçue pour chaque idcardNum à celle du cache et ne re-téléchargent
l'image que si elle a changé.

Empreinte composite (ordre fixe, imposé par le firmware) :
    md5( md5(name) + md5(imgBase64) + md5(str(type)) + md5(passtime) )
Chaque composante vaut md5("") si le champ est absent ; les hash sont concaténés
en hexadécimal minuscule avant le hash final.

groupId est exigé mais ne filtre pas le roster : tous les visiteurs sont servis
à tous les terminaux enregistrés.
"""

import hashlib
import logging
from typing import Any, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.errors import InvalidParameters, MissingParameters, VisitorNotFound
from app.models.visitor import Visitor
from app.schemas.device_protocol import (
    PersonInfoRequest,
    PersonInfoResponse,
    RosterPageRequest,
    RosterPageResponse,
    RosterRecord,
)
from app.services.device_service import resolve_device
from app.services.visitor_service import find_by_idcard_num

logger = logging.getLogger(__name__)

SUCCESS_MSG = "Succès"

# Bornes de pagination : l'offset (page - 1) * pageSize reste un entier 64 bits
MAX_PAGE = 1_000_000
MAX_PAGE_SIZE = 1000


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8"), usedforsecurity=False).hexdigest()


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def fingerprint_components(
    name: Optional[str],
    img_base64: Optional[str],
    type_: Optional[int],
    passtime: Optional[str],
) -> Tuple[str, str, str, str]:
    """Les quatre empreintes partielles, dans l'ordre name, image, type, passtime."""
    return (
        md5_hex(_as_text(name)),
        md5_hex(_as_text(img_base64)),
        md5_hex(_as_text(type_)),
        md5_hex(_as_text(passtime)),
    )


def visitor_fingerprint(visitor: Visitor) -> str:
    """Empreinte composite d'un visiteur, comparée par le terminal à son cache."""
    components = fingerprint_components(visitor.name, visitor.img_base64, visitor.type, visitor.passtime)
    return md5_hex("".join(components))


def to_roster_record(visitor: Visitor) -> RosterRecord:
    return RosterRecord(
        idcard_num=visitor.idcard_num,
        name=visitor.name,
        img_base64=visitor.img_base64,
        type=visitor.type,
        passtime=visitor.passtime,
        md5=visitor_fingerprint(visitor),
    )


def require_parameters(**params: Any) -> None:
    """Lève MissingParameters (noms côté terminal) si un paramètre est absent ou vide."""
    missing = [name for name, value in params.items() if value is None or value == ""]
    if missing:
        raise MissingParameters(missing)


def get_person_list(db: Session, data: RosterPageRequest) -> RosterPageResponse:
    """
    Page du roster pour un terminal enregistré (POST /api/visitors/getPersonList).

    1. Les quatre paramètres doivent être présents (avant tout accès à la base),
       page dans [1, MAX_PAGE] et pageSize dans [1, MAX_PAGE_SIZE]
    2. La deviceKey doit correspondre à un terminal enregistré
    3. Visiteurs triés par ID croissant, skip = (page - 1) * pageSize, take = pageSize

    Un roster vide est un succès : total = 0, data = [].
    """
    require_parameters(
        groupId=data.group_id,
        deviceKey=data.device_key,
        page=data.page,
        pageSize=data.page_size,
    )
    if not 1 <= data.page <= MAX_PAGE or not 1 <= data.page_size <= MAX_PAGE_SIZE:
        raise InvalidParameters(
            f"page doit être entre 1 et {MAX_PAGE}, pageSize entre 1 et {MAX_PAGE_SIZE}."
        )

    device = resolve_device(db, data.device_key)

    total = db.execute(select(func.count()).select_from(Visitor)).scalar() or 0
    visitors = db.execute(
        select(Visitor)
        .order_by(Visitor.id.asc())
        .offset((data.page - 1) * data.page_size)
        .limit(data.page_size)
    ).scalars().all()

    logger.info(
        "Roster terminal %s : page %d (taille %d) → %d/%d visiteurs",
        device.id, data.page, data.page_size, len(visitors), total,
    )

    return RosterPageResponse(
        result=1,
        success=True,
        msg=SUCCESS_MSG,
        total=total,
        data=[to_roster_record(v) for v in visitors],
    )


def get_person_info(db: Session, data: PersonInfoRequest) -> PersonInfoResponse:
    """
    Fiche d'un visiteur pour un terminal enregistré (POST /api/visitors/getPersonInfo).
    Mêmes contrôles que get_person_list ; lève VisitorNotFound si idcardNum est inconnu.
    """
    require_parameters(
        groupId=data.group_id,
        deviceKey=data.device_key,
        idcardNum=data.idcard_num,
    )
    device = resolve_device(db, data.device_key)

    visitor = find_by_idcard_num(db, data.idcard_num)
    if visitor is None:
        logger.info("Terminal %s : visiteur demandé introuvable", device.id)
        raise VisitorNotFound()

    return PersonInfoResponse(
        result=1,
        success=True,
        msg=SUCCESS_MSG,
        data=to_roster_record(visitor),
    )
