"""
Service métier pour les terminaux : CRUD d'administration et identification par deviceKey.
"""

import logging
import secrets
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import UnknownDevice
from app.models.device import Device
from app.schemas.device import DeviceCreate, DeviceUpdate
from app.services.common import get_or_404, paginate_by_name

logger = logging.getLogger(__name__)

DEVICE_KEY_BYTES = 32


def generate_device_key() -> str:
    """Clé opaque non devinable (256 bits, url-safe)."""
    return secrets.token_urlsafe(DEVICE_KEY_BYTES)


def resolve_device(db: Session, device_key: Optional[str]) -> Device:
    """
    Identifie le terminal à l'origine d'une requête du protocole terminal.
    Correspondance exacte sur device_key ; lève UnknownDevice sinon.
    L'ID du terminal retourné sert d'attribution pour les présences.
    """
    if not device_key:
        raise UnknownDevice()

    device = db.execute(
        select(Device).where(Device.device_key == device_key)
    ).scalar()
    if device is None:
        logger.warning("deviceKey inconnue rejetée")
        raise UnknownDevice()
    return device


def list_devices(db: Session, search: str = "", page: int = 1, limit: int = 10) -> Tuple[List[Device], int]:
    return paginate_by_name(db, Device, search, page, limit)


def get_device(db: Session, device_id: int) -> Device:
    return get_or_404(db, Device, device_id, "Terminal")


def create_device(db: Session, data: DeviceCreate) -> Device:
    device = Device(
        name=data.name,
        device_key=data.device_key or generate_device_key(),
        group_id=data.group_id,
        location=data.location,
    )
    db.add(device)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(device)

    logger.info("Terminal créé : %s (%s)", device.name, device.id)
    return device


def update_device(db: Session, device_id: int, data: DeviceUpdate) -> Device:
    device = get_or_404(db, Device, device_id, "Terminal")

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(device, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(device)
    return device


def delete_device(db: Session, device_id: int) -> None:
    """Supprime un terminal. Refusé par la base (400) s'il a déjà des présences."""
    device = get_or_404(db, Device, device_id, "Terminal")
    db.delete(device)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    logger.info("Terminal supprimé : %s", device_id)
