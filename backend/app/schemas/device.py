"""
Schémas Pydantic pour les terminaux.
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.schemas.common import CamelModel


class DeviceCreate(CamelModel):
    """Création d'un terminal. Sans deviceKey fournie, une clé aléatoire est générée."""
    name: str
    device_key: Optional[str] = None
    group_id: Optional[str] = None
    location: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()

    @field_validator("device_key")
    @classmethod
    def key_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("La deviceKey ne peut pas être vide.")
        return v.strip() if v else v


class DeviceUpdate(CamelModel):
    name: Optional[str] = None
    device_key: Optional[str] = None
    group_id: Optional[str] = None
    location: Optional[str] = None

    @field_validator("name", "device_key")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            raise ValueError("Le champ ne peut pas être nul.")
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class DeviceResponse(CamelModel):
    id: int
    name: str
    device_key: str
    group_id: Optional[str]
    location: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
