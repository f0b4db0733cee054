"""
Schémas Pydantic pour les visiteurs (administration).
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.schemas.common import CamelModel


class VisitorCreate(CamelModel):
    name: str
    idcard_num: str
    img_base64: Optional[str] = None
    type: Optional[int] = None
    passtime: Optional[str] = None

    @field_validator("name", "idcard_num")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class VisitorUpdate(CamelModel):
    name: Optional[str] = None
    idcard_num: Optional[str] = None
    img_base64: Optional[str] = None
    type: Optional[int] = None
    passtime: Optional[str] = None

    @field_validator("name", "idcard_num")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        # Colonnes NOT NULL : absentes = inchangées, null explicite refusé
        if v is None:
            raise ValueError("Le champ ne peut pas être nul.")
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class VisitorResponse(CamelModel):
    id: int
    name: str
    idcard_num: str
    img_base64: Optional[str]
    type: Optional[int]
    passtime: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
