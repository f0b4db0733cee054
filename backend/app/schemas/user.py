"""
Schémas Pydantic pour les utilisateurs.
Le hash du mot de passe n'apparaît dans aucun schéma de réponse.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, field_validator

from app.models.user import Role
from app.schemas.common import CamelModel

BCRYPT_MAX_BYTES = 72
PASSWORD_MIN_LENGTH = 8


def _check_password(v: str) -> str:
    if len(v) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Le mot de passe doit contenir au moins {PASSWORD_MIN_LENGTH} caractères.")
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError("Le mot de passe ne peut pas dépasser 72 octets.")
    return v


class UserCreate(CamelModel):
    """Schéma de création d'un utilisateur (POST /api/users)."""
    name: str
    email: EmailStr
    password: str
    role: Role = Role.RECEPTIONIST

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def valid_password(cls, v: str) -> str:
        return _check_password(v)


class UserUpdate(CamelModel):
    """Schéma de mise à jour (PUT /api/users/{id}). Les champs absents ne sont pas modifiés."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @field_validator("password")
    @classmethod
    def valid_password(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v) if v is not None else v


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
