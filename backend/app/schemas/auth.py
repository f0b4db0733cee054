"""
Schémas Pydantic pour la connexion (POST /api/auth/login).
"""

from datetime import datetime

from pydantic import EmailStr

from app.models.user import Role
from app.schemas.common import CamelModel
from app.schemas.user import UserResponse


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class LoginData(CamelModel):
    token: str
    token_type: str = "Bearer"
    expires_at: datetime
    role: Role
    user: UserResponse
