"""
Router d'authentification.
POST /api/auth/login : email + mot de passe → jeton de session.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.auth import LoginData, LoginRequest
from app.schemas.common import ApiResponse
from app.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["Authentification"])


@router.post("/login", response_model=ApiResponse[LoginData], summary="Se connecter")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """
    Vérifie les identifiants et retourne un jeton Bearer signé (rôle inclus).
    Retourne 401 si l'email est inconnu ou le mot de passe incorrect.
    """
    return ApiResponse[LoginData](data=auth_service.login(db, data.email, data.password))
