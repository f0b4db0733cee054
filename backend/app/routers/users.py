"""
Router pour les utilisateurs de l'administration.
Réservé au SUPERUSER ; la création est ouverte à l'ADMIN (hors rôle SUPERUSER).
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.authorization import get_current_identity, require_roles
from app.database import get_db
from app.models.user import Role
from app.schemas.common import ApiResponse, DeletedResponse, PageResponse
from app.schemas.user import UserCreate, UserResponse, UserUpdate
from app.security import Identity
from app.services import user_service

router = APIRouter(
    prefix="/api/users",
    tags=["Utilisateurs"],
    dependencies=[Depends(get_current_identity)],
)

superuser_only = require_roles(Role.SUPERUSER)


@router.get("", response_model=PageResponse[UserResponse], summary="Lister les utilisateurs",
            dependencies=[Depends(superuser_only)])
def list_users(
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Liste paginée, du plus récent au plus ancien ; `search` filtre sur le nom."""
    users, total = user_service.list_users(db, search, page, limit)
    return PageResponse[UserResponse](
        data=[UserResponse.model_validate(item) for item in users],
        page=page,
        limit=limit,
        total=total,
    )


@router.get("/{user_id}", response_model=ApiResponse[UserResponse], summary="Détail d'un utilisateur",
            dependencies=[Depends(superuser_only)])
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = user_service.get_user(db, user_id)
    return ApiResponse[UserResponse](data=UserResponse.model_validate(user))


@router.post("", response_model=ApiResponse[UserResponse], status_code=201, summary="Créer un utilisateur")
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.SUPERUSER, Role.ADMIN)),
):
    """
    Crée un utilisateur. Le mot de passe est haché et n'est jamais renvoyé.
    Retourne 409 si l'email existe déjà, 403 si un ADMIN tente de créer un SUPERUSER.
    """
    user = user_service.create_user(db, data, identity)
    return ApiResponse[UserResponse](data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse], summary="Modifier un utilisateur",
            dependencies=[Depends(superuser_only)])
def update_user(user_id: int, data: UserUpdate, db: Session = Depends(get_db)):
    user = user_service.update_user(db, user_id, data)
    return ApiResponse[UserResponse](data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[DeletedResponse], summary="Supprimer un utilisateur",
               dependencies=[Depends(superuser_only)])
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id)
    return ApiResponse[DeletedResponse](data=DeletedResponse(id=user_id))
