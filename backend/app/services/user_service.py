"""
Service métier pour les utilisateurs de l'administration.
"""

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import Forbidden
from app.models.user import Role, User
from app.schemas.user import UserCreate, UserUpdate
from app.security import Identity, hash_password
from app.services.common import get_or_404, paginate_by_name

logger = logging.getLogger(__name__)


def list_users(db: Session, search: str = "", page: int = 1, limit: int = 10) -> Tuple[List[User], int]:
    return paginate_by_name(db, User, search, page, limit)


def get_user(db: Session, user_id: int) -> User:
    return get_or_404(db, User, user_id, "Utilisateur")


def create_user(db: Session, data: UserCreate, actor: Identity) -> User:
    """
    Crée un utilisateur avec un mot de passe haché (bcrypt).
    Un ADMIN ne peut pas créer de SUPERUSER.
    Une IntegrityError (email déjà utilisé) remonte au classificateur d'erreurs (409).
    """
    if data.role == Role.SUPERUSER and actor.role != Role.SUPERUSER:
        raise Forbidden("Seul un SUPERUSER peut créer un autre SUPERUSER.")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)

    logger.info("Utilisateur créé : %s (%s) par %s", user.id, user.role.value, actor.subject_id)
    return user


def update_user(db: Session, user_id: int, data: UserUpdate) -> User:
    """Met à jour les champs fournis ; un nouveau mot de passe est haché avant stockage."""
    user = get_or_404(db, User, user_id, "Utilisateur")

    update_data = data.model_dump(exclude_unset=True, exclude={"password"})
    for field, value in update_data.items():
        if value is not None:
            setattr(user, field, value)
    if data.password:
        user.password_hash = hash_password(data.password)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_or_404(db, User, user_id, "Utilisateur")
    db.delete(user)
    db.commit()
    logger.info("Utilisateur supprimé : %s", user_id)
