"""
Vérification des identifiants et émission du jeton de session (POST /api/auth/login).
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import InvalidCredentials
from app.models.user import User
from app.schemas.auth import LoginData
from app.schemas.user import UserResponse
from app.security import create_access_token, dummy_password_hash, verify_password

logger = logging.getLogger(__name__)


def login(db: Session, email: str, password: str) -> LoginData:
    """
    Vérifie email + mot de passe et retourne un jeton signé {sub, role, iat, exp}.

    Lève InvalidCredentials si l'email est inconnu ou le mot de passe faux.
    Un email inconnu déclenche quand même une vérification bcrypt (hash factice)
    pour ne pas révéler par le temps de réponse quels emails existent.
    Rien n'est persisté : la session est portée uniquement par le jeton.
    """
    user = db.execute(select(User).where(User.email == email.lower())).scalar()

    if user is None:
        verify_password(password, dummy_password_hash())
        logger.info("Échec de connexion : email inconnu")
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        logger.info("Échec de connexion : mot de passe incorrect (utilisateur %s)", user.id)
        raise InvalidCredentials()

    issued = create_access_token(user.id, user.role)
    logger.info("Connexion réussie : utilisateur %s (%s)", user.id, user.role.value)

    return LoginData(
        token=issued.access_token,
        expires_at=issued.expires_at,
        role=user.role,
        user=UserResponse.model_validate(user),
    )
