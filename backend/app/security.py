"""
Primitives d'authentification : hachage bcrypt des mots de passe et jetons JWT de session.

Les sessions sont sans état : le jeton porte {sub, role, iat, exp}, signé HS256,
et n'est jamais stocké ni révocable côté serveur. L'expiration est vérifiée
uniquement au moment de l'autorisation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt

from app.config import settings
from app.errors import TokenExpired, TokenInvalid
from app.models.user import Role

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Identity:
    """Appelant authentifié, reconstruit à partir d'un jeton valide."""

    subject_id: int
    role: Role
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_at: datetime


def hash_password(password: str) -> str:
    """Hache un mot de passe avec bcrypt. Lève ValueError au-delà de 72 octets."""
    secret = password.encode("utf-8")
    if len(secret) > BCRYPT_MAX_BYTES:
        raise ValueError("Le mot de passe ne peut pas dépasser 72 octets.")
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Compare en temps constant (bcrypt.checkpw) un mot de passe et son hash."""
    secret = password.encode("utf-8")
    if len(secret) > BCRYPT_MAX_BYTES or not password_hash:
        return False
    try:
        return bcrypt.checkpw(secret, password_hash.encode("ascii"))
    except ValueError:
        logger.warning("Hash de mot de passe illisible, vérification refusée.")
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash de référence pour garder un temps de réponse identique si l'email est inconnu."""
    return hash_password("visitrack-timing-equalizer")


def create_access_token(
    subject_id: int,
    role: Role,
    expires_delta: Optional[timedelta] = None,
) -> IssuedToken:
    """Signe un jeton de session pour l'utilisateur `subject_id` avec son rôle."""
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(subject_id),
        "role": Role(role).value,
        "iat": issued_at,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return IssuedToken(access_token=token, expires_at=expires_at)


def decode_access_token(token: str) -> Identity:
    """
    Vérifie la signature et l'expiration d'un jeton, puis reconstruit l'Identity.

    Lève TokenExpired si le jeton est expiré, TokenInvalid pour toute autre
    anomalie (signature, format, claims manquants, rôle inconnu).
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["sub", "role", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid() from exc

    try:
        return Identity(
            subject_id=int(payload["sub"]),
            role=Role(payload["role"]),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (TypeError, ValueError) as exc:
        raise TokenInvalid() from exc
