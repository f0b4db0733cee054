"""
Porte d'autorisation des routes d'administration.

1. get_current_identity : extrait le jeton Bearer et le vérifie (401 sinon)
2. require_roles(...)   : vérifie que le rôle appartient à la liste autorisée de la route (403 sinon)

L'authentification précède toujours le contrôle de rôle. Les routes du protocole
terminal (roster, dataUpload) n'utilisent pas cette porte : elles vérifient la deviceKey.
"""

from typing import AbstractSet, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.errors import Forbidden, Unauthenticated
from app.models.user import Role
from app.security import Identity, decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)

ALL_ROLES = frozenset(Role)


def is_role_allowed(role: Role, allowed_roles: AbstractSet[Role]) -> bool:
    """Fonction pure : True si le rôle fait partie de la liste autorisée."""
    return role in allowed_roles


def authorize_role(identity: Identity, allowed_roles: AbstractSet[Role]) -> None:
    """Lève Forbidden si le rôle de l'appelant n'est pas autorisé."""
    if not is_role_allowed(identity.role, allowed_roles):
        raise Forbidden()


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Dépendance FastAPI : authentifie l'appelant à partir du header Authorization."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return decode_access_token(credentials.credentials)


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """
    Construit la dépendance de contrôle de rôle d'une route.
    La liste autorisée est figée à la déclaration de la route.
    """
    allowed_roles = frozenset(roles)

    def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        authorize_role(identity, allowed_roles)
        return identity

    return role_checker
