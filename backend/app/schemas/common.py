"""
Schémas communs : base camelCase et enveloppes de réponse de l'API d'administration.

Enveloppe d'administration : {success, data?, error?}
Enveloppe paginée          : {success, data, page, limit, total}
(L'enveloppe du protocole terminal est définie séparément dans device_protocol.py.)
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base des schémas exposés : champs snake_case côté Python, camelCase sur le réseau."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None


class PageResponse(BaseModel, Generic[T]):
    success: bool = True
    data: List[T]
    page: int
    limit: int
    total: int


class DeletedResponse(CamelModel):
    id: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
