"""
Router pour les visiteurs (administration).
Lecture par tous les rôles, écriture par SUPERUSER et ADMIN, suppression par SUPERUSER.
Les endpoints terminal getPersonList / getPersonInfo sont dans device_protocol.py.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.authorization import ALL_ROLES, get_current_identity, require_roles
from app.database import get_db
from app.models.user import Role
from app.schemas.common import ApiResponse, DeletedResponse, PageResponse
from app.schemas.visitor import VisitorCreate, VisitorResponse, VisitorUpdate
from app.services import visitor_service

router = APIRouter(
    prefix="/api/visitors",
    tags=["Visiteurs"],
    dependencies=[Depends(get_current_identity)],
)

can_read = require_roles(*ALL_ROLES)
can_write = require_roles(Role.SUPERUSER, Role.ADMIN)
can_delete = require_roles(Role.SUPERUSER)


@router.get("", response_model=PageResponse[VisitorResponse], summary="Lister les visiteurs",
            dependencies=[Depends(can_read)])
def list_visitors(
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    visitors, total = visitor_service.list_visitors(db, search, page, limit)
    return PageResponse[VisitorResponse](
        data=[VisitorResponse.model_validate(item) for item in visitors],
        page=page,
        limit=limit,
        total=total,
    )


@router.get("/{visitor_id}", response_model=ApiResponse[VisitorResponse], summary="Détail d'un visiteur",
            dependencies=[Depends(can_read)])
def get_visitor(visitor_id: int, db: Session = Depends(get_db)):
    visitor = visitor_service.get_visitor(db, visitor_id)
    return ApiResponse[VisitorResponse](data=VisitorResponse.model_validate(visitor))


@router.post("", response_model=ApiResponse[VisitorResponse], status_code=201, summary="Créer un visiteur",
             dependencies=[Depends(can_write)])
def create_visitor(data: VisitorCreate, db: Session = Depends(get_db)):
    """Crée un visiteur. Retourne 409 si idcardNum est déjà utilisé."""
    visitor = visitor_service.create_visitor(db, data)
    return ApiResponse[VisitorResponse](data=VisitorResponse.model_validate(visitor))


@router.put("/{visitor_id}", response_model=ApiResponse[VisitorResponse], summary="Modifier un visiteur",
            dependencies=[Depends(can_write)])
def update_visitor(visitor_id: int, data: VisitorUpdate, db: Session = Depends(get_db)):
    visitor = visitor_service.update_visitor(db, visitor_id, data)
    return ApiResponse[VisitorResponse](data=VisitorResponse.model_validate(visitor))


@router.delete("/{visitor_id}", response_model=ApiResponse[DeletedResponse], summary="Supprimer un visiteur",
               dependencies=[Depends(can_delete)])
def delete_visitor(visitor_id: int, db: Session = Depends(get_db)):
    visitor_service.delete_visitor(db, visitor_id)
    return ApiResponse[DeletedResponse](data=DeletedResponse(id=visitor_id))
