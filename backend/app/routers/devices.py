"""
Router pour les terminaux (administration). Réservé au SUPERUSER et à l'ADMIN.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.authorization import get_current_identity, require_roles
from app.database import get_db
from app.models.user import Role
from app.schemas.common import ApiResponse, DeletedResponse, PageResponse
from app.schemas.device import DeviceCreate, DeviceResponse, DeviceUpdate
from app.services import device_service

router = APIRouter(
    prefix="/api/devices",
    tags=["Terminaux"],
    dependencies=[Depends(get_current_identity), Depends(require_roles(Role.SUPERUSER, Role.ADMIN))],
)


@router.get("", response_model=PageResponse[DeviceResponse], summary="Lister les terminaux")
def list_devices(
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Liste paginée, du plus récent au plus ancien ; `search` filtre sur le nom."""
    devices, total = device_service.list_devices(db, search, page, limit)
    return PageResponse[DeviceResponse](
        data=[DeviceResponse.model_validate(item) for item in devices],
        page=page,
        limit=limit,
        total=total,
    )


@router.get("/{device_id}", response_model=ApiResponse[DeviceResponse], summary="Détail d'un terminal")
def get_device(device_id: int, db: Session = Depends(get_db)):
    device = device_service.get_device(db, device_id)
    return ApiResponse[DeviceResponse](data=DeviceResponse.model_validate(device))


@router.post("", response_model=ApiResponse[DeviceResponse], status_code=201, summary="Enregistrer un terminal")
def create_device(data: DeviceCreate, db: Session = Depends(get_db)):
    """
    Enregistre un terminal. Sans deviceKey fournie, une clé aléatoire est générée
    et renvoyée une fois pour être configurée sur le terminal.
    Retourne 409 si la deviceKey est déjà utilisée.
    """
    device = device_service.create_device(db, data)
    return ApiResponse[DeviceResponse](data=DeviceResponse.model_validate(device))


@router.put("/{device_id}", response_model=ApiResponse[DeviceResponse], summary="Modifier un terminal")
def update_device(device_id: int, data: DeviceUpdate, db: Session = Depends(get_db)):
    device = device_service.update_device(db, device_id, data)
    return ApiResponse[DeviceResponse](data=DeviceResponse.model_validate(device))


@router.delete("/{device_id}", response_model=ApiResponse[DeletedResponse], summary="Supprimer un terminal")
def delete_device(device_id: int, db: Session = Depends(get_db)):
    device_service.delete_device(db, device_id)
    return ApiResponse[DeletedResponse](data=DeletedResponse(id=device_id))
