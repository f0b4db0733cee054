"""
Router pour les statistiques du tableau de bord. Réservé au SUPERUSER et à l'ADMIN.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.authorization import require_roles
from app.database import get_db
from app.models.user import Role
from app.schemas.common import ApiResponse
from app.schemas.stats import DeviceUsage, MonthlyCount, RoleCount
from app.services import stats_service

router = APIRouter(
    prefix="/api/stats",
    tags=["Statistiques"],
    dependencies=[Depends(require_roles(Role.SUPERUSER, Role.ADMIN))],
)


@router.get("/visitors", response_model=ApiResponse[List[MonthlyCount]], summary="Visiteurs créés par mois")
def visitor_stats(year: Optional[int] = Query(None, ge=2000, le=2100), db: Session = Depends(get_db)):
    return ApiResponse[List[MonthlyCount]](data=stats_service.visitors_per_month(db, year))


@router.get("/devices", response_model=ApiResponse[List[DeviceUsage]], summary="Présences par terminal")
def device_stats(db: Session = Depends(get_db)):
    return ApiResponse[List[DeviceUsage]](data=stats_service.device_usage(db))


@router.get("/users", response_model=ApiResponse[List[RoleCount]], summary="Utilisateurs par rôle")
def user_stats(db: Session = Depends(get_db)):
    return ApiResponse[List[RoleCount]](data=stats_service.users_per_role(db))
