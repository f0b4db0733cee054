"""
Router pour le rapport des présences (administration).
L'ingestion dataUpload des terminaux est dans device_protocol.py.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.authorization import ALL_ROLES, require_roles
from app.database import get_db
from app.schemas.attendance import AttendanceReportRow
from app.schemas.common import PageResponse
from app.services import attendance_service

router = APIRouter(prefix="/api/attendances", tags=["Présences"])


@router.get("/report", response_model=PageResponse[AttendanceReportRow], summary="Rapport des présences",
            dependencies=[Depends(require_roles(*ALL_ROLES))])
def attendance_report(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    device_id: Optional[int] = Query(None, alias="deviceId"),
    visitor_id: Optional[int] = Query(None, alias="visitorId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
):
    """
    Journal paginé des passages, du plus récent au plus ancien.
    Filtres optionnels : terminal, visiteur, période (dates incluses).
    Les captures base64 ne sont pas incluses.
    """
    rows, total = attendance_service.get_report(
        db,
        page=page,
        limit=limit,
        device_id=device_id,
        visitor_id=visitor_id,
        date_from=date_from,
        date_to=date_to,
    )
    return PageResponse[AttendanceReportRow](data=rows, page=page, limit=limit, total=total)
