"""
Statistiques agrégées pour le tableau de bord d'administration.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.attendance import Attendance
from app.models.device import Device
from app.models.user import User
from app.models.visitor import Visitor
from app.schemas.stats import DeviceUsage, MonthlyCount, RoleCount

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def visitors_per_month(db: Session, year: Optional[int] = None) -> List[MonthlyCount]:
    """Nombre de visiteurs créés pour chaque mois de l'année (année courante par défaut)."""
    year = year or date.today().year
    data = []
    for month in range(1, 13):
        start = datetime(year, month, 1)
        end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        count = db.execute(
            select(func.count())
            .select_from(Visitor)
            .where(Visitor.created_at >= start, Visitor.created_at < end)
        ).scalar() or 0
        data.append(MonthlyCount(month=MONTH_LABELS[month - 1], total=count))
    return data


def device_usage(db: Session) -> List[DeviceUsage]:
    """Nombre de présences par terminal, triées par ID de terminal."""
    rows = db.execute(
        select(Attendance.device_id, Device.name, func.count(Attendance.id))
        .outerjoin(Device, Device.id == Attendance.device_id)
        .group_by(Attendance.device_id, Device.name)
        .order_by(Attendance.device_id)
    ).all()
    return [
        DeviceUsage(device_id=device_id, device=name or f"Device {device_id}", total=total)
        for device_id, name, total in rows
    ]


def users_per_role(db: Session) -> List[RoleCount]:
    rows = db.execute(
        select(User.role, func.count(User.id)).group_by(User.role)
    ).all()
    return [RoleCount(role=role, total=total) for role, total in rows]
