"""
Service d'ingestion des présences remontées par les terminaux, et rapport d'administration.

Ingestion (POST /api/attendances/dataUpload) :
- Append-only : chaque upload réussi est un INSERT, jamais une mise à jour
- Pas de déduplication sur recordId : un upload rejoué produit un doublon
- Visiteur inconnu → présence enregistrée avec visitor_id NULL (capture conservée)
- extra est stocké tel quel, sans interprétation
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.errors import InvalidParameters, MissingParameters
from app.models.attendance import Attendance
from app.models.device import Device
from app.models.visitor import Visitor
from app.schemas.attendance import AttendanceReportRow
from app.schemas.device_protocol import DataUploadRequest
from app.services.device_service import resolve_device
from app.services.visitor_service import find_by_idcard_num

logger = logging.getLogger(__name__)


def epoch_millis_to_datetime(value: Optional[str]) -> datetime:
    """Convertit un horodatage terminal (epoch en millisecondes) en datetime UTC."""
    if value is None or str(value).strip() == "":
        raise MissingParameters(["time"])
    try:
        millis = int(str(value).strip())
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as exc:
        raise InvalidParameters("time doit être un epoch en millisecondes.") from exc


def data_upload(db: Session, data: DataUploadRequest) -> Attendance:
    """
    Enregistre une présence poussée par un terminal.

    1. Identifie le terminal par deviceKey (UnknownDevice sinon, quels que soient les autres champs)
    2. Convertit time (epoch ms) en horodatage absolu
    3. Résout le visiteur par idcardNumber, sans échec s'il est inconnu
    4. Insère la présence attribuée au terminal
    """
    device = resolve_device(db, data.device_key)
    event_time = epoch_millis_to_datetime(data.time)

    visitor = find_by_idcard_num(db, data.idcard_number) if data.idcard_number else None

    attendance = Attendance(
        visitor_id=visitor.id if visitor else None,
        device_id=device.id,
        group_id=data.group_id,
        record_id=data.record_id,
        img_base64=data.img_base64,
        time=event_time,
        type=data.type,
        extra=data.extra,
    )
    db.add(attendance)
    db.commit()
    db.refresh(attendance)

    logger.info(
        "Présence reçue : terminal %s, record %s, visiteur %s",
        device.id, data.record_id, visitor.id if visitor else "inconnu",
    )
    return attendance


def get_report(
    db: Session,
    page: int = 1,
    limit: int = 20,
    device_id: Optional[int] = None,
    visitor_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Tuple[List[AttendanceReportRow], int]:
    """
    Journal des présences, du passage le plus récent au plus ancien.
    date_from / date_to sont inclusifs (journées entières, UTC).
    """
    conditions = []
    if device_id is not None:
        conditions.append(Attendance.device_id == device_id)
    if visitor_id is not None:
        conditions.append(Attendance.visitor_id == visitor_id)
    if date_from is not None:
        conditions.append(Attendance.time >= datetime.combine(date_from, time.min, tzinfo=timezone.utc))
    if date_to is not None:
        next_day = datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
        conditions.append(Attendance.time < next_day)

    total = db.execute(
        select(func.count()).select_from(Attendance).where(*conditions)
    ).scalar() or 0

    rows = db.execute(
        select(Attendance, Device.name, Visitor.name)
        .outerjoin(Device, Device.id == Attendance.device_id)
        .outerjoin(Visitor, Visitor.id == Attendance.visitor_id)
        .where(*conditions)
        .order_by(Attendance.time.desc(), Attendance.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    report = [
        AttendanceReportRow(
            id=attendance.id,
            time=attendance.time,
            type=attendance.type,
            record_id=attendance.record_id,
            group_id=attendance.group_id,
            device_id=attendance.device_id,
            device_name=device_name,
            visitor_id=attendance.visitor_id,
            visitor_name=visitor_name,
            extra=attendance.extra,
            created_at=attendance.created_at,
        )
        for attendance, device_name, visitor_name in rows
    ]
    return report, total
