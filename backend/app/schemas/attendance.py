"""
Schémas Pydantic pour le rapport des présences (GET /api/attendances/report).
Les captures base64 ne sont pas renvoyées dans le rapport.
"""

from datetime import datetime
from typing import Any, Optional

from app.schemas.common import CamelModel


class AttendanceReportRow(CamelModel):
    id: int
    time: datetime
    type: Optional[str]
    record_id: Optional[str]
    group_id: Optional[str]
    device_id: int
    device_name: Optional[str]
    visitor_id: Optional[int]   # None = personne inconnue au passage
    visitor_name: Optional[str]
    extra: Optional[Any] = None
    created_at: Optional[datetime] = None
