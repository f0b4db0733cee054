"""
Schémas Pydantic pour les statistiques (GET /api/stats/*).
"""

from app.models.user import Role
from app.schemas.common import CamelModel


class MonthlyCount(CamelModel):
    month: str
    total: int


class DeviceUsage(CamelModel):
    device_id: int
    device: str
    total: int


class RoleCount(CamelModel):
    role: Role
    total: int
