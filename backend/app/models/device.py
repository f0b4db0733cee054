"""
Modèle SQLAlchemy pour les terminaux de contrôle d'accès.
La device_key est le seul facteur d'authentification du protocole de synchronisation.
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.database import Base


class Device(Base):
    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    device_key = Column(String(255), unique=True, nullable=False, index=True)
    group_id = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
