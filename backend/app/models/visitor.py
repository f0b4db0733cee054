"""
Modèle SQLAlchemy pour les visiteurs autorisés (roster poussé vers les terminaux).
"""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from app.database import Base


class Visitor(Base):
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    idcard_num = Column(String(100), unique=True, nullable=False, index=True)  # Identité externe
    img_base64 = Column(Text, nullable=True)       # Photo de référence
    type = Column(Integer, nullable=True)          # Catégorie de visiteur
    passtime = Column(String(255), nullable=True)  # Fenêtre de validité (format terminal)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
