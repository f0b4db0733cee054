"""
Modèle SQLAlchemy pour les présences remontées par les terminaux.

Journal append-only :
- aucune mise à jour ni suppression depuis l'API
- visitor_id NULL = personne inconnue au moment du passage (capture conservée)
- time : horodatage fourni par le terminal (epoch ms converti en UTC)
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.database import Base


class Attendance(Base):
    """Passage enregistré par un terminal (visage, carte ou combiné)."""
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    visitor_id = Column(Integer, ForeignKey("visitors.id", ondelete="SET NULL"), nullable=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False)

    group_id = Column(String(100), nullable=True)
    record_id = Column(String(100), nullable=True)   # Identifiant local au terminal
    img_base64 = Column(Text, nullable=True)         # Capture au moment du passage
    time = Column(DateTime(timezone=True), nullable=False)
    type = Column(String(50), nullable=True)         # face_0, card_0, face_and_card...
    extra = Column(JSON, nullable=True)              # Charge opaque, stockée telle quelle

    created_at = Column(DateTime, server_default=func.now())
