"""
Modèle SQLAlchemy pour les utilisateurs de l'administration.
Le rôle est une énumération fermée : SUPERUSER, ADMIN, RECEPTIONIST.
"""

import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String, func

from app.database import Base


class Role(str, enum.Enum):
    """Rôles utilisés par la porte d'autorisation."""

    SUPERUSER = "SUPERUSER"
    ADMIN = "ADMIN"
    RECEPTIONIST = "RECEPTIONIST"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)  # bcrypt, jamais renvoyé au client
    role = Column(Enum(Role, name="user_role"), nullable=False, default=Role.RECEPTIONIST)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
