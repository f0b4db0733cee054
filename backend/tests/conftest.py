"""
Configuration partagée pour tous les tests.

- client    : get_db remplacé par un MagicMock (aucune connexion réelle)
- db_session / db_client : base SQLite en mémoire, pour la pagination et les scénarios de bout en bout
- auth_headers : fabrique de headers Authorization pour un rôle donné
"""

import os

# Environnement de test, à poser avant le chargement de app.config
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-visitrack-at-least-32-bytes")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import Role  # noqa: E402
from app.security import create_access_token  # noqa: E402


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Session SQLAlchemy sur une base SQLite en mémoire, schéma créé à chaque test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def db_client(db_session):
    """Client HTTP de test branché sur la base SQLite en mémoire."""
    app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Fabrique : auth_headers(Role.ADMIN) → {"Authorization": "Bearer <jeton>"}."""
    def _make(role: Role = Role.SUPERUSER, user_id: int = 1) -> dict:
        token = create_access_token(user_id, role).access_token
        return {"Authorization": f"Bearer {token}"}
    return _make
