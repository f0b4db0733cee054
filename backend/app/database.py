"""
Configuration de la connexion à la base de données.
Le moteur est créé au chargement du module, les tables éventuellement
créées au démarrage (init_db) et le pool libéré à l'arrêt (close_db).
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : fournit une session BDD et la ferme après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Crée les tables manquantes (DB_AUTO_CREATE ou script de seed)."""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Tables vérifiées sur %s", engine.url.render_as_string(hide_password=True))


def close_db() -> None:
    """Ferme toutes les connexions du pool (appelé à l'arrêt de l'API)."""
    engine.dispose()
    logger.info("Pool de connexions fermé.")
