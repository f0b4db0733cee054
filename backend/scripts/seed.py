"""
Initialise la base de développement : création des tables et d'un utilisateur par rôle.
Usage (depuis backend/, paquet installé) : python scripts/seed.py [--password MOT_DE_PASSE]

Idempotent : un email déjà présent n'est pas recréé.
"""

import argparse
import logging

from sqlalchemy import select

from app.database import SessionLocal, init_db
from app.logging_config import setup_logging
from app.models.user import Role, User
from app.security import hash_password

logger = logging.getLogger("seed")

DEFAULT_PASSWORD = "password123"

SEED_USERS = [
    ("Super Admin", "superuser@example.com", Role.SUPERUSER),
    ("Admin", "admin@example.com", Role.ADMIN),
    ("Réception", "receptionist@example.com", Role.RECEPTIONIST),
]


def seed_users(password: str) -> int:
    """Crée les comptes de démonstration manquants. Retourne le nombre de comptes créés."""
    db = SessionLocal()
    created = 0
    try:
        for name, email, role in SEED_USERS:
            exists = db.execute(select(User.id).where(User.email == email)).scalar()
            if exists:
                logger.info("Déjà présent : %s", email)
                continue
            db.add(User(name=name, email=email, password_hash=hash_password(password), role=role))
            created += 1
            logger.info("Créé : %s (%s)", email, role.value)
        db.commit()
    finally:
        db.close()
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed de la base VisiTrack (développement).")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Mot de passe des comptes créés")
    args = parser.parse_args()

    setup_logging()
    init_db()
    created = seed_users(args.password)
    logger.info("Seed terminé : %d utilisateur(s) créé(s).", created)


if __name__ == "__main__":
    main()
