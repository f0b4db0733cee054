"""
Service métier pour les visiteurs (administration).
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.visitor import Visitor
from app.schemas.visitor import VisitorCreate, VisitorUpdate
from app.services.common import get_or_404, paginate_by_name

logger = logging.getLogger(__name__)


def find_by_idcard_num(db: Session, idcard_num: str) -> Optional[Visitor]:
    """Retourne le visiteur portant cette identité externe, ou None."""
    return db.execute(
        select(Visitor).where(Visitor.idcard_num == idcard_num)
    ).scalar()


def list_visitors(db: Session, search: str = "", page: int = 1, limit: int = 10) -> Tuple[List[Visitor], int]:
    return paginate_by_name(db, Visitor, search, page, limit)


def get_visitor(db: Session, visitor_id: int) -> Visitor:
    return get_or_404(db, Visitor, visitor_id, "Visiteur")


def create_visitor(db: Session, data: VisitorCreate) -> Visitor:
    visitor = Visitor(**data.model_dump())
    db.add(visitor)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(visitor)

    logger.info("Visiteur créé : %s", visitor.id)
    return visitor


def update_visitor(db: Session, visitor_id: int, data: VisitorUpdate) -> Visitor:
    """
    Met à jour les champs fournis. Toute modification de name, imgBase64, type ou passtime
    change l'empreinte renvoyée aux terminaux au prochain getPersonList.
    """
    visitor = get_or_404(db, Visitor, visitor_id, "Visiteur")

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(visitor, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(visitor)
    return visitor


def delete_visitor(db: Session, visitor_id: int) -> None:
    """Supprime un visiteur ; ses présences passées sont conservées avec visitor_id NULL."""
    visitor = get_or_404(db, Visitor, visitor_id, "Visiteur")
    db.delete(visitor)
    db.commit()
    logger.info("Visiteur supprimé : %s", visitor_id)
