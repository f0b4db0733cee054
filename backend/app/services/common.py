"""
Helpers partagés par les services CRUD : recherche par nom paginée et lecture par ID.
"""

from typing import List, Tuple, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.errors import NotFoundError

M = TypeVar("M")


def paginate_by_name(
    db: Session,
    model: Type[M],
    search: str = "",
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[M], int]:
    """
    Liste paginée d'une entité, du plus récent au plus ancien.
    `search` filtre sur le nom (contient, insensible à la casse).
    Retourne (éléments de la page, total filtré).
    """
    conditions = []
    if search:
        conditions.append(model.name.icontains(search, autoescape=True))

    total = db.execute(
        select(func.count()).select_from(model).where(*conditions)
    ).scalar() or 0

    items = db.execute(
        select(model)
        .where(*conditions)
        .order_by(model.created_at.desc(), model.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return list(items), total


def get_or_404(db: Session, model: Type[M], entity_id: int, label: str) -> M:
    """Retourne l'entité ou lève NotFoundError avec un message lisible."""
    entity = db.get(model, entity_id)
    if entity is None:
        raise NotFoundError(f"{label} introuvable.")
    return entity
