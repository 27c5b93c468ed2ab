"""Cas d'usage du catalogue: consultation publique et CRUD administrateur."""
from datetime import datetime, timezone
from typing import List, Optional
import logging

from formapro.catalog import repository
from formapro.catalog.models import Formation, FormationCreate, FormationUpdate
from formapro.utils.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


def list_active_formations(category: Optional[str] = None) -> List[Formation]:
    return [Formation.model_validate(row) for row in repository.list_formations(active_only=True, category=category)]


def list_all_formations() -> List[Formation]:
    return [Formation.model_validate(row) for row in repository.list_formations(active_only=False)]


def get_formation(formation_id: str) -> Formation:
    row = repository.get_formation(formation_id)
    if not row:
        raise NotFound("Formation introuvable")
    return Formation.model_validate(row)


def get_active_formation(formation_id: str) -> Formation:
    formation = get_formation(formation_id)
    if not formation.is_active:
        raise NotFound("Formation introuvable")
    return formation


def create_formation(payload: FormationCreate) -> Formation:
    data = payload.model_dump(mode="json")
    data["sales_count"] = 0
    row = repository.create_formation(data)
    logger.info("catalog.create_formation id=%s title=%s", row.get("id"), row.get("title"))
    return Formation.model_validate(row)


def update_formation(formation_id: str, payload: FormationUpdate) -> Formation:
    data = payload.model_dump(mode="json", exclude_none=True)
    if not data:
        raise ValidationError("Aucune modification fournie")
    data["updated_at"] = datetime.now(timezone.utc).isoformat()
    row = repository.update_formation(formation_id, data)
    if not row:
        raise NotFound("Formation introuvable")
    return Formation.model_validate(row)


def delete_formation(formation_id: str) -> None:
    if not repository.delete_formation(formation_id):
        raise NotFound("Formation introuvable")
    logger.info("catalog.delete_formation id=%s", formation_id)


def record_sale(formation_ids: List[str]) -> None:
    """Incrémente les compteurs de ventes (best-effort: une erreur est journalisée, jamais propagée)."""
    for formation_id in formation_ids:
        try:
            if not repository.increment_sales_count(formation_id):
                logger.warning("catalog.record_sale: compteur non incrémenté id=%s", formation_id)
        except Exception:
            logger.exception("catalog.record_sale failed id=%s", formation_id)
