"""
Endpoints publics du catalogue de formations.
- GET /api/v1/formations: formations actives (filtre optionnel ?category=)
- GET /api/v1/formations/{id}: détail d'une formation active
Le CRUD est exposé par le router admin.
"""
from typing import Optional
from fastapi import APIRouter
from formapro.catalog import service

router = APIRouter(prefix="/api/v1/formations", tags=["Formations API"])

@router.get("")
def list_formations(category: Optional[str] = None):
    items = service.list_active_formations(category=category)
    return {"items": [f.model_dump(mode="json", exclude={"fichier_path"}) for f in items]}

@router.get("/{formation_id}")
def get_formation(formation_id: str):
    formation = service.get_active_formation(formation_id)
    return formation.model_dump(mode="json", exclude={"fichier_path"})
