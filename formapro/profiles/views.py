"""
Endpoints API du profil de l'utilisateur connecté.
- GET /api/v1/profile: profil courant (met à jour last_login, best-effort)
- PATCH /api/v1/profile: nom, téléphone, adresse (jamais le rôle)
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends
from formapro.utils.security import require_user
from formapro.profiles import repository, service
from formapro.profiles.models import ProfileUpdate

router = APIRouter(prefix="/api/v1/profile", tags=["Profile API"])

@router.get("")
def get_my_profile(user: Dict[str, Any] = Depends(require_user)):
    profile = service.load_profile(user["id"])
    repository.touch_last_login(user["id"])
    return profile.model_dump(mode="json")

@router.patch("")
def patch_my_profile(changes: ProfileUpdate, user: Dict[str, Any] = Depends(require_user)):
    return service.update_own_profile(user["id"], changes).model_dump(mode="json")
