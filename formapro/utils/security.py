from fastapi import Request, HTTPException, Depends
from typing import Dict, Any
import logging

from formapro.profiles import repository as profiles_repository

logger = logging.getLogger(__name__)

def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return ""

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l'utilisateur depuis supabase.auth.get_user(access_token)."""
    from formapro.infra.supabase_client import get_supabase
    res = get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")
    try:
        user = get_user_from_access_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    user["token"] = token
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """
    Autorisation admin vérifiée côté serveur à chaque appel:
    le rôle est relu dans la table profiles, jamais déduit des métadonnées du token.
    """
    try:
        profile = profiles_repository.get_profile(user["id"])
    except Exception:
        logger.exception("security.require_admin: lecture du profil impossible id=%s", user.get("id"))
        raise HTTPException(status_code=503, detail="Profil indisponible")
    if (profile or {}).get("role") != "admin":
        raise HTTPException(status_code=403, detail="Accès interdit")
    return {**user, "role": "admin"}
