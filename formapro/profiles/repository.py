from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging
import formapro.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module formapro.profiles.repository
def get_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Lit la ligne 'profiles' d'un utilisateur (service-role: lecture serveur du rôle).
    Retourne None si absente; propage les erreurs réseau/PostgREST.
    """
    if not user_id:
        return None
    res = (
        supabase_client.get_service_supabase()
        .table("profiles")
        .select("*")
        .eq("id", user_id)
        .maybe_single()
        .execute()
    )
    return getattr(res, "data", None) or None

def update_profile(user_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    res = (
        supabase_client.get_service_supabase()
        .table("profiles")
        .update(data)
        .eq("id", user_id)
        .execute()
    )
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def touch_last_login(user_id: str) -> None:
    try:
        (
            supabase_client.get_service_supabase()
            .table("profiles")
            .update({"last_login": datetime.now(timezone.utc).isoformat()})
            .eq("id", user_id)
            .execute()
        )
    except Exception:
        logger.exception("profiles.repository.touch_last_login failed id=%s", user_id)
