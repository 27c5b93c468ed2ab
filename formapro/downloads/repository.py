"""
Accès aux données des téléchargements.
- Droit d'accès: order_items joint à orders (!inner) filtré sur l'utilisateur et le statut
- Registre 'downloads': un compteur par (user_id, formation_id), unique en base
- Liens signés: Supabase Storage (bucket STORAGE_BUCKET)
Les écritures du compteur sont conditionnées par la valeur lue (compare-and-swap).
"""
from typing import Any, Dict, List, Optional
import logging
from postgrest.exceptions import APIError
import formapro.infra.supabase_client as supabase_client
from formapro.config import STORAGE_BUCKET
from formapro.utils.errors import LinkGenerationFailed, UpstreamFailure

logger = logging.getLogger(__name__)

# module formapro.downloads.repository
def find_completed_purchase(user_id: str, formation_id: str, statuses: List[str]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("order_items")
            .select("id, order_id, formation_id, orders!inner(id, user_id, statut)")
            .eq("formation_id", formation_id)
            .eq("orders.user_id", user_id)
            .in_("orders.statut", statuses)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("downloads.repository.find_completed_purchase failed user_id=%s formation_id=%s", user_id, formation_id)
        raise UpstreamFailure("Vérification de l'achat impossible")
    rows = getattr(res, "data", None) or []
    return rows[0] if rows else None

def get_ledger(user_id: str, formation_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("downloads")
            .select("*")
            .eq("user_id", user_id)
            .eq("formation_id", formation_id)
            .maybe_single()
            .execute()
        )
    except Exception:
        logger.exception("downloads.repository.get_ledger failed user_id=%s formation_id=%s", user_id, formation_id)
        raise UpstreamFailure("Lecture du registre de téléchargements impossible")
    return getattr(res, "data", None) or None

def list_user_ledger(user_id: str) -> List[dict]:
    try:
        res = supabase_client.get_service_supabase().table("downloads").select("*").eq("user_id", user_id).execute()
    except Exception:
        logger.exception("downloads.repository.list_user_ledger failed user_id=%s", user_id)
        raise UpstreamFailure("Lecture du registre de téléchargements impossible")
    return res.data or []

def insert_ledger(row: Dict[str, Any]) -> Optional[dict]:
    """
    Crée l'entrée du registre.
    Retourne None si une requête concurrente l'a créée entre-temps (23505):
    l'appelant relit puis passe par le compare-and-swap.
    """
    try:
        res = supabase_client.get_service_supabase().table("downloads").insert(row).execute()
    except APIError as e:
        code = getattr(e, "code", None)
        if code is None and e.args and isinstance(e.args[0], dict):
            code = e.args[0].get("code")
        if code == "23505":
            return None
        logger.exception("downloads.repository.insert_ledger failed user_id=%s", row.get("user_id"))
        raise UpstreamFailure("Écriture du registre de téléchargements impossible")
    except Exception:
        logger.exception("downloads.repository.insert_ledger failed user_id=%s", row.get("user_id"))
        raise UpstreamFailure("Écriture du registre de téléchargements impossible")
    rows = getattr(res, "data", None) or []
    return rows[0] if rows else row

def cas_update_count(ledger_id: str, expected: int, new_count: int, extra: Optional[Dict[str, Any]] = None) -> bool:
    """UPDATE downloads SET download_count=new WHERE id=... AND download_count=expected."""
    data = {"download_count": new_count, **(extra or {})}
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("downloads")
            .update(data)
            .eq("id", ledger_id)
            .eq("download_count", expected)
            .execute()
        )
    except Exception:
        logger.exception("downloads.repository.cas_update_count failed id=%s", ledger_id)
        raise UpstreamFailure("Écriture du registre de téléchargements impossible")
    return bool(getattr(res, "data", None))

def create_signed_url(path: str, expires_in: int) -> str:
    try:
        res = supabase_client.get_service_supabase().storage.from_(STORAGE_BUCKET).create_signed_url(path, expires_in)
    except Exception:
        logger.exception("downloads.repository.create_signed_url failed path=%s", path)
        raise LinkGenerationFailed()
    data = res if isinstance(res, dict) else {}
    url = data.get("signedURL") or data.get("signedUrl") or data.get("signed_url")
    if not url:
        logger.error("downloads.repository.create_signed_url: réponse sans URL path=%s", path)
        raise LinkGenerationFailed()
    return url
