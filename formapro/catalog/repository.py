"""
Accès aux données 'formations' (catalogue).
Les lectures publiques passent par le client anon (RLS), les écritures par le service-role.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import formapro.infra.supabase_client as supabase_client
from formapro.utils.errors import UpstreamFailure

logger = logging.getLogger(__name__)

SALES_COUNT_RETRIES = 5

# module formapro.catalog.repository
def list_formations(active_only: bool = True, category: Optional[str] = None) -> List[dict]:
    try:
        query = supabase_client.get_supabase().table("formations").select("*")
        if active_only:
            query = query.eq("status", "active")
        if category:
            query = query.eq("category", category)
        res = query.order("created_at", desc=True).execute()
        return res.data or []
    except Exception:
        logger.exception("catalog.repository.list_formations failed category=%s", category)
        raise UpstreamFailure("Catalogue indisponible")

def get_formation(formation_id: str) -> Optional[dict]:
    if not formation_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("formations")
            .select("*")
            .eq("id", formation_id)
            .maybe_single()
            .execute()
        )
        return getattr(res, "data", None) or None
    except Exception:
        logger.exception("catalog.repository.get_formation failed id=%s", formation_id)
        raise UpstreamFailure("Catalogue indisponible")

def fetch_formations_by_ids(ids: Iterable[str]) -> Dict[str, dict]:
    """
    Retourne un dict {id: formation} à partir d'une liste d'IDs.
    """
    id_list = [str(i) for i in ids if i]
    if not id_list:
        return {}
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("formations")
            .select("*")
            .in_("id", id_list)
            .execute()
        )
    except Exception:
        logger.exception("catalog.repository.fetch_formations_by_ids failed ids=%s", id_list)
        raise UpstreamFailure("Catalogue indisponible")
    return {str(f.get("id")): f for f in (res.data or [])}

def create_formation(data: Dict[str, Any]) -> dict:
    try:
        res = supabase_client.get_service_supabase().table("formations").insert(data).execute()
    except Exception:
        logger.exception("catalog.repository.create_formation failed data=%s", data)
        raise UpstreamFailure("Création de la formation impossible")
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else dict(data)

def update_formation(formation_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("formations")
            .update(data)
            .eq("id", formation_id)
            .execute()
        )
    except Exception:
        logger.exception("catalog.repository.update_formation failed id=%s data=%s", formation_id, data)
        raise UpstreamFailure("Mise à jour de la formation impossible")
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def delete_formation(formation_id: str) -> bool:
    try:
        res = supabase_client.get_service_supabase().table("formations").delete().eq("id", formation_id).execute()
    except Exception:
        logger.exception("catalog.repository.delete_formation failed id=%s", formation_id)
        raise UpstreamFailure("Suppression de la formation impossible")
    return bool(getattr(res, "data", None))

def increment_sales_count(formation_id: str) -> bool:
    """
    Incrémente sales_count par compare-and-swap sur la valeur lue.
    Retourne False si la formation a disparu ou si la course est perdue trop de fois.
    """
    client = supabase_client.get_service_supabase()
    for _ in range(SALES_COUNT_RETRIES):
        res = client.table("formations").select("id, sales_count").eq("id", formation_id).maybe_single().execute()
        row = getattr(res, "data", None)
        if not row:
            return False
        current = int(row.get("sales_count") or 0)
        upd = (
            client.table("formations")
            .update({"sales_count": current + 1})
            .eq("id", formation_id)
            .eq("sales_count", current)
            .execute()
        )
        if getattr(upd, "data", None):
            return True
    return False
