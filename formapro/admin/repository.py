# module formapro.admin.repository
"""Lectures agrégées pour le tableau de bord administrateur."""
from typing import Optional
import logging
import formapro.infra.supabase_client as supabase_client
from formapro.utils.errors import UpstreamFailure

logger = logging.getLogger(__name__)


def count_formations(status: Optional[str] = None) -> int:
    """
    Compte les formations via Supabase.
    Utilise count='exact' si disponible, sinon fallback sur len(data).
    """
    try:
        query = supabase_client.get_service_supabase().table("formations").select("id", count="exact")
        if status:
            query = query.eq("status", status)
        res = query.execute()
    except Exception:
        logger.exception("admin.repository.count_formations failed status=%s", status)
        raise UpstreamFailure("Statistiques indisponibles")
    if getattr(res, "count", None) is not None:
        return int(res.count)
    return len(res.data or [])
