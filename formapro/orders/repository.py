"""
Accès aux données des commandes (tables orders + order_items).
Écritures via service-role; toute erreur PostgREST/réseau est journalisée puis
remontée en UpstreamFailure (pas de retry automatique: l'appelant réessaie).
"""
from typing import Any, Dict, List, Optional
import logging
import formapro.infra.supabase_client as supabase_client
from formapro.orders.models import OrderStatus, sources_for
from formapro.utils.errors import UpstreamFailure

logger = logging.getLogger(__name__)

ORDER_ITEMS_SELECT = "id, order_id, formation_id, title, prix, drive_link"

# module formapro.orders.repository
def insert_order(header: Dict[str, Any]) -> dict:
    try:
        res = supabase_client.get_service_supabase().table("orders").insert(header).execute()
    except Exception:
        logger.exception("orders.repository.insert_order failed user_id=%s", header.get("user_id"))
        raise UpstreamFailure("Création de la commande impossible")
    rows = getattr(res, "data", None) or []
    if not rows:
        raise UpstreamFailure("Création de la commande impossible")
    return rows[0]

def insert_order_items(items: List[Dict[str, Any]]) -> List[dict]:
    try:
        res = supabase_client.get_service_supabase().table("order_items").insert(items).execute()
    except Exception:
        logger.exception("orders.repository.insert_order_items failed count=%s", len(items))
        raise UpstreamFailure("Création des lignes de commande impossible")
    rows = getattr(res, "data", None) or []
    if len(rows) != len(items):
        raise UpstreamFailure("Création des lignes de commande incomplète")
    return rows

def delete_order(order_id: str) -> None:
    """Suppression de compensation (lignes d'abord, puis en-tête)."""
    client = supabase_client.get_service_supabase()
    client.table("order_items").delete().eq("order_id", order_id).execute()
    client.table("orders").delete().eq("id", order_id).execute()

def get_order(order_id: str) -> Optional[dict]:
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select("*")
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        raise UpstreamFailure("Lecture de la commande impossible")
    return getattr(res, "data", None) or None

def list_order_items(order_id: str) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("order_items")
            .select(ORDER_ITEMS_SELECT)
            .eq("order_id", order_id)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.list_order_items failed order_id=%s", order_id)
        raise UpstreamFailure("Lecture des lignes de commande impossible")
    return res.data or []

def list_user_orders(user_id: str, limit: int = 50) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(f"*, order_items({ORDER_ITEMS_SELECT})")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.list_user_orders failed user_id=%s", user_id)
        raise UpstreamFailure("Lecture des commandes impossible")
    return res.data or []

def list_orders(status: Optional[str] = None, limit: int = 100) -> List[dict]:
    """Commandes pour l'admin, lignes incluses, plus récentes d'abord."""
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(f"*, order_items({ORDER_ITEMS_SELECT})")
        )
        if status:
            query = query.eq("statut", status)
        res = query.order("created_at", desc=True).limit(limit).execute()
    except Exception:
        logger.exception("orders.repository.list_orders failed status=%s", status)
        raise UpstreamFailure("Lecture des commandes impossible")
    return res.data or []

def list_order_totals() -> List[dict]:
    """Projection (statut, montant_total) de toutes les commandes, pour les statistiques."""
    try:
        res = supabase_client.get_service_supabase().table("orders").select("statut, montant_total").execute()
    except Exception:
        logger.exception("orders.repository.list_order_totals failed")
        raise UpstreamFailure("Lecture des commandes impossible")
    return res.data or []

def transition_status(
    order_id: str,
    target: OrderStatus,
    extra: Optional[Dict[str, Any]] = None,
    reference: Optional[str] = None,
) -> Optional[dict]:
    """
    Écriture conditionnelle (compare-and-swap) du statut:
    UPDATE orders SET statut=target WHERE id=... AND statut IN (sources autorisées)
    [AND reference_paiement=reference].
    Retourne la ligne mise à jour, ou None si aucune ligne ne correspondait
    (transition illégale, course perdue ou référence différente).
    """
    data: Dict[str, Any] = {"statut": target.value, **(extra or {})}
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("orders")
            .update(data)
            .eq("id", order_id)
            .in_("statut", sources_for(target))
        )
        if reference is not None:
            query = query.eq("reference_paiement", reference)
        res = query.execute()
    except Exception:
        logger.exception("orders.repository.transition_status failed id=%s target=%s", order_id, target.value)
        raise UpstreamFailure("Mise à jour de la commande impossible")
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def claim_for_payment(order_id: str, claim: str) -> Optional[dict]:
    """
    Réserve l'initiation du paiement pour une seule requête:
    UPDATE orders SET reference_paiement=claim
    WHERE id=... AND statut='pending' AND reference_paiement IS NULL.
    None si la commande n'est plus pending ou si une autre initiation est en cours.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .update({"reference_paiement": claim})
            .eq("id", order_id)
            .eq("statut", OrderStatus.PENDING.value)
            .is_("reference_paiement", "null")
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.claim_for_payment failed id=%s", order_id)
        raise UpstreamFailure("Mise à jour de la commande impossible")
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def release_payment_claim(order_id: str, claim: str) -> bool:
    """Rend la commande à nouveau initiable (reference_paiement=NULL) si le jeton est toujours en place."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .update({"reference_paiement": None})
            .eq("id", order_id)
            .eq("statut", OrderStatus.PENDING.value)
            .eq("reference_paiement", claim)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.release_payment_claim failed id=%s", order_id)
        raise UpstreamFailure("Mise à jour de la commande impossible")
    return bool(getattr(res, "data", None))
