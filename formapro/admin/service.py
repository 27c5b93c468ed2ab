# module formapro.admin.service
"""Revue manuelle des commandes et statistiques du back-office.

validate / reject ne s'appliquent qu'à une commande « pending » et sont définitifs:
l'écriture est conditionnée par le statut courant (voir orders.repository.transition_status).
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from formapro.admin import repository as admin_repository
from formapro.orders import repository as orders_repository
from formapro.orders import service as orders_service
from formapro.orders.models import Order, OrderStatus
from formapro.utils.errors import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)

REVENUE_STATUSES = (OrderStatus.VALIDATED, OrderStatus.COMPLETED)


def parse_status_filter(status: Optional[str]) -> Optional[OrderStatus]:
    """'all' ou vide -> pas de filtre; sinon un statut connu (400 sinon)."""
    value = (status or "all").strip().lower()
    if value == "all":
        return None
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Statut inconnu: {status}")


def list_orders(status: Optional[str] = "pending") -> List[Order]:
    return orders_service.list_orders(parse_status_filter(status))


def _apply_decision(order_id: str, target: OrderStatus, extra: Dict[str, Any]) -> Order:
    row = orders_repository.transition_status(order_id, target, extra)
    if row is None:
        current = orders_repository.get_order(order_id)
        if not current:
            raise NotFound("Commande introuvable")
        raise InvalidTransition(f"Commande déjà au statut {current.get('statut')}")
    return Order.model_validate(row)


def validate_order(order_id: str, admin_id: str) -> Order:
    order = _apply_decision(order_id, OrderStatus.VALIDATED, {
        "validated_at": datetime.now(timezone.utc).isoformat(),
        "validated_by": admin_id,
    })
    logger.info("admin.validate_order id=%s admin_id=%s", order_id, admin_id)
    return order


def reject_order(order_id: str, admin_id: str, reason: str) -> Order:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Motif de rejet requis")
    order = _apply_decision(order_id, OrderStatus.REJECTED, {
        "rejection_reason": reason,
        "validated_by": admin_id,
    })
    logger.info("admin.reject_order id=%s admin_id=%s", order_id, admin_id)
    return order


def get_stats() -> Dict[str, Any]:
    counts = {s.value: 0 for s in OrderStatus}
    revenue = 0
    for row in orders_repository.list_order_totals():
        statut = row.get("statut")
        if statut in counts:
            counts[statut] += 1
        if statut in {s.value for s in REVENUE_STATUSES}:
            revenue += int(row.get("montant_total") or 0)
    return {
        "orders": counts,
        "orders_total": sum(counts.values()),
        "revenue": revenue,
        "formations_total": admin_repository.count_formations(),
        "formations_active": admin_repository.count_formations("active"),
    }
