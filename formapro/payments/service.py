"""
Cas d'usage 'payments': initiation du paiement et ingestion du webhook.

Initiation: réservation conditionnelle de la commande pending, appel passerelle,
puis pending -> confirmed avec la référence émise. Un refus la laisse pending.
Webhook: success|completed -> completed, failed|error -> failed, autre -> ignoré.
La mise à jour exige order_id ET reference_paiement identiques à la charge utile,
et n'est appliquée que depuis un statut non terminal (compare-and-swap):
un rejeu ou un « failed » arrivé après « completed » ne régresse jamais la commande.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
import uuid
import pydantic

from formapro.catalog import service as catalog_service
from formapro.orders import repository as orders_repository
from formapro.orders.models import TERMINAL_STATUSES, Order, OrderStatus, PaymentMethod
from formapro.payments.gateways import get_gateway
from formapro.payments.models import WebhookPayload
from formapro.utils.errors import Forbidden, InvalidTransition, NotFound, UpstreamFailure, ValidationError, WebhookMismatch

logger = logging.getLogger(__name__)

CLAIM_PREFIX = "INIT-"

GATEWAY_STATUS_MAP = {
    "success": OrderStatus.COMPLETED,
    "completed": OrderStatus.COMPLETED,
    "failed": OrderStatus.FAILED,
    "error": OrderStatus.FAILED,
}


def map_gateway_status(status: str) -> Optional[OrderStatus]:
    return GATEWAY_STATUS_MAP.get((status or "").strip().lower())


def _load_order(order_id: str) -> Order:
    row = orders_repository.get_order(order_id)
    if not row:
        raise NotFound("Commande introuvable")
    return Order.model_validate(row)


def initiate_payment(
    *,
    order_id: str,
    amount: int,
    payment_method: PaymentMethod | str,
    phone: Optional[str],
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Lance le paiement auprès de la passerelle de la méthode choisie.
    - 404 si la commande n'existe pas, 403 si elle appartient à un autre utilisateur
    - 400 si le montant ou la méthode ne correspondent pas à la commande
    - 409 si la commande n'est plus « pending » ou si une initiation est déjà en cours
    - 500 si la passerelle échoue ou refuse le paiement; la commande reste « pending »
    La commande est d'abord réservée par écriture conditionnelle: une seule requête
    concurrente appelle la passerelle.
    Retour: {"reference", "status" (passerelle), "statut" (commande)}
    """
    gateway = get_gateway(payment_method)
    order = _load_order(order_id)
    if user_id and order.user_id != user_id:
        raise Forbidden("Commande appartenant à un autre utilisateur")
    if int(amount) != order.montant_total:
        raise ValidationError("Montant différent du total de la commande")
    if gateway.name != order.methode_paiement.value:
        raise ValidationError("Méthode de paiement différente de celle de la commande")
    if order.statut != OrderStatus.PENDING:
        raise InvalidTransition(f"Commande déjà au statut {order.statut.value}")

    claim = f"{CLAIM_PREFIX}{uuid.uuid4().hex}"
    if orders_repository.claim_for_payment(order.id, claim) is None:
        raise InvalidTransition("Paiement déjà en cours pour cette commande")

    try:
        result = gateway.initiate(order.montant_total, phone or order.customer_phone, order.id)
        if map_gateway_status(result.status) == OrderStatus.FAILED:
            logger.warning("payments.initiate refusé order_id=%s method=%s status=%s", order.id, gateway.name, result.status)
            raise UpstreamFailure(f"Passerelle {gateway.name}: paiement refusé")
    except Exception:
        _release_claim(order.id, claim)
        raise

    row = orders_repository.transition_status(
        order.id,
        OrderStatus.CONFIRMED,
        {"reference_paiement": result.reference},
        reference=claim,
    )
    if row is None:
        logger.warning("payments.initiate: commande %s modifiée pendant l'initiation (ref=%s)", order.id, result.reference)
        raise InvalidTransition("La commande a changé de statut pendant le paiement")
    logger.info("payments.initiate order_id=%s method=%s reference=%s", order.id, gateway.name, result.reference)
    return {"reference": result.reference, "status": result.status, "statut": OrderStatus.CONFIRMED.value}


def _release_claim(order_id: str, claim: str) -> None:
    try:
        orders_repository.release_payment_claim(order_id, claim)
    except UpstreamFailure:
        logger.error("payments.initiate: réservation non rendue order_id=%s claim=%s", order_id, claim)


def parse_webhook_payload(data: Any) -> WebhookPayload:
    if not isinstance(data, dict):
        raise ValidationError("Données de webhook invalides")
    try:
        return WebhookPayload.model_validate(data)
    except pydantic.ValidationError:
        raise ValidationError("Données de webhook invalides")


def handle_webhook(payload: WebhookPayload) -> Dict[str, Any]:
    target = map_gateway_status(payload.status)
    if target is None:
        logger.info("payments.webhook ignored status=%s order_id=%s", payload.status, payload.order_id)
        return {"success": True, "message": "Statut ignoré"}

    extra: Dict[str, Any] = {}
    if target == OrderStatus.COMPLETED:
        extra["date_paiement"] = datetime.now(timezone.utc).isoformat()

    row = orders_repository.transition_status(payload.order_id, target, extra, reference=payload.reference)
    if row is not None:
        logger.info("payments.webhook order_id=%s statut=%s reference=%s", payload.order_id, target.value, payload.reference)
        if target == OrderStatus.COMPLETED:
            _record_sales(payload.order_id)
        return {"success": True, "message": "Webhook traité"}

    return _explain_noop(payload, target)


def _record_sales(order_id: str) -> None:
    # Statut déjà écrit: un échec ici ne doit pas faire rejouer le webhook
    try:
        items = orders_repository.list_order_items(order_id)
    except UpstreamFailure:
        logger.warning("payments.webhook: compteurs de ventes non mis à jour order_id=%s", order_id)
        return
    catalog_service.record_sale([str(i.get("formation_id")) for i in items if i.get("formation_id")])


def _explain_noop(payload: WebhookPayload, target: OrderStatus) -> Dict[str, Any]:
    """Aucune ligne mise à jour: distingue rejeu, livraison tardive, et référence inconnue."""
    existing = orders_repository.get_order(payload.order_id)
    if not existing or existing.get("reference_paiement") != payload.reference:
        logger.warning(
            "payments.webhook mismatch order_id=%s reference=%s status=%s",
            payload.order_id, payload.reference, payload.status,
        )
        raise WebhookMismatch()

    current = OrderStatus(existing.get("statut"))
    if current == target:
        logger.info("payments.webhook replay order_id=%s statut=%s", payload.order_id, current.value)
        return {"success": True, "message": "already_processed"}
    if current in TERMINAL_STATUSES:
        logger.warning(
            "payments.webhook out-of-order order_id=%s statut=%s received=%s",
            payload.order_id, current.value, target.value,
        )
        return {"success": True, "message": "Commande déjà finalisée"}
    raise InvalidTransition(f"Transition {current.value} -> {target.value} refusée")
