"""
Orchestration du checkout: panier -> commande -> paiement -> vidage du panier.
Si l'initiation du paiement échoue, la commande reste « pending » et le panier
est conservé: le client peut relancer le paiement via /api/v1/payments/initiate.
"""
from typing import Any, Dict
import logging

from formapro.cart.storage import CartStorage
from formapro.orders import service as orders_service
from formapro.orders.models import CheckoutRequest, CustomerInfo
from formapro.payments import service as payments_service
from formapro.profiles import repository as profiles_repository
from formapro.utils.errors import ValidationError

logger = logging.getLogger(__name__)


def _customer_info(user: Dict[str, Any], body: CheckoutRequest) -> CustomerInfo:
    profile = profiles_repository.get_profile(user["id"]) or {}
    return CustomerInfo(
        customer_name=body.customer_name or profile.get("name") or "",
        customer_email=body.customer_email or user.get("email") or "",
        customer_phone=body.customer_phone or body.phone or profile.get("phone") or "",
        customer_address=body.customer_address or profile.get("address") or "",
    )


def checkout(storage: CartStorage, user: Dict[str, Any], body: CheckoutRequest) -> Dict[str, Any]:
    user_id = user["id"]
    cart = storage.load(user_id)
    if cart.is_empty():
        raise ValidationError("Panier vide")

    customer = _customer_info(user, body)
    if not customer.customer_phone:
        raise ValidationError("Numéro de téléphone requis pour le paiement")

    order = orders_service.create_order(user_id, cart.items, body.payment_method, customer)
    payment = payments_service.initiate_payment(
        order_id=order.id,
        amount=order.montant_total,
        payment_method=body.payment_method,
        phone=customer.customer_phone,
        user_id=user_id,
    )
    cart.clear()
    storage.save(user_id, cart)
    logger.info("orders.checkout user_id=%s order_id=%s reference=%s", user_id, order.id, payment["reference"])
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "total": order.montant_total,
        "reference": payment["reference"],
        "statut": payment["statut"],
    }
