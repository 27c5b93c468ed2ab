# module formapro.orders.views
"""Endpoints de l'user story Achat/Commandes.
- /checkout: panier -> commande « pending » -> initiation du paiement Mobile Money.
- / : commandes de l'utilisateur connecté.
- /{order_id}: détail (propriétaire ou admin).
Sécurité:
- require_user: l'utilisateur doit être connecté.
- optional_rate_limit: limite la fréquence des checkouts.
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends

from formapro.utils.security import require_user
from formapro.utils.rate_limit import optional_rate_limit
from formapro.cart.storage import CartStorage, get_cart_storage
from formapro.orders import checkout, service
from formapro.orders.models import CheckoutRequest
from formapro.profiles import repository as profiles_repository

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_checkout(body: CheckoutRequest, user: Dict[str, Any] = Depends(require_user), storage: CartStorage = Depends(get_cart_storage)):
    """Passe la commande du panier courant.
    - Réponse: {order_id, order_number, total, reference, statut}
    - Le panier n'est vidé qu'après initiation réussie du paiement.
    """
    return checkout.checkout(storage, user, body)


@router.get("")
def api_list_my_orders(user: Dict[str, Any] = Depends(require_user)):
    return {"items": [o.to_public() for o in service.list_user_orders(user["id"])]}


@router.get("/{order_id}")
def api_get_order(order_id: str, user: Dict[str, Any] = Depends(require_user)):
    """Détail d'une commande; un tiers n'y accède que si son profil est admin (relu côté serveur)."""
    order = service.get_order(order_id)
    if order.user_id != user["id"]:
        profile = profiles_repository.get_profile(user["id"]) or {}
        service.check_access(order, user["id"], is_admin=profile.get("role") == "admin")
    return order.to_public()
