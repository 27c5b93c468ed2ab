"""Couche service des commandes.
Rôles:
- Créer une commande « pending » à partir du panier (prix relus dans le catalogue).
- Garantir qu'aucune commande orpheline ne subsiste si l'insertion des lignes échoue
  (saga: suppression compensatoire de l'en-tête).
- Lire les commandes d'un utilisateur avec contrôle de propriété.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional
import logging
import secrets

from formapro.cart.models import CartItem
from formapro.catalog import repository as catalog_repository
from formapro.catalog.models import Formation
from formapro.orders import repository
from formapro.orders.models import CustomerInfo, Order, OrderItem, OrderStatus, PaymentMethod
from formapro.utils.errors import Forbidden, NotFound, UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"CMD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def build_items(cart_items: Iterable[CartItem]) -> List[OrderItem]:
    """
    Instantané des formations du panier, au prix courant du catalogue.
    Refuse un panier vide, une formation inconnue ou inactive.
    """
    ids = [i.id for i in cart_items]
    if not ids:
        raise ValidationError("Panier vide")
    formations = catalog_repository.fetch_formations_by_ids(ids)
    items: List[OrderItem] = []
    for formation_id in dict.fromkeys(ids):
        row = formations.get(formation_id)
        if not row:
            raise ValidationError(f"Formation introuvable: {formation_id}")
        formation = Formation.model_validate(row)
        if not formation.is_active:
            raise ValidationError(f"Formation indisponible: {formation.title}")
        items.append(OrderItem(formation_id=formation.id, title=formation.title, prix=formation.price))
    return items


def create_order(
    user_id: str,
    cart_items: Iterable[CartItem],
    payment_method: PaymentMethod,
    customer: Optional[CustomerInfo] = None,
) -> Order:
    items = build_items(cart_items)
    total = sum(i.prix for i in items)
    header = {
        "user_id": user_id,
        "order_number": generate_order_number(),
        "montant_total": total,
        "methode_paiement": payment_method.value,
        "statut": OrderStatus.PENDING.value,
        **(customer or CustomerInfo()).model_dump(),
    }
    row = repository.insert_order(header)
    order_id = str(row["id"])
    try:
        item_rows = repository.insert_order_items(
            [{"order_id": order_id, **i.model_dump(exclude={"id", "order_id"})} for i in items]
        )
    except UpstreamFailure:
        _compensate(order_id)
        raise
    order = Order.model_validate({**row, "items": item_rows})
    logger.info("orders.create_order id=%s number=%s total=%s items=%s", order.id, order.order_number, total, len(items))
    return order


def _compensate(order_id: str) -> None:
    try:
        repository.delete_order(order_id)
        logger.warning("orders.create_order: en-tête %s supprimé après échec des lignes", order_id)
    except Exception:
        logger.exception("orders.create_order: compensation impossible, commande orpheline id=%s", order_id)


def get_order(order_id: str) -> Order:
    row = repository.get_order(order_id)
    if not row:
        raise NotFound("Commande introuvable")
    return Order.model_validate({**row, "items": repository.list_order_items(order_id)})


def check_access(order: Order, user_id: str, is_admin: bool = False) -> Order:
    if order.user_id != user_id and not is_admin:
        raise Forbidden("Commande appartenant à un autre utilisateur")
    return order


def _from_row(row: dict) -> Order:
    data = dict(row)
    data["items"] = data.pop("order_items", None) or []
    return Order.model_validate(data)


def list_user_orders(user_id: str) -> List[Order]:
    return [_from_row(r) for r in repository.list_user_orders(user_id)]


def list_orders(status: Optional[OrderStatus] = None, limit: int = 100) -> List[Order]:
    return [_from_row(r) for r in repository.list_orders(status.value if status else None, limit=limit)]
