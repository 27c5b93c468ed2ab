"""Cas d'usage du panier: lecture, ajout (prix relu dans le catalogue), retrait, vidage."""
from formapro.cart.models import Cart, CartItem
from formapro.cart.storage import CartStorage
from formapro.catalog import service as catalog_service


def get_cart(storage: CartStorage, owner_id: str) -> Cart:
    return storage.load(owner_id)


def add_formation(storage: CartStorage, owner_id: str, formation_id: str) -> Cart:
    formation = catalog_service.get_active_formation(formation_id)
    cart = storage.load(owner_id)
    if cart.add(CartItem(id=formation.id, title=formation.title, price=formation.price, image_url=formation.image_url)):
        storage.save(owner_id, cart)
    return cart


def remove_formation(storage: CartStorage, owner_id: str, formation_id: str) -> Cart:
    cart = storage.load(owner_id)
    if cart.remove(formation_id):
        storage.save(owner_id, cart)
    return cart


def clear_cart(storage: CartStorage, owner_id: str) -> Cart:
    cart = storage.load(owner_id)
    cart.clear()
    storage.save(owner_id, cart)
    return cart
