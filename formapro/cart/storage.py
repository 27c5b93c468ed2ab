"""
Ports de persistance du panier.
- RedisCartStorage: un panier par utilisateur sous la clé formapro_cart:<user_id>, sans expiration.
- MemoryCartStorage: stockage en mémoire (dev / tests).
"""
import logging
from typing import Dict, Protocol
import redis

from formapro.cart.models import Cart
from formapro.utils.errors import UpstreamFailure

logger = logging.getLogger(__name__)

CART_KEY_PREFIX = "formapro_cart"


class CartStorage(Protocol):
    def load(self, owner_id: str) -> Cart: ...
    def save(self, owner_id: str, cart: Cart) -> None: ...


class RedisCartStorage:
    def __init__(self, client: redis.Redis):
        self.client = client

    @staticmethod
    def key(owner_id: str) -> str:
        return f"{CART_KEY_PREFIX}:{owner_id}"

    def load(self, owner_id: str) -> Cart:
        try:
            raw = self.client.get(self.key(owner_id))
        except redis.RedisError:
            logger.exception("cart.storage.load failed owner=%s", owner_id)
            raise UpstreamFailure("Panier indisponible")
        return Cart.from_json(raw)

    def save(self, owner_id: str, cart: Cart) -> None:
        try:
            if cart.is_empty():
                self.client.delete(self.key(owner_id))
            else:
                self.client.set(self.key(owner_id), cart.to_json())
        except redis.RedisError:
            logger.exception("cart.storage.save failed owner=%s", owner_id)
            raise UpstreamFailure("Panier indisponible")


class MemoryCartStorage:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, owner_id: str) -> Cart:
        return Cart.from_json(self._data.get(owner_id))

    def save(self, owner_id: str, cart: Cart) -> None:
        self._data[owner_id] = cart.to_json()


def get_cart_storage() -> CartStorage:
    """Dépendance FastAPI: stockage Redis partagé."""
    from formapro.infra.redis_client import get_redis
    return RedisCartStorage(get_redis())
