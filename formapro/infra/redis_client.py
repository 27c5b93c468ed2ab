"""
Client Redis partagé (synchrone) pour le stockage des paniers.
- CART_REDIS_URL: URL de connexion (par défaut redis://127.0.0.1:6379/1)
- USE_FAKE_REDIS_FOR_TESTS=1: bascule sur fakeredis (tests uniquement)
"""
import os
from typing import Optional
import redis
from formapro.config import CART_REDIS_URL

_redis: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    global _redis
    if _redis is None:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            import fakeredis
            _redis = fakeredis.FakeRedis(decode_responses=True)
        else:
            _redis = redis.from_url(CART_REDIS_URL, encoding="utf-8", decode_responses=True)
    return _redis

def reset_redis() -> None:
    """Oublie l'instance courante (utile entre deux tests)."""
    global _redis
    _redis = None
