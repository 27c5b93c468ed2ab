"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Signale au démarrage un webhook de paiement sans secret (signature non vérifiée).
- Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
"""
import os
import logging
import redis.asyncio as aioredis
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from formapro import config


def _warn_insecure_settings(logger: logging.Logger) -> None:
    if not config.PAYMENT_WEBHOOK_SECRET:
        logger.warning("PAYMENT_WEBHOOK_SECRET vide: la signature des webhooks n'est pas vérifiée (développement uniquement)")
    if not config.SUPABASE_SERVICE_KEY:
        logger.warning("SUPABASE_SERVICE_KEY manquant: commandes, webhooks et téléchargements indisponibles")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d'échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    - Les logs indiquent l'état effectif (enabled/disabled) pour observabilité.
    """
    logger = logging.getLogger("uvicorn.error")
    _warn_insecure_settings(logger)
    limiter_ready = False
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
    else:
        limiter_ready = await _init_limiter(app, logger)

    yield

    if limiter_ready:
        await FastAPILimiter.close()


async def _init_limiter(app: FastAPI, logger: logging.Logger) -> bool:
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            from fakeredis.aioredis import FakeRedis  # tests only
            r = FakeRedis(decode_responses=True)
        else:
            r = aioredis.from_url(config.RATE_LIMIT_REDIS_URL, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
        return True
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)
    return False
