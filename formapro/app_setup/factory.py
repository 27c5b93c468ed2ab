"""
Factory d'application pour les entrypoints (formapro.app, formapro.asgi, tests).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware
from .security import register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares de base, en-têtes de sécurité, no-cache
      - gestionnaires d'exceptions (erreurs métier -> {"error": ...})
      - tous les routers (API v1, admin, health)
    """
    app = FastAPI(title="FormaPro API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
