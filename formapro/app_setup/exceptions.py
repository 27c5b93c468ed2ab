"""
Gestionnaires d'exceptions enregistrés par la factory.
- FormaproError (erreurs métier): {"error": message} avec le code HTTP porté par l'erreur.
- RequestValidationError (corps/paramètres invalides): 400 {"error": ...}.
- HTTPException (authentification, rate limiting): {"detail": ...}, format FastAPI standard.
- Toute autre exception: journalisée puis 500 {"error": "Erreur interne"}.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from formapro.utils.errors import FormaproError

logger = logging.getLogger(__name__)

def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Paramètres manquants"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    return f"Paramètre invalide: {loc}" if loc else "Paramètres manquants"

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(FormaproError)
    async def formapro_error(request: Request, exc: FormaproError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})

    @app.exception_handler(HTTPException)
    async def http_exception(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Erreur interne"})
