"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `formapro.asgi:app`.
- Toute la configuration FastAPI est centralisée dans formapro.app_setup.factory.
"""

from formapro.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "formapro.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
