from fastapi import FastAPI
from formapro.config import SUPABASE_URL, COOKIE_SECURE

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)

        # En-têtes de sécurité
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")

        # CSP: API JSON + Swagger (/docs)
        swagger_cdns = ["https://cdn.jsdelivr.net", "https://fastapi.tiangolo.com"]
        csp_connect = ["'self'"]
        if SUPABASE_URL:
            csp_connect.append(SUPABASE_URL)
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            f"img-src 'self' data: {' '.join(swagger_cdns)}; "
            f"style-src 'self' 'unsafe-inline' {swagger_cdns[0]}; "
            f"script-src 'self' 'unsafe-inline' {swagger_cdns[0]}; "
            f"connect-src {' '.join(csp_connect)}"
        )
        return response
