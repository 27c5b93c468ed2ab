"""
Registre central des routers.
- API v1: formations, panier, commandes, paiements, téléchargements, profil
- Admin: admin_router (/admin/api)
- Health: health_router
"""
from fastapi import FastAPI
from formapro.catalog import views as catalog_views
from formapro.cart import views as cart_views
from formapro.orders import views as orders_views
from formapro.payments import views as payments_views
from formapro.downloads import views as downloads_views
from formapro.profiles import views as profiles_views
from formapro.admin.views import router as admin_router
from formapro.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    L'ordre n'a pas d'impact sauf conflits de chemins (évités par préfixes).
    """
    # API v1
    app.include_router(catalog_views.router)
    app.include_router(cart_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    app.include_router(downloads_views.router)
    app.include_router(profiles_views.router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
