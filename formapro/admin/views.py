# module formapro.admin.views
"""API JSON du back-office.
Chaque route dépend de require_admin: le rôle est relu dans 'profiles' à chaque appel.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query

from formapro.utils.security import require_admin
from formapro.admin import service as admin_service
from formapro.catalog import service as catalog_service
from formapro.catalog.models import FormationCreate, FormationUpdate
from formapro.orders.models import RejectRequest

router = APIRouter(prefix="/admin/api", tags=["Admin"])


@router.get("/stats")
def admin_stats(user: Dict[str, Any] = Depends(require_admin)):
    return admin_service.get_stats()

# Commandes
@router.get("/orders")
def admin_list_orders(status: Optional[str] = Query(default="pending"), user: Dict[str, Any] = Depends(require_admin)):
    return {"items": [o.to_public() for o in admin_service.list_orders(status)]}

@router.post("/orders/{order_id}/validate")
def admin_validate_order(order_id: str, user: Dict[str, Any] = Depends(require_admin)):
    order = admin_service.validate_order(order_id, user["id"])
    return {"success": True, "order": order.to_public()}

@router.post("/orders/{order_id}/reject")
def admin_reject_order(order_id: str, body: RejectRequest, user: Dict[str, Any] = Depends(require_admin)):
    order = admin_service.reject_order(order_id, user["id"], body.reason)
    return {"success": True, "order": order.to_public()}

# Formations (CRUD)
@router.get("/formations")
def admin_list_formations(user: Dict[str, Any] = Depends(require_admin)):
    return {"items": [f.model_dump(mode="json") for f in catalog_service.list_all_formations()]}

@router.post("/formations", status_code=201)
def admin_create_formation(body: FormationCreate, user: Dict[str, Any] = Depends(require_admin)):
    return catalog_service.create_formation(body).model_dump(mode="json")

@router.patch("/formations/{formation_id}")
def admin_update_formation(formation_id: str, body: FormationUpdate, user: Dict[str, Any] = Depends(require_admin)):
    return catalog_service.update_formation(formation_id, body).model_dump(mode="json")

@router.delete("/formations/{formation_id}")
def admin_delete_formation(formation_id: str, user: Dict[str, Any] = Depends(require_admin)):
    catalog_service.delete_formation(formation_id)
    return {"success": True}
