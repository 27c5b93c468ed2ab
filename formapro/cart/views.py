"""
Endpoints API du panier de l'utilisateur authentifié.
- GET /api/v1/cart
- POST /api/v1/cart/items {"formation_id": "..."} (idempotent)
- DELETE /api/v1/cart/items/{formation_id}
- DELETE /api/v1/cart
"""
from typing import Any, Dict
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from formapro.utils.security import require_user
from formapro.cart import service
from formapro.cart.storage import CartStorage, get_cart_storage

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemRequest(BaseModel):
    formation_id: str = Field(min_length=1)


@router.get("")
def read_cart(user: Dict[str, Any] = Depends(require_user), storage: CartStorage = Depends(get_cart_storage)):
    return service.get_cart(storage, user["id"]).to_dict()

@router.post("/items")
def add_item(body: AddItemRequest, user: Dict[str, Any] = Depends(require_user), storage: CartStorage = Depends(get_cart_storage)):
    return service.add_formation(storage, user["id"], body.formation_id).to_dict()

@router.delete("/items/{formation_id}")
def remove_item(formation_id: str, user: Dict[str, Any] = Depends(require_user), storage: CartStorage = Depends(get_cart_storage)):
    return service.remove_formation(storage, user["id"], formation_id).to_dict()

@router.delete("")
def clear(user: Dict[str, Any] = Depends(require_user), storage: CartStorage = Depends(get_cart_storage)):
    return service.clear_cart(storage, user["id"]).to_dict()
