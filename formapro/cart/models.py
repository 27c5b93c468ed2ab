"""
Panier: objet valeur pur (pas de DB, pas de HTTP).
- Sémantique d'ensemble: une formation apparaît au plus une fois, sans quantité.
- Le total est recalculé à chaque lecture.
- Sérialisation: liste JSON des articles, relue telle quelle.
"""
import json
from typing import Iterable, List, Optional
from pydantic import BaseModel, Field, TypeAdapter


class CartItem(BaseModel):
    id: str
    title: str = ""
    price: int = Field(ge=0)
    image_url: str = ""


_items_adapter = TypeAdapter(List[CartItem])


class Cart:
    def __init__(self, items: Optional[Iterable[CartItem]] = None):
        self._items: List[CartItem] = []
        for item in items or []:
            self.add(item)

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def add(self, item: CartItem) -> bool:
        """Ajoute l'article; no-op (retourne False) s'il est déjà présent."""
        if self.contains(item.id):
            return False
        self._items.append(item)
        return True

    def remove(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [i for i in self._items if i.id != item_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []

    def contains(self, item_id: str) -> bool:
        return any(i.id == item_id for i in self._items)

    def total(self) -> int:
        return sum(i.price for i in self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def to_json(self) -> str:
        return json.dumps([i.model_dump() for i in self._items])

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "Cart":
        if not raw:
            return cls()
        return cls(_items_adapter.validate_json(raw))

    def to_dict(self) -> dict:
        return {
            "items": [i.model_dump() for i in self._items],
            "total": self.total(),
            "item_count": self.item_count,
        }
