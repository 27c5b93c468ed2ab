# module formapro.orders.models
"""Contrats de données et machine à états des commandes.

Chemin paiement: pending -> confirmed -> completed, avec l'issue alternative failed.
Chemin revue manuelle (admin): pending -> validated | rejected.
Les statuts terminaux ne bougent plus: toute écriture de statut est conditionnée
par les statuts sources autorisés (voir repository.transition_status).
"""
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    FAILED = "failed"
    VALIDATED = "validated"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    MVOLA = "mvola"
    ORANGE_MONEY = "orange_money"


TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.FAILED,
    OrderStatus.VALIDATED,
    OrderStatus.REJECTED,
})

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.CONFIRMED,
        OrderStatus.COMPLETED,
        OrderStatus.FAILED,
        OrderStatus.VALIDATED,
        OrderStatus.REJECTED,
    }),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.COMPLETED, OrderStatus.FAILED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.FAILED: frozenset(),
    OrderStatus.VALIDATED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
}


def sources_for(target: OrderStatus) -> List[str]:
    """Statuts depuis lesquels `target` est atteignable (valeurs str, pour les filtres PostgREST)."""
    return sorted(s.value for s, targets in ALLOWED_TRANSITIONS.items() if target in targets)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class OrderItem(BaseModel):
    """Ligne order_items: instantané de la formation au moment de l'achat."""
    id: Optional[str] = None
    order_id: Optional[str] = None
    formation_id: str
    title: str = ""
    prix: int = Field(ge=0)
    drive_link: Optional[str] = None


class Order(BaseModel):
    id: str
    user_id: str
    order_number: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    montant_total: int = Field(ge=0)
    methode_paiement: PaymentMethod
    statut: OrderStatus = OrderStatus.PENDING
    reference_paiement: Optional[str] = None
    rejection_reason: Optional[str] = None
    validated_by: Optional[str] = None
    validated_at: Optional[str] = None
    date_paiement: Optional[str] = None
    expiration_date: Optional[str] = None
    created_at: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.statut in TERMINAL_STATUSES

    def to_public(self) -> dict:
        data = self.model_dump(mode="json")
        # Vue « formations » embarquée, reconstruite depuis les lignes normalisées
        data["formations"] = [
            {"formation_id": i.formation_id, "title": i.title, "price": i.prix, "drive_link": i.drive_link}
            for i in self.items
        ]
        return data


class CustomerInfo(BaseModel):
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    customer_address: str = ""


class CheckoutRequest(CustomerInfo):
    payment_method: PaymentMethod
    phone: Optional[str] = Field(default=None, max_length=40)


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)
