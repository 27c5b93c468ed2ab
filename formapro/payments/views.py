import logging
from typing import Any, Dict

from fastapi import APIRouter, Request, Depends

from formapro.utils.security import require_user
from formapro.utils.rate_limit import optional_rate_limit
from formapro.payments import service as payments_service
from formapro.payments.models import InitiatePaymentRequest
from formapro.payments.webhook import parse_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module formapro.payments.views
@router.post("/initiate", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def initiate_payment(body: InitiatePaymentRequest, user: Dict[str, Any] = Depends(require_user)):
    """
    (Re)lance le paiement Mobile Money d'une commande « pending » de l'utilisateur.
    - Entrée JSON: {order_id, amount, payment_method, phone}
    - Réponse: {success, reference, message}
    - Erreurs: 400 (paramètres), 403 (commande d'un tiers), 404 (commande inconnue), 409 (statut)
    """
    result = payments_service.initiate_payment(
        order_id=body.order_id,
        amount=body.amount,
        payment_method=body.payment_method,
        phone=body.phone,
        user_id=user["id"],
    )
    return {"success": True, "reference": result["reference"], "message": "Paiement initié avec succès"}

@router.post("/webhook", include_in_schema=False)
async def payment_webhook(request: Request):
    """
    Webhook de la passerelle: {reference, status, order_id}.
    - Signature: X-Formapro-Signature (HMAC-SHA256, horodatée)
    - Réponses: 200 {success, message}; 400 données/signature invalides;
      404 référence inconnue; 500 erreur du store
    """
    event = await parse_event(request)
    payload = payments_service.parse_webhook_payload(event)
    return payments_service.handle_webhook(payload)
