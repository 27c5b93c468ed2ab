"""
Lecture et authentification d'un webhook de paiement.
- Lit le corps brut + en-tête X-Formapro-Signature
- Valide la signature (PAYMENT_WEBHOOK_SECRET) puis parse le JSON
Sans secret configuré, la vérification est désactivée (développement uniquement).
"""
import json
import logging
from typing import Any, Dict
from fastapi import Request

from formapro import config
from formapro.payments.signature import SIGNATURE_HEADER, verify_signature
from formapro.utils.errors import ValidationError

logger = logging.getLogger(__name__)


async def parse_event(request: Request) -> Dict[str, Any]:
    payload = await request.body()
    if config.PAYMENT_WEBHOOK_SECRET:
        verify_signature(
            payload,
            request.headers.get(SIGNATURE_HEADER),
            config.PAYMENT_WEBHOOK_SECRET,
            tolerance=config.WEBHOOK_TOLERANCE_SECONDS,
        )
    try:
        return json.loads(payload or b"{}")
    except ValueError:
        raise ValidationError("Données de webhook invalides")
