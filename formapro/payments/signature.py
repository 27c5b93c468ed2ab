"""
Signature des webhooks de paiement.
En-tête attendu: X-Formapro-Signature: t=<unix>,v1=<hex>
où v1 = HMAC-SHA256(PAYMENT_WEBHOOK_SECRET, "<t>.<corps brut>").
Un horodatage hors tolérance est rejeté (protection contre le rejeu).
"""
import hashlib
import hmac
import time
from typing import Dict, Optional

from formapro.utils.errors import InvalidSignature

SIGNATURE_HEADER = "X-Formapro-Signature"


def compute_signature(secret: str, timestamp: int, payload: bytes) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def _parse_header(header: str) -> Dict[str, str]:
    parts: Dict[str, str] = {}
    for chunk in (header or "").split(","):
        key, sep, value = chunk.strip().partition("=")
        if sep and key and value:
            parts[key] = value
    return parts


def verify_signature(
    payload: bytes,
    header: Optional[str],
    secret: str,
    tolerance: int = 300,
    now: Optional[float] = None,
) -> int:
    """Vérifie la signature et retourne l'horodatage signé; lève InvalidSignature sinon."""
    parts = _parse_header(header or "")
    if "t" not in parts or "v1" not in parts:
        raise InvalidSignature("En-tête de signature manquant ou mal formé")
    try:
        timestamp = int(parts["t"])
    except ValueError:
        raise InvalidSignature("Horodatage de signature invalide")

    expected = compute_signature(secret, timestamp, payload)
    if not hmac.compare_digest(expected, parts["v1"]):
        raise InvalidSignature()

    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        raise InvalidSignature("Signature expirée")
    return timestamp
