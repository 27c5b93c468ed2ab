"""
Adaptateurs des passerelles Mobile Money (MVola, Orange Money).
- Un adaptateur par méthode de paiement, sélectionné par get_gateway().
- Appel HTTPS authentifié (Bearer) via httpx, borné par GATEWAY_TIMEOUT.
- Sans URL/clé configurée, l'adaptateur fonctionne en mode simulé: il synthétise
  une référence <PREFIXE>-<epoch ms> et répond « pending » immédiatement.
  L'issue réelle du paiement arrive ensuite par le webhook.
"""
import logging
import time
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from formapro import config
from formapro.orders.models import PaymentMethod
from formapro.utils.errors import UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)


class GatewayResult(BaseModel):
    reference: str
    status: str = "pending"


class PaymentGateway:
    name = "gateway"
    reference_prefix = "PAY"
    currency = "MGA"

    def __init__(self, api_url: str = "", api_key: str = "", timeout: float = 15.0, client: Optional[httpx.Client] = None):
        self.api_url = (api_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self._client = client

    @property
    def simulated(self) -> bool:
        return not (self.api_url and self.api_key)

    def initiate(self, amount: int, phone: str, order_id: str) -> GatewayResult:
        if self.simulated:
            logger.info("payments.gateway[%s] simulated amount=%s phone=%s order_id=%s", self.name, amount, phone, order_id)
            return GatewayResult(reference=f"{self.reference_prefix}-{int(time.time() * 1000)}", status="pending")
        return self._request_payment(amount, phone, order_id)

    def build_payload(self, amount: int, phone: str, order_id: str) -> Dict[str, Any]:
        return {"amount": amount, "currency": self.currency, "phone": phone, "order_id": order_id}

    def _request_payment(self, amount: int, phone: str, order_id: str) -> GatewayResult:
        url = f"{self.api_url}/payments"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(amount, phone, order_id)
        try:
            if self._client is not None:
                resp = self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                resp = httpx.post(url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException:
            logger.exception("payments.gateway[%s] timeout order_id=%s", self.name, order_id)
            raise UpstreamFailure(f"Passerelle {self.name}: délai dépassé")
        except httpx.HTTPError:
            logger.exception("payments.gateway[%s] transport error order_id=%s", self.name, order_id)
            raise UpstreamFailure(f"Passerelle {self.name} injoignable")

        if not (200 <= resp.status_code < 300):
            logger.error("payments.gateway[%s] status=%s body=%s", self.name, resp.status_code, resp.text)
            raise UpstreamFailure(f"Passerelle {self.name}: paiement refusé")
        try:
            body = resp.json()
        except ValueError:
            raise UpstreamFailure(f"Passerelle {self.name}: réponse illisible")
        reference = body.get("reference") or body.get("transaction_reference")
        if not reference:
            raise UpstreamFailure(f"Passerelle {self.name}: référence absente")
        return GatewayResult(reference=str(reference), status=str(body.get("status") or "pending"))


class MvolaGateway(PaymentGateway):
    name = "mvola"
    reference_prefix = "MVOLA"


class OrangeMoneyGateway(PaymentGateway):
    name = "orange_money"
    reference_prefix = "OM"


def get_gateway(method: PaymentMethod | str) -> PaymentGateway:
    try:
        method = PaymentMethod(method)
    except ValueError:
        raise ValidationError("Méthode de paiement non supportée")
    if method == PaymentMethod.MVOLA:
        return MvolaGateway(config.MVOLA_API_URL, config.MVOLA_API_KEY, config.GATEWAY_TIMEOUT)
    return OrangeMoneyGateway(config.ORANGE_MONEY_API_URL, config.ORANGE_MONEY_API_KEY, config.GATEWAY_TIMEOUT)
