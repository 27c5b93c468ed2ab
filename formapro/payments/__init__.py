"""
Module 'payments' (feature-first): point d'entrée public.
Réunit adaptateurs de passerelles, signature des webhooks et cas d'usage.
"""

from .gateways import GatewayResult, PaymentGateway, MvolaGateway, OrangeMoneyGateway, get_gateway
from .signature import SIGNATURE_HEADER, compute_signature, verify_signature
from .service import initiate_payment, handle_webhook, map_gateway_status, parse_webhook_payload

__all__ = [
    # gateways
    "GatewayResult",
    "PaymentGateway",
    "MvolaGateway",
    "OrangeMoneyGateway",
    "get_gateway",
    # signature
    "SIGNATURE_HEADER",
    "compute_signature",
    "verify_signature",
    # services
    "initiate_payment",
    "handle_webhook",
    "map_gateway_status",
    "parse_webhook_payload",
]
