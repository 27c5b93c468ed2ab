import threading
import time

import httpx
import pytest

from formapro.payments import service
from formapro.payments.gateways import GatewayResult, MvolaGateway
from formapro.payments.models import WebhookPayload
from formapro.orders.models import OrderStatus
from formapro.utils.errors import (
    Forbidden,
    InvalidTransition,
    NotFound,
    UpstreamFailure,
    ValidationError,
    WebhookMismatch,
)


@pytest.fixture
def pending_order(order_store):
    order_store.add_order(id="O1", user_id="u1", montant_total=80000, methode_paiement="mvola", customer_phone="034")
    order_store.items.append({"id": "I1", "order_id": "O1", "formation_id": "F1", "title": "Python", "prix": 80000})
    return order_store


@pytest.fixture
def confirmed_order(order_store):
    order_store.add_order(id="O1", user_id="u1", montant_total=80000, statut="confirmed", reference_paiement="MVOLA-123")
    order_store.items.append({"id": "I1", "order_id": "O1", "formation_id": "F1", "title": "Python", "prix": 80000})
    return order_store


@pytest.mark.parametrize("raw,expected", [
    ("success", OrderStatus.COMPLETED),
    ("COMPLETED", OrderStatus.COMPLETED),
    ("failed", OrderStatus.FAILED),
    ("error", OrderStatus.FAILED),
    ("processing", None),
    ("", None),
])
def test_map_gateway_status(raw, expected):
    assert service.map_gateway_status(raw) == expected

# Initiation
def test_initiate_confirms_order_with_reference(pending_order):
    result = service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
    assert result["reference"].startswith("MVOLA-")
    assert result["statut"] == "confirmed"
    row = pending_order.orders["O1"]
    assert row["statut"] == "confirmed"
    assert row["reference_paiement"] == result["reference"]

def test_initiate_unknown_order(order_store):
    with pytest.raises(NotFound):
        service.initiate_payment(order_id="nope", amount=1, payment_method="mvola", phone="034")

def test_initiate_foreign_order(pending_order):
    with pytest.raises(Forbidden):
        service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="intruder")

@pytest.mark.parametrize("amount,method", [(79999, "mvola"), (80000, "orange_money")])
def test_initiate_amount_or_method_mismatch(pending_order, amount, method):
    with pytest.raises(ValidationError):
        service.initiate_payment(order_id="O1", amount=amount, payment_method=method, phone="034", user_id="u1")
    assert pending_order.orders["O1"]["statut"] == "pending"

def test_initiate_twice_is_refused(pending_order):
    service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
    with pytest.raises(InvalidTransition):
        service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")

def _http_gateway(monkeypatch, handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    gateway = MvolaGateway("https://api.gateway.test", "secret-key", timeout=2.0, client=client)
    monkeypatch.setattr("formapro.payments.service.get_gateway", lambda method: gateway)

def test_declined_by_gateway_keeps_order_pending(pending_order, monkeypatch):
    _http_gateway(monkeypatch, lambda request: httpx.Response(200, json={"reference": "R1", "status": "failed"}))
    with pytest.raises(UpstreamFailure):
        service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
    row = pending_order.orders["O1"]
    assert row["statut"] == "pending"
    assert row["reference_paiement"] is None

def test_retry_after_decline_succeeds(pending_order, monkeypatch):
    answers = iter([
        httpx.Response(200, json={"reference": "R1", "status": "failed"}),
        httpx.Response(200, json={"reference": "R2", "status": "pending"}),
    ])
    _http_gateway(monkeypatch, lambda request: next(answers))
    with pytest.raises(UpstreamFailure):
        service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
    result = service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
    assert result["reference"] == "R2"
    assert pending_order.orders["O1"]["statut"] == "confirmed"
    assert pending_order.orders["O1"]["reference_paiement"] == "R2"

def test_gateway_error_releases_the_order(pending_order, monkeypatch):
    _http_gateway(monkeypatch, lambda request: httpx.Response(503, text="unavailable"))
    with pytest.raises(UpstreamFailure):
        service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
    assert pending_order.orders["O1"]["reference_paiement"] is None

def test_concurrent_initiations_call_the_gateway_once(pending_order, monkeypatch):
    calls = []

    class SlowGateway:
        name = "mvola"

        def initiate(self, amount, phone, order_id):
            calls.append(order_id)
            time.sleep(0.2)
            return GatewayResult(reference=f"R{len(calls)}", status="pending")

    monkeypatch.setattr("formapro.payments.service.get_gateway", lambda method: SlowGateway())
    barrier = threading.Barrier(2)
    outcomes = []

    def worker():
        barrier.wait()
        try:
            service.initiate_payment(order_id="O1", amount=80000, payment_method="mvola", phone="034", user_id="u1")
            outcomes.append("ok")
        except InvalidTransition:
            outcomes.append("409")

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["409", "ok"]
    assert calls == ["O1"]
    assert pending_order.orders["O1"]["reference_paiement"] == "R1"
    assert pending_order.orders["O1"]["statut"] == "confirmed"

# Webhook

def _payload(status="success", reference="MVOLA-123", order_id="O1"):
    return WebhookPayload(reference=reference, status=status, order_id=order_id)

def test_webhook_success_completes_order(confirmed_order, catalog, monkeypatch):
    sold = []
    monkeypatch.setattr("formapro.catalog.service.record_sale", lambda ids: sold.extend(ids))
    res = service.handle_webhook(_payload())
    assert res == {"success": True, "message": "Webhook traité"}
    row = confirmed_order.orders["O1"]
    assert row["statut"] == "completed"
    assert row["date_paiement"]
    assert sold == ["F1"]

def test_webhook_failed_marks_order_failed(confirmed_order):
    service.handle_webhook(_payload(status="error"))
    assert confirmed_order.orders["O1"]["statut"] == "failed"
    assert "date_paiement" not in confirmed_order.orders["O1"]

def test_webhook_replay_is_idempotent(confirmed_order, catalog):
    service.handle_webhook(_payload())
    res = service.handle_webhook(_payload(status="completed"))
    assert res == {"success": True, "message": "already_processed"}
    assert confirmed_order.orders["O1"]["statut"] == "completed"

def test_failed_after_completed_does_not_regress(confirmed_order, catalog):
    service.handle_webhook(_payload())
    res = service.handle_webhook(_payload(status="failed"))
    assert res["success"] is True
    assert confirmed_order.orders["O1"]["statut"] == "completed"

def test_unknown_status_is_a_noop(confirmed_order):
    res = service.handle_webhook(_payload(status="processing"))
    assert res["success"] is True
    assert confirmed_order.orders["O1"]["statut"] == "confirmed"

@pytest.mark.parametrize("reference,order_id", [("MVOLA-999", "O1"), ("MVOLA-123", "O2")])
def test_reference_mismatch_is_reported(confirmed_order, reference, order_id, caplog):
    with pytest.raises(WebhookMismatch):
        service.handle_webhook(_payload(reference=reference, order_id=order_id))
    assert confirmed_order.orders["O1"]["statut"] == "confirmed"
    assert "mismatch" in caplog.text

def test_admin_decision_is_not_overwritten_by_webhook(order_store):
    order_store.add_order(id="O1", statut="validated", reference_paiement="MVOLA-123")
    res = service.handle_webhook(_payload(status="failed"))
    assert res["success"] is True
    assert order_store.orders["O1"]["statut"] == "validated"

@pytest.mark.parametrize("data", [None, [], {}, {"reference": "R", "status": "success"}, {"reference": "", "status": "s", "order_id": "O1"}])
def test_parse_webhook_payload_requires_all_fields(data):
    with pytest.raises(ValidationError) as exc:
        service.parse_webhook_payload(data)
    assert exc.value.message == "Données de webhook invalides"
