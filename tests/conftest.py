import os

# Environnement de test, posé avant l'import de l'application
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ.setdefault("USE_FAKE_REDIS_FOR_TESTS", "1")
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-test-key")

import threading
import pytest
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from formapro.app import app as fastapi_app
from formapro.utils.security import require_user, require_admin
from formapro.cart.storage import MemoryCartStorage, get_cart_storage
from formapro.orders.models import sources_for

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def authenticated_admin_client(app, client):
    def _override_require_admin():
        return {"id": "admin-user-id", "role": "admin", "email": "admin@example.com", "token": "admin-token"}
    app.dependency_overrides[require_admin] = _override_require_admin
    yield client
    app.dependency_overrides.pop(require_admin, None)

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    fake_user: Dict[str, Any] = {
        "id": "test-user",
        "email": "test@example.com",
        "user_metadata": {"full_name": "Test User"},
        "token": "fake-token",
    }
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture
def cart_storage(app):
    storage = MemoryCartStorage()
    app.dependency_overrides[get_cart_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_cart_storage, None)

# Aucun test ne doit joindre un vrai projet Supabase
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("formapro.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("formapro.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("formapro.health.service.health_supabase_info", lambda: {"connect_ok": True})


class FakeOrderStore:
    """Tables orders + order_items en mémoire, avec la même sémantique que orders.repository."""

    def __init__(self):
        self.orders: Dict[str, dict] = {}
        self.items: List[dict] = []
        self.fail_items = False
        self._seq = 0
        self._lock = threading.Lock()

    def add_order(self, **row) -> dict:
        self._seq += 1
        order = {
            "id": row.pop("id", f"O{self._seq}"),
            "user_id": "test-user",
            "order_number": f"CMD-20240101-{self._seq:06d}",
            "montant_total": 0,
            "methode_paiement": "mvola",
            "statut": "pending",
            "reference_paiement": None,
            **row,
        }
        self.orders[order["id"]] = order
        return order

    def insert_order(self, header: Dict[str, Any]) -> dict:
        return dict(self.add_order(**header))

    def insert_order_items(self, items: List[Dict[str, Any]]) -> List[dict]:
        if self.fail_items:
            from formapro.utils.errors import UpstreamFailure
            raise UpstreamFailure("Création des lignes de commande impossible")
        rows = [{"id": f"I{len(self.items) + n + 1}", **i} for n, i in enumerate(items)]
        self.items.extend(rows)
        return rows

    def delete_order(self, order_id: str) -> None:
        self.items = [i for i in self.items if i["order_id"] != order_id]
        self.orders.pop(order_id, None)

    def get_order(self, order_id: str) -> Optional[dict]:
        row = self.orders.get(order_id)
        return dict(row) if row else None

    def list_order_items(self, order_id: str) -> List[dict]:
        return [dict(i) for i in self.items if i["order_id"] == order_id]

    def _with_items(self, row: dict) -> dict:
        return {**row, "order_items": self.list_order_items(row["id"])}

    def list_user_orders(self, user_id: str, limit: int = 50) -> List[dict]:
        return [self._with_items(o) for o in self.orders.values() if o["user_id"] == user_id][:limit]

    def list_orders(self, status: Optional[str] = None, limit: int = 100) -> List[dict]:
        return [self._with_items(o) for o in self.orders.values() if not status or o["statut"] == status][:limit]

    def list_order_totals(self) -> List[dict]:
        return [{"statut": o["statut"], "montant_total": o["montant_total"]} for o in self.orders.values()]

    def transition_status(self, order_id, target, extra=None, reference=None):
        with self._lock:
            row = self.orders.get(order_id)
            if not row or row["statut"] not in sources_for(target):
                return None
            if reference is not None and row.get("reference_paiement") != reference:
                return None
            row.update({"statut": target.value, **(extra or {})})
            return dict(row)

    def claim_for_payment(self, order_id, claim):
        with self._lock:
            row = self.orders.get(order_id)
            if not row or row["statut"] != "pending" or row.get("reference_paiement") is not None:
                return None
            row["reference_paiement"] = claim
            return dict(row)

    def release_payment_claim(self, order_id, claim):
        with self._lock:
            row = self.orders.get(order_id)
            if not row or row["statut"] != "pending" or row.get("reference_paiement") != claim:
                return False
            row["reference_paiement"] = None
            return True


@pytest.fixture
def order_store(monkeypatch) -> FakeOrderStore:
    store = FakeOrderStore()
    for name in (
        "insert_order", "insert_order_items", "delete_order", "get_order", "list_order_items",
        "list_user_orders", "list_orders", "list_order_totals", "transition_status",
        "claim_for_payment", "release_payment_claim",
    ):
        monkeypatch.setattr(f"formapro.orders.repository.{name}", getattr(store, name))
    return store


FORMATIONS = {
    "F1": {"id": "F1", "title": "Python avancé", "price": 50000, "status": "active", "fichier_path": "python/avance.zip"},
    "F2": {"id": "F2", "title": "Excel pro", "price": 30000, "status": "active", "fichier_path": "excel/pro.pdf"},
    "F3": {"id": "F3", "title": "Archivée", "price": 10000, "status": "inactive", "fichier_path": None},
}


@pytest.fixture
def catalog(monkeypatch) -> Dict[str, dict]:
    data = {k: dict(v) for k, v in FORMATIONS.items()}
    monkeypatch.setattr("formapro.catalog.repository.get_formation", lambda fid: data.get(fid))
    monkeypatch.setattr(
        "formapro.catalog.repository.fetch_formations_by_ids",
        lambda ids: {i: data[i] for i in ids if i in data},
    )
    monkeypatch.setattr("formapro.catalog.repository.increment_sales_count", lambda fid: True)
    return data


class FakeLedger:
    """Registre 'downloads' + achats + Storage en mémoire; écritures conditionnelles sous verrou."""

    def __init__(self):
        self.rows: Dict[tuple, dict] = {}
        self.purchases: Dict[tuple, str] = {}
        self.sign_fails = False
        self.signed: List[str] = []
        self._lock = threading.Lock()

    def grant(self, user_id: str, formation_id: str, statut: str = "completed") -> None:
        self.purchases[(user_id, formation_id)] = statut

    def set_entry(self, user_id: str, formation_id: str, download_count: int, max_downloads: int = 3) -> dict:
        row = {
            "id": f"L{len(self.rows) + 1}",
            "user_id": user_id,
            "formation_id": formation_id,
            "download_count": download_count,
            "max_downloads": max_downloads,
            "last_download": None,
        }
        self.rows[(user_id, formation_id)] = row
        return row

    def find_completed_purchase(self, user_id, formation_id, statuses):
        statut = self.purchases.get((user_id, formation_id))
        if statut is not None and statut in statuses:
            return {"id": "I1", "order_id": "O1", "formation_id": formation_id, "orders": {"statut": statut}}
        return None

    def get_ledger(self, user_id, formation_id):
        with self._lock:
            row = self.rows.get((user_id, formation_id))
            return dict(row) if row else None

    def list_user_ledger(self, user_id):
        return [dict(r) for r in self.rows.values() if r["user_id"] == user_id]

    def insert_ledger(self, row):
        with self._lock:
            key = (row["user_id"], row["formation_id"])
            if key in self.rows:
                return None
            stored = {"id": f"L{len(self.rows) + 1}", **row}
            self.rows[key] = stored
            return dict(stored)

    def cas_update_count(self, ledger_id, expected, new_count, extra=None):
        with self._lock:
            for row in self.rows.values():
                if row["id"] == ledger_id:
                    if row["download_count"] != expected:
                        return False
                    row.update({"download_count": new_count, **(extra or {})})
                    return True
            return False

    def create_signed_url(self, path, expires_in):
        if self.sign_fails:
            from formapro.utils.errors import LinkGenerationFailed
            raise LinkGenerationFailed()
        self.signed.append(path)
        return f"https://storage.test/formations/{path}?token=signed&expires_in={expires_in}"

    def count(self, user_id: str, formation_id: str) -> int:
        return self.rows[(user_id, formation_id)]["download_count"]


@pytest.fixture
def ledger(monkeypatch) -> FakeLedger:
    fake = FakeLedger()
    for name in (
        "find_completed_purchase", "get_ledger", "list_user_ledger",
        "insert_ledger", "cas_update_count", "create_signed_url",
    ):
        monkeypatch.setattr(f"formapro.downloads.repository.{name}", getattr(fake, name))
    return fake
