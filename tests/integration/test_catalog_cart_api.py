def test_list_formations_hides_content_path(client, monkeypatch):
    rows = [{"id": "F1", "title": "Python avancé", "price": 50000, "status": "active", "fichier_path": "secret.zip"}]
    monkeypatch.setattr("formapro.catalog.repository.list_formations", lambda active_only=True, category=None: rows)
    r = client.get("/api/v1/formations")
    assert r.status_code == 200
    item = r.json()["items"][0]
    assert item["title"] == "Python avancé"
    assert "fichier_path" not in item

def test_get_inactive_formation_is_404(client, catalog):
    r = client.get("/api/v1/formations/F3")
    assert r.status_code == 404
    assert r.json() == {"error": "Formation introuvable"}

def test_cart_flow(client, catalog, cart_storage):
    assert client.get("/api/v1/cart").json() == {"items": [], "total": 0, "item_count": 0}

    client.post("/api/v1/cart/items", json={"formation_id": "F1"})
    client.post("/api/v1/cart/items", json={"formation_id": "F1"})
    r = client.post("/api/v1/cart/items", json={"formation_id": "F2"})
    assert r.status_code == 200
    assert r.json()["total"] == 80000
    assert r.json()["item_count"] == 2

    r = client.delete("/api/v1/cart/items/F1")
    assert r.json()["total"] == 30000

    r = client.delete("/api/v1/cart")
    assert r.json()["item_count"] == 0

def test_cart_rejects_unavailable_formation(client, catalog, cart_storage):
    r = client.post("/api/v1/cart/items", json={"formation_id": "F3"})
    assert r.status_code == 404
    assert "error" in r.json()

def test_cart_missing_body_is_400(client, cart_storage):
    r = client.post("/api/v1/cart/items", json={})
    assert r.status_code == 400
    assert "error" in r.json()
