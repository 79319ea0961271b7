from fastapi.testclient import TestClient

from shop_publisher import db, graph_client
from shop_publisher.main import app

client = TestClient(app)


def test_admin_page_lists_products(product_payload) -> None:
    db.create_product(product_payload)

    response = client.get("/admin")
    assert response.status_code == 200
    assert "Canvas Tote" in response.text
    assert "24.50" in response.text


def test_admin_create_product_form() -> None:
    response = client.post(
        "/admin/products",
        data={"name": "Mug", "price": "9.90", "image_url": "https://cdn.example.com/mug.jpg"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert "flash_type=success" in response.headers["location"]
    assert [p.name for p in db.list_products()] == ["Mug"]


def test_admin_create_product_form_rejects_bad_price() -> None:
    response = client.post(
        "/admin/products",
        data={"name": "Mug", "price": "-1", "image_url": "https://cdn.example.com/mug.jpg"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert "flash_type=warning" in response.headers["location"]
    assert db.list_products() == []


def test_admin_publish_redirects_with_flash(monkeypatch, product_payload) -> None:
    monkeypatch.setattr(
        graph_client,
        "create_media_container",
        lambda image_url, caption: {"ok": True, "status_code": 200, "json": {"id": "c_1"}, "error": None},
    )
    monkeypatch.setattr(
        graph_client,
        "publish_media",
        lambda creation_id: {"ok": True, "status_code": 200, "json": {"id": "m_9"}, "error": None},
    )
    product = db.create_product(product_payload)

    response = client.post(f"/admin/products/{product.id}/publish", follow_redirects=False)
    assert response.status_code == 303
    assert "m_9" in response.headers["location"]
    assert db.get_product(product.id).published is True


def test_admin_publish_failure_flashes_danger(monkeypatch, product_payload) -> None:
    monkeypatch.setattr(
        graph_client,
        "create_media_container",
        lambda image_url, caption: {"ok": False, "status_code": None, "json": None, "error": "token_missing"},
    )
    product = db.create_product(product_payload)

    response = client.post(f"/admin/products/{product.id}/publish", follow_redirects=False)
    assert response.status_code == 303
    assert "flash_type=danger" in response.headers["location"]
    assert db.list_publish_history(product.id) == []


def test_admin_requires_basic_auth_when_configured(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_USER", "admin")
    monkeypatch.setenv("ADMIN_PASS", "pass")

    assert client.get("/admin").status_code == 401
    assert client.get("/admin", auth=("admin", "wrong")).status_code == 401
    assert client.get("/admin", auth=("admin", "pass")).status_code == 200
