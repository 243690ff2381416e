import uuid

import pytest
from fastapi.testclient import TestClient

from shades_api.deps import get_repository
from shades_api.main import app
from shades_api.repository import InMemoryProductRepository

from conftest import PNG_BYTES, image_parts, product_form


class BrokenRepository(InMemoryProductRepository):
    def list_all(self):
        raise RuntimeError("driver exploded")


def test_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Sunglasses API Running"
    assert "time" in body


def test_create_product(client, upload_store):
    resp = client.post("/api/products", data=product_form(originalPrice="159"), files=image_parts(3))

    assert resp.status_code == 201
    body = resp.json()
    assert len(body["id"]) == 32
    assert body["name"] == "Aviator Classic"
    assert body["price"] == 129.99
    assert body["originalPrice"] == 159
    assert body["isNew"] is True
    assert body["colors"] == ["black", "blue"]
    assert "createdAt" in body
    assert len(body["images"]) == 3
    assert all(upload_store.exists(name) for name in body["images"])


def test_uploaded_images_are_served(client, create_product):
    product = create_product()
    resp = client.get(f"/uploads/{product['images'][0]}")
    assert resp.status_code == 200
    assert resp.content.startswith(b"\xff\xd8\xff")


def test_serve_unknown_upload(client):
    resp = client.get("/uploads/nothing-here.jpg")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


@pytest.mark.parametrize("count", [0, 1])
def test_create_needs_two_images(client, count):
    resp = client.post("/api/products", data=product_form(), files=image_parts(count) or None)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Minimum 2 images required"}


def test_create_rejects_gif_and_keeps_nothing(client, upload_store):
    files = image_parts(2) + [("images", ("anim.gif", b"GIF89a", "image/gif"))]
    resp = client.post("/api/products", data=product_form(), files=files)
    assert resp.status_code == 400
    assert "Only JPG, PNG, WebP allowed" in resp.json()["error"]
    assert not upload_store.directory.exists() or list(upload_store.directory.iterdir()) == []


def test_create_rejects_more_than_ten_files(client):
    resp = client.post("/api/products", data=product_form(), files=image_parts(11, "png", "image/png", PNG_BYTES))
    assert resp.status_code == 400
    assert "Too many files" in resp.json()["error"]


def test_create_missing_name_leaves_no_files(client, upload_store):
    resp = client.post("/api/products", data=product_form(name=None), files=image_parts(2))
    assert resp.status_code == 400
    assert resp.json() == {"error": "name is required"}
    assert list(upload_store.directory.iterdir()) == []


def test_colors_as_repeated_fields(client):
    resp = client.post("/api/products", data=product_form(colors=["black", "blue"]), files=image_parts(2))
    assert resp.status_code == 201
    assert resp.json()["colors"] == ["black", "blue"]


@pytest.mark.parametrize("value, expected", [("true", True), ("1", False), ("TRUE", False), ("", False)])
def test_is_new_literal(create_product, value, expected):
    assert create_product(isNew=value)["isNew"] is expected


def test_list_newest_first_after_creates_and_deletes(client, create_product):
    created = [create_product(name=f"Model {i}") for i in range(5)]
    for product in created[1:3]:
        assert client.delete(f"/api/products/{product['id']}").status_code == 204

    resp = client.get("/api/products")
    assert resp.status_code == 200
    ids = [p["id"] for p in resp.json()]
    assert ids == [created[4]["id"], created[3]["id"], created[0]["id"]]


def test_get_product(client, create_product):
    product = create_product()
    resp = client.get(f"/api/products/{product['id']}")
    assert resp.status_code == 200
    assert resp.json() == product


def test_get_malformed_id_is_400(client):
    resp = client.get("/api/products/not-an-id")
    assert resp.status_code == 400
    assert "Invalid product id" in resp.json()["error"]


def test_get_unknown_id_is_404(client):
    resp = client.get(f"/api/products/{uuid.uuid4().hex}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not found"}


def test_update_partial(client, create_product):
    product = create_product()
    resp = client.put(f"/api/products/{product['id']}", json={"price": 99, "badge": "Sale", "isNew": False})
    assert resp.status_code == 200
    body = resp.json()
    assert body["price"] == 99
    assert body["badge"] == "Sale"
    assert body["isNew"] is False
    assert body["name"] == product["name"]
    assert body["createdAt"] == product["createdAt"]


@pytest.mark.parametrize("payload", [
    {"createdAt": "2020-01-01T00:00:00Z"},
    {"id": "abc"},
    {"owner": "me"},
    {"price": "expensive"},
    {"name": None},
])
def test_update_rejects_bad_payload(client, create_product, payload):
    product = create_product()
    resp = client.put(f"/api/products/{product['id']}", json=payload)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert client.get(f"/api/products/{product['id']}").json() == product


def test_update_unknown_and_malformed(client):
    assert client.put(f"/api/products/{uuid.uuid4().hex}", json={"price": 1}).status_code == 404
    assert client.put("/api/products/xyz", json={"price": 1}).status_code == 400


def test_delete_removes_record_and_files(client, upload_store, create_product):
    product = create_product()
    resp = client.delete(f"/api/products/{product['id']}")
    assert resp.status_code == 204
    assert resp.content == b""
    assert client.get(f"/api/products/{product['id']}").status_code == 404
    assert not any(upload_store.exists(name) for name in product["images"])


def test_delete_succeeds_when_file_cleanup_fails(client, upload_store, create_product, monkeypatch):
    product = create_product()
    monkeypatch.setattr(upload_store, "remove", lambda name: False)

    resp = client.delete(f"/api/products/{product['id']}")

    assert resp.status_code == 204
    assert client.get("/api/products").json() == []


def test_delete_unknown_and_malformed(client):
    assert client.delete(f"/api/products/{uuid.uuid4().hex}").status_code == 404
    assert client.delete("/api/products/xyz").status_code == 400


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nothing")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_upload_path_traversal_is_404(client):
    resp = client.get("/uploads/..%2Fpyproject.toml")
    assert resp.status_code == 404


def test_id_with_trailing_newline_is_400(client, create_product):
    product = create_product()
    resp = client.get(f"/api/products/{product['id']}%0A")
    assert resp.status_code == 400
    assert "Invalid product id" in resp.json()["error"]


def test_unexpected_error_uses_error_envelope(upload_store, caplog):
    app.dependency_overrides[get_repository] = lambda: BrokenRepository()
    try:
        with caplog.at_level("ERROR", logger="shades_api"):
            resp = TestClient(app, raise_server_exceptions=False).get("/api/products")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.headers["content-type"] == "application/json"
    assert resp.json() == {"error": "Internal server error"}
    assert "driver exploded" in caplog.text
