import io
import os
import tempfile
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

# db.py refuses to import without a connection string
os.environ["DATABASE_URL"] = "sqlite://"
# /uploads is mounted from UPLOAD_DIR when the app is imported
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="shades-uploads-")

import pytest
from fastapi.testclient import TestClient

from shades_api.deps import get_image_store, get_repository
from shades_api.image_store import ImageStore
from shades_api.main import app
from shades_api.repository import InMemoryProductRepository

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


class TickingClock:
    """Each call is one second after the previous one."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


def make_upload(filename="photo.jpg", content_type="image/jpeg", data=JPEG_BYTES):
    return SimpleNamespace(filename=filename, content_type=content_type, file=io.BytesIO(data))


def image_parts(n, ext="jpg", content_type="image/jpeg", data=JPEG_BYTES):
    return [("images", (f"pic{i}.{ext}", data, content_type)) for i in range(n)]


def product_form(**overrides):
    form = {
        "name": "Aviator Classic",
        "variant": "Gold / Green",
        "price": "129.99",
        "category": "aviator",
        "colors": '["black","blue"]',
        "rating": "4.5",
        "reviews": "12",
        "isNew": "true",
        "badge": "Bestseller",
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def repo(clock):
    return InMemoryProductRepository(clock=clock)


@pytest.fixture
def store(tmp_path):
    return ImageStore(tmp_path / "uploads")


@pytest.fixture
def upload_store():
    """The app's own image store, emptied around each test."""
    store = get_image_store()
    _empty(store.directory)
    yield store
    _empty(store.directory)


def _empty(directory):
    for p in directory.iterdir():
        p.unlink()


@pytest.fixture
def client(repo, upload_store):
    app.dependency_overrides[get_repository] = lambda: repo
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_product(client):
    def _create(n_images=2, **overrides):
        resp = client.post("/api/products", data=product_form(**overrides), files=image_parts(n_images))
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _create
