import os
import sys
import tempfile
from pathlib import Path

import pytest

_DB_FILE = Path(tempfile.gettempdir()) / "test_shop_publisher.db"
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_FILE}"

sys.path.append(str(Path(__file__).resolve().parents[1]))

from shop_publisher import db  # noqa: E402
from shop_publisher.models import Base  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db(monkeypatch):
    for name in ("ADMIN_API_TOKEN", "ADMIN_USER", "ADMIN_PASS", "META_API_VERSION"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("META_ACCESS_TOKEN", "test-token")
    monkeypatch.setenv("META_IG_BUSINESS_ID", "17841400000000000")
    Base.metadata.drop_all(db.engine)
    db.init_db()
    yield


@pytest.fixture
def product_payload():
    return {
        "name": "Canvas Tote",
        "description": "Heavy cotton tote bag",
        "price": 24.5,
        "image_url": "https://cdn.example.com/tote.jpg",
    }
