import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import mongomock
import pytest
from fastapi.testclient import TestClient

from chefai.app import create_app
from chefai.config import Settings
from chefai.infra.errors import StoreUnavailable
from chefai.infra.mongo import MongoConnection

SECRET = "test-secret"


class DownStore:
    """Credential store whose backend is never reachable."""

    name = "down"

    def __init__(self):
        self.calls = 0

    def _fail(self, *args, **kwargs):
        self.calls += 1
        raise StoreUnavailable("connection refused")

    find_by_email = find_by_id = create = _fail


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(secret_key=SECRET, users_path=tmp_path / "users.json")


@pytest.fixture()
def mongo_db():
    return mongomock.MongoClient()


@pytest.fixture()
def client(settings) -> TestClient:
    """App with no MONGODB_URI: every request ends up in the JSON file store."""
    return TestClient(create_app(settings))


@pytest.fixture()
def mongo_client(settings, mongo_db) -> TestClient:
    """App whose primary store (and signup log) live in an in-memory MongoDB."""
    conn = MongoConnection(None, client=mongo_db)
    return TestClient(create_app(settings, mongo=conn))


def register(client, name="Ana", email="ana@example.com", password="secret1"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


def login(client, email="ana@example.com", password="secret1"):
    return client.post("/api/auth/login", json={"email": email, "password": password})
