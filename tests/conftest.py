"""Shared fixtures: an in-memory Firestore double and a TestClient wired to it."""

import copy
import datetime
import os
from unittest.mock import MagicMock

os.environ.setdefault("STARTHUB_ALLOWED_HOSTS", "testserver,localhost")

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient

import AuthAndUser as auth
from main import app
from routers import users
from services.clients import get_firestore_client, get_gcs_client

TEST_USER = auth.User(username="ada@example.com", email="ada@example.com", name="Ada", disabled=False)


def ts(minutes: int) -> datetime.datetime:
    """Deterministic timestamps, ``minutes`` after a fixed origin."""
    return datetime.datetime(2025, 6, 1, tzinfo=datetime.timezone.utc) + datetime.timedelta(minutes=minutes)


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeQuery:
    def __init__(self, store, path, filters=(), order=None):
        self._store = store
        self._path = path
        self._filters = list(filters)
        self._order = order

    def where(self, filter):
        return FakeQuery(self._store, self._path, self._filters + [filter], self._order)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._store, self._path, self._filters, (field, direction))

    async def stream(self):
        rows = list(self._store.setdefault(self._path, {}).items())
        for f in self._filters:
            assert f.op_string == "=="
            rows = [(i, d) for i, d in rows if d.get(f.field_path) == f.value]
        if self._order:
            field, direction = self._order
            rows.sort(key=lambda row: row[1][field], reverse=direction == "DESCENDING")
        for doc_id, data in rows:
            yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocument(self._store, self._path, doc_id)


class FakeDocument:
    def __init__(self, store, path, doc_id):
        self._store = store
        self._path = path
        self.id = doc_id

    async def get(self):
        return FakeSnapshot(self.id, self._store.setdefault(self._path, {}).get(self.id))

    async def set(self, data):
        self._write(data)

    async def update(self, changes):
        self._apply(changes)

    def _write(self, data):
        self._store.setdefault(self._path, {})[self.id] = copy.deepcopy(data)

    def _apply(self, changes):
        doc = self._store[self._path][self.id]
        for key, value in changes.items():
            if type(value).__name__ == "Increment":
                doc[key] = doc.get(key, 0) + value.value
            else:
                doc[key] = value

    def collection(self, name):
        return FakeCollection(self._store, f"{self._path}/{self.id}/{name}")


class FakeBatch:
    """Applies every queued write on commit, or none of them if one fails."""

    def __init__(self, store):
        self._store = store
        self._ops = []

    def set(self, ref, data):
        self._ops.append((ref._write, data))

    def update(self, ref, changes):
        self._ops.append((ref._apply, changes))

    async def commit(self):
        saved = copy.deepcopy(self._store)
        try:
            for op, payload in self._ops:
                op(payload)
        except Exception:
            self._store.clear()
            self._store.update(saved)
            raise


class FakeFirestore:
    def __init__(self):
        self.data = {}

    def collection(self, name):
        return FakeCollection(self.data, name)

    def batch(self):
        return FakeBatch(self.data)

    def seed(self, path, doc_id, data):
        self.data.setdefault(path, {})[doc_id] = copy.deepcopy(data)

    def rows(self, path):
        return self.data.get(path, {})


@pytest.fixture
def fake_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def fake_gcs() -> MagicMock:
    gcs = MagicMock()
    gcs.bucket.return_value.blob.return_value.public_url = "https://storage.googleapis.com/starthub-media/img.png"
    return gcs


@pytest.fixture
def fernet() -> Fernet:
    return Fernet(Fernet.generate_key())


@pytest.fixture
def client(fake_db, fake_gcs, fernet):
    """Anonymous client; protected routes answer 401."""
    app.dependency_overrides[get_firestore_client] = lambda: fake_db
    app.dependency_overrides[get_gcs_client] = lambda: fake_gcs
    app.dependency_overrides[users.get_fernet] = lambda: fernet
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client):
    """Client acting as TEST_USER."""
    app.dependency_overrides[auth.get_current_active_user] = lambda: TEST_USER
    return client
