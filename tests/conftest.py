"""
pytest shared fixtures

Store modules talk to Firestore through get_db(); tests swap in an in-memory
client exposing the small part of the Firestore API those modules use.
"""

import copy

import pytest
from google.api_core.exceptions import AlreadyExists

from config.settings import get_settings


MEMBERS = ["Mahendra", "Namrata", "Ishmeet", "Meghana", "Unmesh", "Harish", "Swaroop"]


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocument:
    def __init__(self, store, doc_id):
        self._store = store
        self.id = doc_id

    def set(self, data):
        self._store[self.id] = copy.deepcopy(data)

    def create(self, data):
        if self.id in self._store:
            raise AlreadyExists(f"Document already exists: {self.id}")
        self._store[self.id] = copy.deepcopy(data)

    def update(self, fields):
        if self.id not in self._store:
            raise KeyError(self.id)
        self._store[self.id].update(copy.deepcopy(fields))

    def get(self):
        return FakeSnapshot(self.id, self._store.get(self.id))

    def delete(self):
        self._store.pop(self.id, None)


class FakeWatch:
    def __init__(self):
        self.unsubscribed = False

    def unsubscribe(self):
        self.unsubscribed = True


class FakeCollection:
    def __init__(self, name, store):
        self.name = name
        self._store = store
        self.listeners = []

    def document(self, doc_id):
        return FakeDocument(self._store, doc_id)

    def stream(self):
        return [FakeSnapshot(doc_id, data) for doc_id, data in list(self._store.items())]

    def on_snapshot(self, callback):
        self.listeners.append(callback)
        return FakeWatch()

    def fire(self):
        """Simulate a server-side change notification."""
        for callback in self.listeners:
            callback(self.stream(), [], None)


class FakeFirestore:
    project = "test-project"

    def __init__(self):
        self._data = {}
        self._collections = {}

    def collection(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name, self._data.setdefault(name, {}))
        return self._collections[name]

    def documents(self, name):
        return self._data.get(name, {})


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Run every test against the default environment settings."""
    for name in (
        "TRIP_MEMBERS", "TRIP_TOTAL_CASH", "SETTLE_EPSILON",
        "SETTLE_MAX_ITERATIONS", "FIREBASE_CREDENTIALS", "FIREBASE_PROJECT_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def members():
    return list(MEMBERS)


@pytest.fixture
def fake_db(monkeypatch):
    """In-memory Firestore installed into every store module."""
    import documents
    import ledger
    import places

    db = FakeFirestore()
    for module in (ledger, places, documents):
        monkeypatch.setattr(module, "get_db", lambda: db)
    return db


@pytest.fixture
def no_db(monkeypatch):
    """Simulate Firestore being unavailable."""
    import documents
    import ledger
    import places

    for module in (ledger, places, documents):
        monkeypatch.setattr(module, "get_db", lambda: None)
