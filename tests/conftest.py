from __future__ import annotations

import copy
from contextlib import contextmanager
from pathlib import Path
import sys
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


ENV = {
    "MONGODB_CONNECTION_STRING": "mongodb://fake:27017",
    "MONGODB_DATABASE": "tododb",
    "MONGODB_COLLECTION": "todos",
}


class FakeCollection:
    """Just enough of pymongo's Collection for the todo commands."""

    def __init__(self, store):
        self.store = store
        self.docs = []
        self.fail_with = None
        self.calls = []
        self.timeouts = []

    def _check(self, name):
        self.calls.append(name)
        self.timeouts.append(self.store.active_timeout)
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _matches(doc, q):
        return all(doc.get(k) == v for k, v in q.items())

    def insert_one(self, doc):
        self._check("insert_one")
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"], acknowledged=True)

    def find(self, q=None):
        self._check("find")
        return iter([copy.deepcopy(d) for d in self.docs if self._matches(d, q or {})])

    def update_one(self, q, update):
        self._check("update_one")
        for d in self.docs:
            if self._matches(d, q):
                d.update(update["$set"])
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def delete_one(self, q):
        self._check("delete_one")
        for i, d in enumerate(self.docs):
            if self._matches(d, q):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeStore:
    """Shared state behind every FakeClient a test creates."""

    def __init__(self):
        self.collections = {}
        self.clients = []
        self.ping_error = None
        self.active_timeout = None
        self.ping_timeouts = []

    @contextmanager
    def timeout(self, seconds):
        self.active_timeout = seconds
        try:
            yield
        finally:
            self.active_timeout = None

    def collection(self, database="tododb", name="todos"):
        return self.collections.setdefault((database, name), FakeCollection(self))

    def client(self, uri, **kwargs):
        c = FakeClient(self, uri, kwargs)
        self.clients.append(c)
        return c


class FakeClient:
    def __init__(self, store, uri, kwargs):
        self.store = store
        self.uri = uri
        self.kwargs = kwargs
        self.closed = False
        self.admin = SimpleNamespace(command=self._command)

    def _command(self, name):
        self.store.ping_timeouts.append(self.store.active_timeout)
        if self.store.ping_error is not None:
            raise self.store.ping_error
        return {"ok": 1.0}

    def __getitem__(self, database):
        return _FakeDatabase(self.store, database)

    def close(self):
        self.closed = True


class _FakeDatabase:
    def __init__(self, store, name):
        self.store = store
        self.name = name

    def __getitem__(self, collection):
        return self.store.collection(self.name, collection)


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's .env file out of the tests."""
    import db

    monkeypatch.setattr(db, "load_dotenv", lambda *a, **k: False)


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    import db

    s = FakeStore()
    monkeypatch.setattr(db, "MongoClient", s.client)
    monkeypatch.setattr(db, "timeout", s.timeout)
    return s


@pytest.fixture
def todo_env(monkeypatch: pytest.MonkeyPatch) -> dict:
    for name, value in ENV.items():
        monkeypatch.setenv(name, value)
    return ENV


@pytest.fixture
def config():
    import db

    return db.Config(ENV["MONGODB_CONNECTION_STRING"], ENV["MONGODB_DATABASE"], ENV["MONGODB_COLLECTION"])


@pytest.fixture
def ping_timeout():
    return ServerSelectionTimeoutError("fake:27017: timed out")


@pytest.fixture
def operation_failure():
    return OperationFailure("not authorized on tododb")
