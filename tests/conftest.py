"""
Test fixtures.

The app is built around an in-memory stand-in for the handful of pymongo
collection calls the gateways make.
"""
import copy
from datetime import date
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import DESCENDING
from pymongo.errors import ServerSelectionTimeoutError

from draft import ReportDraft
from main import create_app
from schemas import ItemKind, ItemStatus
from settings import Settings

INSPECTOR = "Kwame Mensah"


class FakeCursor(list):

    def sort(self, key, direction=1):
        return FakeCursor(sorted(self, key=lambda d: d.get(key), reverse=direction == DESCENDING))


def _matches(doc, query):
    return all(doc.get(k) == v for k, v in (query or {}).items())


class FakeCollection:

    def __init__(self):
        self.docs = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise ServerSelectionTimeoutError("connection refused")

    def insert_one(self, doc):
        self._check()
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find_one(self, query=None):
        self._check()
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None):
        self._check()
        return FakeCursor(copy.deepcopy(d) for d in self.docs if _matches(d, query))

    def delete_one(self, query):
        self._check()
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def create_index(self, keys, **kwargs):
        self._check()
        return f"{keys}_1"


class FakeDatabase:

    def __init__(self):
        self.collections = {}
        self.name = "fire_checklist_test"

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    def command(self, name):
        return {"ok": 1.0}


def fill(draft: ReportDraft, status: ItemStatus = ItemStatus.OK) -> ReportDraft:
    """Answer every item: checks get status, readings get a value"""
    draft.mark_all("A", status)
    draft.mark_all("B", status)
    draft.set_answer("A", "a_0", "value", "12345")
    for item in draft.section("B"):
        if item.kind == ItemKind.NUMERIC:
            draft.set_answer("B", item.id, "value", "10")
    return draft


@pytest.fixture
def new_draft():
    return ReportDraft.new(INSPECTOR, vehicle_reg="WR 1838-11", today=date(2025, 3, 14))


@pytest.fixture
def filled_draft(new_draft):
    return fill(new_draft)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def app(fake_db):
    return create_app(database=fake_db, settings=Settings(ENVIRONMENT="test", LOG_LEVEL="WARNING"))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def logged_in(client):
    r = client.post("/login", data={"name": INSPECTOR}, follow_redirects=False)
    assert r.status_code == 303
    return client
