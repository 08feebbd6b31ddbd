"""
Shared fixtures: the two store collections are swapped for in-memory
collections that speak the subset of motor's API the adapters use.
"""

import asyncio
import copy
import itertools
import re
from types import SimpleNamespace

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from database import operations


def _matches(doc, query):
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
        elif isinstance(cond, dict) and "$regex" in cond:
            flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
            if not re.search(cond["$regex"], str(doc.get(key, "")), flags):
                return False
        elif doc.get(key) != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, rows):
        self._rows = rows
        self._skip = 0
        self._limit = 0

    def sort(self, key, direction=1):
        # Ties keep insertion order, like an _id-ordered scan
        self._rows = sorted(self._rows, key=lambda row: (row[1].get(key), row[0]), reverse=direction < 0)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def _iterate(self):
        rows = self._rows[self._skip:]
        if self._limit:
            rows = rows[:self._limit]
        for _, doc in rows:
            yield copy.deepcopy(doc)

    def __aiter__(self):
        return self._iterate()


class FakeCollection:
    def __init__(self):
        self.docs = {}
        self.fail_on = set()
        self._seq = itertools.count()
        self._order = {}

    def _check(self, method):
        if method in self.fail_on:
            raise AutoReconnect(f"{method} failed: connection lost")

    def _rows(self, query):
        return [(self._order[key], doc) for key, doc in self.docs.items() if _matches(doc, query)]

    async def create_index(self, *args, **kwargs):
        return "index"

    def find(self, query=None):
        self._check("find")
        return FakeCursor(self._rows(query or {}))

    async def find_one(self, query):
        self._check("find_one")
        rows = self._rows(query)
        return copy.deepcopy(rows[0][1]) if rows else None

    async def insert_one(self, doc):
        self._check("insert_one")
        if doc["_id"] in self.docs:
            raise DuplicateKeyError(f"E11000 duplicate key error: {doc['_id']}", code=11000)
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        self._order[doc["_id"]] = next(self._seq)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, query, update):
        self._check("update_one")
        rows = self._rows(query)
        if not rows:
            return SimpleNamespace(matched_count=0, modified_count=0)
        doc = rows[0][1]
        before = copy.deepcopy(doc)
        for key, value in update.get("$set", {}).items():
            doc[key] = value
        for key, value in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + value
        return SimpleNamespace(matched_count=1, modified_count=int(doc != before))

    async def delete_one(self, query):
        self._check("delete_one")
        rows = self._rows(query)
        if not rows:
            return SimpleNamespace(deleted_count=0)
        del self.docs[rows[0][1]["_id"]]
        return SimpleNamespace(deleted_count=1)


@pytest.fixture
def store(monkeypatch):
    inventory = FakeCollection()
    borrow_log = FakeCollection()
    monkeypatch.setattr(operations, "inventory_collection", inventory)
    monkeypatch.setattr(operations, "borrow_log_collection", borrow_log)
    return SimpleNamespace(inventory=inventory, borrow_log=borrow_log)


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient
    from main import app

    # Not used as a context manager, so the startup hook never reaches MongoDB
    return TestClient(app)
