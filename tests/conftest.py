from __future__ import annotations

import copy
import threading
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from database import ensure_indexes, get_db
from main import app


def _matches(doc: Dict[str, Any], filter_dict: Optional[Dict[str, Any]]) -> bool:
    return all(doc.get(k) == v for k, v in (filter_dict or {}).items())


class _Cursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key, direction=None):
        keys = key if isinstance(key, list) else [(key, direction or 1)]
        for field, order in reversed(keys):
            self._docs.sort(key=lambda d: d.get(field), reverse=order < 0)
        return self

    def __iter__(self):
        return iter(self._docs)


class _Collection:
    """In-memory stand-in for the pymongo collection calls the service makes."""

    def __init__(self, name: str):
        self.name = name
        self._docs: List[Dict[str, Any]] = []
        self._unique: List[Tuple[str, ...]] = []
        self._lock = threading.Lock()
        self.calls: List[str] = []

    def create_index(self, keys, unique: bool = False, **kwargs):
        fields = tuple(k for k, _ in keys)
        if unique:
            self._unique.append(fields)
        return "_".join(fields)

    def _check_unique(self, doc: Dict[str, Any]):
        for fields in self._unique:
            for other in self._docs:
                if all(other.get(f) == doc.get(f) for f in fields):
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name}")

    def insert_one(self, doc: Dict[str, Any]):
        self.calls.append("insert_one")
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        with self._lock:
            self._check_unique(doc)
            self._docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"], acknowledged=True)

    def find_one(self, filter_dict=None):
        self.calls.append("find_one")
        for doc in self._docs:
            if _matches(doc, filter_dict):
                return copy.deepcopy(doc)
        return None

    def find(self, filter_dict=None):
        self.calls.append("find")
        return _Cursor([copy.deepcopy(d) for d in self._docs if _matches(d, filter_dict)])

    def delete_many(self, filter_dict):
        self.calls.append("delete_many")
        keep = [d for d in self._docs if not _matches(d, filter_dict)]
        deleted = len(self._docs) - len(keep)
        self._docs = keep
        return SimpleNamespace(deleted_count=deleted, acknowledged=True)

    def find_one_and_update(self, filter_dict, update, upsert=False, return_document=None):
        self.calls.append("find_one_and_update")
        with self._lock:
            doc = next((d for d in self._docs if _matches(d, filter_dict)), None)
            if doc is None:
                if not upsert:
                    return None
                doc = dict(filter_dict)
                doc.update(update.get("$setOnInsert", {}))
                doc["_id"] = ObjectId()
                self._check_unique(doc)
                self._docs.append(doc)
            for field, value in update.get("$set", {}).items():
                doc[field] = value
            for field, value in update.get("$inc", {}).items():
                doc[field] = doc.get(field, 0) + value
            return copy.deepcopy(doc)

    def count(self) -> int:
        return len(self._docs)


class FakeDB:
    def __init__(self, name: str = "invoice_test"):
        self.name = name
        self._collections: Dict[str, _Collection] = {}

    def __getitem__(self, name: str) -> _Collection:
        return self._collections.setdefault(name, _Collection(name))

    def list_collection_names(self) -> List[str]:
        return list(self._collections)


@pytest.fixture()
def fake_db():
    db = FakeDB()
    ensure_indexes(db)
    return db


@pytest.fixture()
def client(fake_db):
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()
