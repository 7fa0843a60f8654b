import os
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

# Ensure required env vars exist before importing app modules.
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")

from bson.decimal128 import Decimal128
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError


def _matches(document: Dict[str, Any], filter_dict: Optional[Dict[str, Any]]) -> bool:
    for key, condition in (filter_dict or {}).items():
        value = document.get(key)
        if isinstance(condition, dict):
            for operator, operand in condition.items():
                if operator == "$ne" and value == operand:
                    return False
                if operator == "$gt" and (value is None or not value > operand):
                    return False
                if operator == "$gte" and (value is None or not value >= operand):
                    return False
                if operator == "$in" and value not in operand:
                    return False
        elif value != condition:
            return False
    return True


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    return Decimal(str(value))


class FakeCollection:
    """In-memory stand-in for an AsyncIOMotorCollection"""

    def __init__(self, unique_fields: Iterable[str] = ()) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.unique_fields = tuple(unique_fields)
        self.inserted = []
        self.updated = []
        self.sessions = []
        self.fail_with: Optional[Exception] = None

    def _raise_if_failing(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def insert_one(self, document: Dict[str, Any], *args, session=None, **kwargs):
        class _InsertResult:
            def __init__(self, inserted_id):
                self.inserted_id = inserted_id

        self._raise_if_failing()
        for field in ("_id",) + self.unique_fields:
            if any(d.get(field) == document.get(field) for d in self.documents):
                raise DuplicateKeyError(
                    f"E11000 duplicate key error index: {field}_1",
                    11000,
                    {"keyPattern": {field: 1}, "keyValue": {field: document.get(field)}},
                )

        self.documents.append(dict(document))
        self.inserted.append({"document": document, "session": session})
        self.sessions.append(session)
        return _InsertResult(document.get("_id"))

    async def find_one(self, filter_dict=None, *args, session=None, **kwargs):
        self._raise_if_failing()
        for document in self.documents:
            if _matches(document, filter_dict):
                return dict(document)
        return None

    async def find_one_and_update(self, filter_dict, update_dict, *args, session=None,
                                  return_document=ReturnDocument.BEFORE, **kwargs):
        self._raise_if_failing()
        self.updated.append({"filter": filter_dict, "update": update_dict, "session": session})
        self.sessions.append(session)
        for document in self.documents:
            if _matches(document, filter_dict):
                before = dict(document)
                document.update(update_dict.get("$set", {}))
                return dict(document) if return_document == ReturnDocument.AFTER else before
        return None

    async def update_one(self, filter_dict, update_dict, *args, session=None, upsert=False, **kwargs):
        self._raise_if_failing()
        self.updated.append({"filter": filter_dict, "update": update_dict, "session": session})
        for document in self.documents:
            if _matches(document, filter_dict):
                document.update(update_dict.get("$set", {}))
                return {"matched_count": 1, "modified_count": 1}
        if upsert:
            document = dict(filter_dict)
            document.update(update_dict.get("$setOnInsert", {}))
            document.update(update_dict.get("$set", {}))
            self.documents.append(document)
        return {"matched_count": 0, "modified_count": 0}

    def find(self, filter_dict=None, *args, session=None, **kwargs):
        self._raise_if_failing()
        return FakeCursor([dict(d) for d in self.documents if _matches(d, filter_dict)])

    def aggregate(self, pipeline, *args, session=None, **kwargs):
        self._raise_if_failing()
        documents = [dict(d) for d in self.documents]
        for stage in pipeline:
            if "$match" in stage:
                documents = [d for d in documents if _matches(d, stage["$match"])]
            elif "$group" in stage:
                if not documents:
                    continue
                group = {"_id": None}
                for name, accumulator in stage["$group"].items():
                    if name == "_id":
                        continue
                    field = accumulator["$sum"].lstrip("$")
                    total = sum((_as_decimal(d.get(field, 0)) for d in documents), Decimal(0))
                    group[name] = Decimal128(total)
                documents = [group]
        return FakeCursor(documents)


class FakeCursor:
    def __init__(self, items):
        self.items = list(items)

    def sort(self, key, direction=1):
        present = [i for i in self.items if i.get(key) is not None]
        missing = [i for i in self.items if i.get(key) is None]
        present.sort(key=lambda i: i[key], reverse=direction == -1)
        self.items = present + missing if direction == -1 else missing + present
        return self

    def limit(self, limit_count: int):
        self.items = self.items[:limit_count]
        return self

    async def to_list(self, length=None):
        return self.items if length is None else self.items[:length]

    def __aiter__(self):
        self._iter = iter(self.items)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeSession:
    def __init__(self) -> None:
        self.committed = False
        self.aborted = False
        self.ended = False

    def start_transaction(self):
        session = self

        class _Transaction:
            async def __aenter__(self):
                return session

            async def __aexit__(self, exc_type, exc, tb):
                if exc_type is None:
                    session.committed = True
                else:
                    session.aborted = True
                return False

        return _Transaction()

    async def end_session(self):
        self.ended = True


class FakeClient:
    def __init__(self) -> None:
        self.sessions: List[FakeSession] = []

    async def start_session(self):
        session = FakeSession()
        self.sessions.append(session)
        return session


import pytest
from kiosk_compliance.database import (
    COLLECTION_CUSTOMERS,
    COLLECTION_COMPLIANCE_OVERRIDES,
    COLLECTION_CASH_IN_TXS,
    COLLECTION_CASH_OUT_TXS,
)


@pytest.fixture
def fake_db(monkeypatch):
    collections = {
        COLLECTION_CUSTOMERS: FakeCollection(unique_fields=("phone",)),
        COLLECTION_COMPLIANCE_OVERRIDES: FakeCollection(),
        COLLECTION_CASH_IN_TXS: FakeCollection(),
        COLLECTION_CASH_OUT_TXS: FakeCollection(),
    }

    def _get_collection(name: str) -> FakeCollection:
        return collections[name]

    monkeypatch.setattr("kiosk_compliance.database.customer_operations.get_collection", _get_collection)
    monkeypatch.setattr(
        "kiosk_compliance.database.compliance_override_operations.get_collection", _get_collection
    )

    return collections


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr("kiosk_compliance.database.transactions.get_client", lambda: client)
    return client
