"""In-memory stand-in for the parts of AsyncMongoClient the service uses."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from bson import ObjectId
from pymongo.errors import PyMongoError
from pymongo.results import InsertOneResult


class FakeCursor:
    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._documents = sorted(
            self._documents, key=lambda doc: doc[key], reverse=direction < 0
        )
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._documents[:length]]


class FakeCollection:
    def __init__(self) -> None:
        self.documents: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.fail_with: Exception | None = None

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def find(self, filter: dict[str, Any] | None = None) -> FakeCursor:
        self._record("find")
        return FakeCursor(list(self.documents))

    async def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:
        self._record("find_one")
        for doc in self.documents:
            if all(doc.get(key) == value for key, value in filter.items()):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, document: dict[str, Any]) -> InsertOneResult:
        self._record("insert_one")
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return InsertOneResult(document["_id"], acknowledged=True)


class FakeDatabase:
    def __init__(self, name: str, collections: dict[str, FakeCollection]) -> None:
        self.name = name
        self._collections = collections

    def __getitem__(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection())


class FakeAdmin:
    def __init__(self, mongo: "FakeMongo") -> None:
        self._mongo = mongo

    async def command(self, name: str) -> dict[str, Any]:
        self._mongo.pings += 1
        # yield so overlapping cold starts actually interleave
        await asyncio.sleep(0)
        if self._mongo.ping_error is not None:
            raise self._mongo.ping_error
        return {"ok": 1.0}


class FakeClient:
    def __init__(self, mongo: "FakeMongo", uri: str, options: dict[str, Any]) -> None:
        self.uri = uri
        self.options = options
        self.closed = False
        self.admin = FakeAdmin(mongo)
        self._mongo = mongo

    def __getitem__(self, name: str) -> FakeDatabase:
        return FakeDatabase(name, self._mongo.collections)

    async def close(self) -> None:
        self.closed = True


class FakeMongo:
    """Client factory that counts how many clients were created."""

    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}
        self.clients: list[FakeClient] = []
        self.pings = 0
        self.ping_error: PyMongoError | None = None

    def __call__(self, uri: str, **options: Any) -> FakeClient:
        client = FakeClient(self, uri, options)
        self.clients.append(client)
        return client

    @property
    def connect_count(self) -> int:
        return len(self.clients)

    def collection(self, name: str = "products") -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())
