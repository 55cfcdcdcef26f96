"""Item handlers shared by every transport.

These functions know nothing about HTTP. They validate input, talk to the
collection through the ``ConnectionManager`` and raise ``ItemsError``
subclasses that the web layer turns into status codes.
"""

from __future__ import annotations

import math
import re
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

import structlog
from bson import ObjectId
from bson.errors import BSONError
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from app import metrics
from app.errors import InvalidItemIdError, ItemNotFoundError, StoreError
from app.store import ConnectionManager

LOGGER = structlog.get_logger(__name__)

# leading decimal literal the way JavaScript's parseFloat reads it
_FLOAT_PREFIX = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

# bson raises OverflowError for ints wider than 8 bytes while encoding
_DRIVER_ERRORS = (PyMongoError, BSONError, OverflowError)


def coerce_price(value: Any) -> float:
    """Coerce a caller-supplied price to a float, NaN when unparseable."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value.lstrip())
        if match is None:
            return math.nan
        literal = match.group(0)
        if literal.lstrip("+-") == "Infinity":
            return -math.inf if literal.startswith("-") else math.inf
        return float(literal)
    return math.nan


def parse_item_id(candidate: str) -> ObjectId:
    if not ObjectId.is_valid(candidate):
        raise InvalidItemIdError()
    return ObjectId(candidate)


@dataclass(slots=True)
class InsertResult:
    acknowledged: bool
    inserted_id: Any

    def asdict(self) -> dict[str, Any]:
        return {"acknowledged": self.acknowledged, "insertedId": self.inserted_id}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ItemService:
    """List, fetch and create documents in the items collection."""

    def __init__(
        self,
        connections: ConnectionManager,
        *,
        stamp_created_at: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._connections = connections
        self._stamp_created_at = stamp_created_at
        self._clock = clock

    async def list_items(self) -> list[dict[str, Any]]:
        """Return every item, newest first."""
        async with _store_call("list", "Error fetching items"):
            collection = await self._connections.get_collection()
            cursor = collection.find().sort("_id", DESCENDING)
            items = await cursor.to_list(length=None)
        LOGGER.debug("items.list", count=len(items))
        return items

    async def get_item(self, item_id: str) -> dict[str, Any]:
        object_id = parse_item_id(item_id)
        async with _store_call("get", "Server error"):
            collection = await self._connections.get_collection()
            item = await collection.find_one({"_id": object_id})
        if item is None:
            raise ItemNotFoundError()
        return item

    async def create_item(self, payload: Mapping[str, Any]) -> InsertResult:
        """Insert a new item and return the store's acknowledgement.

        A ``price`` key holding any non-null value, including ``0``, ``""`` and
        ``false``, is coerced to a float; an unparseable value is stored as NaN
        rather than rejected. A ``null`` price is stored untouched.
        """
        document = dict(payload)
        if document.get("price") is not None:
            document["price"] = coerce_price(document["price"])
        if self._stamp_created_at:
            document["createdAt"] = self._clock()

        async with _store_call("create", "Error saving"):
            collection = await self._connections.get_collection()
            result = await collection.insert_one(document)

        metrics.observe_item_created()
        LOGGER.info("items.create", item_id=str(result.inserted_id))
        return InsertResult(acknowledged=result.acknowledged, inserted_id=result.inserted_id)


@asynccontextmanager
async def _store_call(operation: str, message: str) -> AsyncIterator[None]:
    """Time one store interaction and convert driver failures to StoreError."""
    start = perf_counter()
    failed = False
    try:
        yield
    except _DRIVER_ERRORS as exc:
        failed = True
        LOGGER.error("store.call_failed", operation=operation, error=str(exc))
        raise StoreError(message, detail=str(exc)) from exc
    finally:
        metrics.observe_store_call(
            operation=operation,
            latency_ms=(perf_counter() - start) * 1000,
            failed=failed,
        )
