"""MongoDB connection management.

One ``ConnectionManager`` owns a single ``AsyncMongoClient`` for the life of
the process. Serverless invocations reuse the warm client between calls, and
the long-running server connects once at startup. The first connection is
single-flight: concurrent cold-start callers wait on the same lock and all
receive the handle established by whichever caller got there first.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConfigurationError, PyMongoError
from pymongo.server_api import ServerApi

from app.settings import Settings

LOGGER = structlog.get_logger(__name__)

ClientFactory = Callable[..., Any]


class ConnectionManager:
    """Lazily establishes and caches the database handle."""

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: ClientFactory = AsyncMongoClient,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: Any | None = None
        self._database: AsyncDatabase | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._database is not None

    async def get_database(self) -> AsyncDatabase:
        """Return the cached handle, connecting on the first call."""
        if self._database is not None:
            return self._database

        async with self._lock:
            # another caller may have finished connecting while we waited
            if self._database is None:
                self._database = await self._connect()
        return self._database

    async def get_collection(self) -> AsyncCollection:
        database = await self.get_database()
        return database[self._settings.mongodb_collection]

    async def close(self) -> None:
        """Release the client. Safe to call when never connected."""
        client = self._client
        self._client = None
        self._database = None
        if client is not None:
            await client.close()
            LOGGER.info("store.closed")

    async def _connect(self) -> AsyncDatabase:
        uri = self._settings.mongodb_uri
        if not uri:
            raise ConfigurationError("MONGODB_URI is not set")

        client = self._client_factory(
            uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            serverSelectionTimeoutMS=self._settings.mongodb_server_selection_timeout_ms,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError:
            await client.close()
            raise

        self._client = client
        LOGGER.info(
            "store.connected",
            database=self._settings.mongodb_database,
            collection=self._settings.mongodb_collection,
        )
        return client[self._settings.mongodb_database]
