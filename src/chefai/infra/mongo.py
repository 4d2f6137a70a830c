# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from chefai.infra.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class MongoConnection:
    """Process-wide, lazily opened MongoDB client.

    Owned by the application factory and handed to the stores. A failed
    connection attempt is not cached: the next call tries again.
    """

    def __init__(
        self,
        uri: Optional[str],
        *,
        timeout_ms: int = 5000,
        client: Optional[MongoClient] = None,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self._uri = uri
        self._timeout_ms = timeout_ms
        self._client = client
        self._client_factory = client_factory
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._uri) or self._client is not None

    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> MongoClient:
        if self._client is not None:
            return self._client
        if not self._uri:
            raise StoreUnavailable("MONGODB_URI is not configured")

        with self._lock:
            if self._client is not None:
                return self._client
            client = self._client_factory(
                self._uri,
                serverSelectionTimeoutMS=self._timeout_ms,
                socketTimeoutMS=45000,
                maxPoolSize=10,
                maxIdleTimeMS=30000,
            )
            try:
                client.admin.command("ping")
            except PyMongoError as exc:
                client.close()
                logger.warning("MongoDB connection failed: %s", exc)
                raise StoreUnavailable(str(exc)) from exc
            logger.info("Connected to MongoDB")
            self._client = client
            return client

    def database(self, name: str) -> Database:
        return self.connect()[name]

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
