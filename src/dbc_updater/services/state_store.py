"""Scoped connections to the shared redis state store."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis


class StateStore:
    """Factory for short-lived state store connections.

    Every operation acquires its own client and releases it on exit, so no
    connection outlives the step that needed it.
    """

    def __init__(self, host: str = "192.168.7.1", port: int = 6379, db: int = 0):
        """Initialize state store.

        Args:
            host: Redis host
            port: Redis port
            db: Redis database index
        """
        self.logger = logging.getLogger("dbc_updater.state_store")
        self.host = host
        self.port = port
        self.db = db

    def _create_client(self) -> redis.Redis:
        return redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            decode_responses=True,
        )

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[redis.Redis]:
        """Yield a client that is closed on every exit path."""
        client = self._create_client()
        self.logger.debug(f"Opened connection to {self.host}:{self.port}/{self.db}")
        try:
            yield client
        finally:
            await client.aclose()
            self.logger.debug("Closed state store connection")
