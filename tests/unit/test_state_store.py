"""Unit tests for StateStore scoped connections."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from dbc_updater.services.state_store import StateStore


@pytest.mark.unit
class TestStateStore:

    def test_client_configuration(self):
        """Client targets the configured server with decoded responses."""
        store = StateStore(host="10.0.0.2", port=6380, db=3)

        with patch("dbc_updater.services.state_store.redis.Redis") as mock_redis:
            store._create_client()

        mock_redis.assert_called_once_with(
            host="10.0.0.2", port=6380, db=3, decode_responses=True
        )

    @pytest.mark.asyncio
    async def test_connect_closes_client(self):
        store = StateStore()
        client = MagicMock()
        client.aclose = AsyncMock()

        with patch.object(store, "_create_client", return_value=client):
            async with store.connect() as conn:
                assert conn is client

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_closes_client_on_error(self):
        """Client is released even when the operation raises."""
        store = StateStore()
        client = MagicMock()
        client.aclose = AsyncMock()

        with patch.object(store, "_create_client", return_value=client):
            with pytest.raises(RuntimeError):
                async with store.connect():
                    raise RuntimeError("boom")

        client.aclose.assert_awaited_once()
