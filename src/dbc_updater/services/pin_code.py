"""BLE pin-code gate signaling the update window to the pairing subsystem."""

import asyncio
import logging

from dbc_updater.services.state_store import StateStore

BLE_HASH = "ble"
PIN_CODE_FIELD = "pin-code"
UPDATE_SENTINEL = "UPDATE"


class PinCodeGate:
    """Sets and clears the ``ble.pin-code`` update sentinel."""

    def __init__(self, store: StateStore, timeout: float = 30.0):
        """Initialize pin-code gate.

        Args:
            store: State store used for scoped connections
            timeout: Bound in seconds for each state store operation
        """
        self.logger = logging.getLogger("dbc_updater.pin_code")
        self.store = store
        self.timeout = timeout

    async def mark_update_window(self) -> None:
        """Set ``ble.pin-code`` to the UPDATE sentinel.

        Raises:
            redis.exceptions.RedisError: If the state store rejects the write
            asyncio.TimeoutError: If the write does not finish within the bound
        """
        async with self.store.connect() as client:
            await asyncio.wait_for(
                client.hset(BLE_HASH, PIN_CODE_FIELD, UPDATE_SENTINEL),
                timeout=self.timeout,
            )
        self.logger.info(f"BLE pin-code set to {UPDATE_SENTINEL}")

    async def clear_update_window(self) -> None:
        """Delete the ``ble.pin-code`` field.

        Raises:
            redis.exceptions.RedisError: If the state store rejects the delete
            asyncio.TimeoutError: If the delete does not finish within the bound
        """
        async with self.store.connect() as client:
            await asyncio.wait_for(
                client.hdel(BLE_HASH, PIN_CODE_FIELD),
                timeout=self.timeout,
            )
        self.logger.info("BLE pin-code cleared")
