"""Dashboard readiness monitor over the state store notification channel."""

import asyncio
import logging
from typing import Optional

from redis.exceptions import RedisError

from dbc_updater.models.session import ReadinessReport
from dbc_updater.models.status import StopReason
from dbc_updater.services.state_store import StateStore

DASHBOARD_HASH = "dashboard"
READY_FIELD = "ready"


class ReadinessMonitor:
    """Watches the dashboard channel and resets ``dashboard.ready``.

    Monitoring keeps going after a reset until the timeout elapses or a stop
    is requested; the dashboard may announce readiness more than once while
    it boots.
    """

    def __init__(
        self,
        store: StateStore,
        channel: str = "dashboard",
        ready_payload: str = "ready",
        stop_after_first_reset: bool = False,
        receive_slice: float = 0.5,
    ):
        """Initialize readiness monitor.

        Args:
            store: State store used for the scoped connection
            channel: Notification channel to subscribe to
            ready_payload: Payload announcing dashboard readiness
            stop_after_first_reset: Return right after the first reset
            receive_slice: Max seconds per receive call, so stop requests are noticed
        """
        self.logger = logging.getLogger("dbc_updater.readiness")
        self.store = store
        self.channel = channel
        self.ready_payload = ready_payload
        self.stop_after_first_reset = stop_after_first_reset
        self.receive_slice = receive_slice

    async def observe_readiness(
        self,
        timeout: float,
        stop_event: Optional[asyncio.Event] = None,
    ) -> ReadinessReport:
        """Monitor the channel for readiness events until timeout or stop.

        Args:
            timeout: Seconds to monitor, subscription included
            stop_event: Optional event requesting early cancellation

        Returns:
            ReadinessReport with message/reset counts and the stop reason

        Raises:
            RuntimeError: If the subscription is not acknowledged
            redis.exceptions.RedisError: If receiving from the channel fails
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        messages = 0
        resets = 0

        async with self.store.connect() as client:
            pubsub = client.pubsub()
            try:
                await self._subscribe(pubsub, deadline)
                self.logger.info(f"Subscribed to {self.channel} channel")

                while True:
                    if stop_event is not None and stop_event.is_set():
                        reason = StopReason.CANCELLED
                        break

                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        reason = StopReason.TIMEOUT
                        break

                    message = await pubsub.get_message(
                        ignore_subscribe_messages=True,
                        timeout=min(remaining, self.receive_slice),
                    )
                    if message is None or message.get("type") != "message":
                        continue

                    messages += 1
                    payload = message.get("data")
                    self.logger.info(
                        f"Received message on {self.channel} channel: {payload}"
                    )
                    if payload != self.ready_payload:
                        continue

                    self.logger.info("Dashboard ready detected, resetting state...")
                    if await self._reset_ready(client, deadline):
                        resets += 1
                        if self.stop_after_first_reset:
                            reason = StopReason.FIRST_RESET
                            break
            finally:
                await pubsub.aclose()

        self.logger.info(
            f"Readiness monitoring ended ({reason.value}): "
            f"messages={messages}, resets={resets}"
        )
        return ReadinessReport(messages=messages, resets=resets, reason=reason)

    async def _subscribe(self, pubsub, deadline: float) -> None:
        """Subscribe and wait for the acknowledgement."""
        remaining = max(deadline - asyncio.get_running_loop().time(), 0.0)
        try:
            await asyncio.wait_for(pubsub.subscribe(self.channel), timeout=remaining)
            ack = await pubsub.get_message(timeout=remaining)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise RuntimeError(
                f"READINESS_SUBSCRIBE_FAILED: {self.channel}: {e!r}"
            ) from e

        if ack is None or ack.get("type") != "subscribe":
            raise RuntimeError(
                f"READINESS_SUBSCRIBE_FAILED: {self.channel}: "
                f"no subscription acknowledgement"
            )

    async def _reset_ready(self, client, deadline: float) -> bool:
        remaining = max(deadline - asyncio.get_running_loop().time(), 0.0)
        try:
            await asyncio.wait_for(
                client.hset(DASHBOARD_HASH, READY_FIELD, "false"), timeout=remaining
            )
        except (RedisError, asyncio.TimeoutError) as e:
            self.logger.error(f"Failed to reset dashboard ready state: {e!r}")
            return False
        self.logger.info("Dashboard ready state reset to false")
        return True
