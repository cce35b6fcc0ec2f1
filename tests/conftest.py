"""Global pytest fixtures and configuration."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from redis.exceptions import ConnectionError as RedisConnectionError, ResponseError  # noqa: E402

from dbc_updater.models.settings import UpdaterSettings  # noqa: E402
from dbc_updater.services.state_store import StateStore  # noqa: E402


class FakeBackend:
    """In-memory stand-in for the redis server: hashes plus pub/sub."""

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.subscribers: dict[str, list["FakePubSub"]] = {}
        self.hset_calls: list[tuple[str, str, str]] = []
        self.clients_opened = 0
        self.clients_closed = 0
        self.fail_hset = False
        self.fail_subscribe = False
        self.fail_receive = False
        self.hset_delay = 0.0

    async def publish(self, channel: str, payload: str) -> int:
        receivers = list(self.subscribers.get(channel, []))
        for pubsub in receivers:
            pubsub.queue.put_nowait(
                {"type": "message", "channel": channel, "data": payload}
            )
        return len(receivers)


class FakePubSub:
    def __init__(self, backend: FakeBackend):
        self.backend = backend
        self.queue: asyncio.Queue = asyncio.Queue()
        self.channels: list[str] = []
        self.closed = False

    async def subscribe(self, channel: str) -> None:
        if self.backend.fail_subscribe:
            raise RedisConnectionError("Connection refused")
        self.channels.append(channel)
        self.backend.subscribers.setdefault(channel, []).append(self)
        self.queue.put_nowait({"type": "subscribe", "channel": channel, "data": 1})

    async def get_message(self, ignore_subscribe_messages=False, timeout=0.0):
        if self.backend.fail_receive and ignore_subscribe_messages:
            raise RedisConnectionError("Connection lost")
        try:
            message = await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if ignore_subscribe_messages and message["type"] == "subscribe":
            return None
        return message

    async def aclose(self) -> None:
        for channel in self.channels:
            self.backend.subscribers[channel].remove(self)
        self.channels = []
        self.closed = True


class FakeRedisClient:
    def __init__(self, backend: FakeBackend):
        self.backend = backend

    async def hset(self, name: str, key: str, value: str) -> int:
        if self.backend.hset_delay:
            await asyncio.sleep(self.backend.hset_delay)
        if self.backend.fail_hset:
            raise ResponseError("READONLY You can't write against a read only replica")
        self.backend.hset_calls.append((name, key, value))
        fields = self.backend.hashes.setdefault(name, {})
        added = 0 if key in fields else 1
        fields[key] = value
        return added

    async def hdel(self, name: str, *keys: str) -> int:
        fields = self.backend.hashes.get(name, {})
        return sum(1 for key in keys if fields.pop(key, None) is not None)

    def pubsub(self) -> FakePubSub:
        return FakePubSub(self.backend)

    async def aclose(self) -> None:
        self.backend.clients_closed += 1


class FakeStateStore(StateStore):
    """StateStore whose clients talk to a FakeBackend."""

    def __init__(self, backend: FakeBackend):
        super().__init__(host="fake", port=6379, db=0)
        self.backend = backend

    def _create_client(self):
        self.backend.clients_opened += 1
        return FakeRedisClient(self.backend)


@pytest.fixture
def fake_backend():
    """Fresh in-memory redis backend."""
    return FakeBackend()


@pytest.fixture
def fake_store(fake_backend):
    """StateStore wired to the in-memory backend."""
    return FakeStateStore(fake_backend)


@pytest.fixture
def gpio_root(tmp_path):
    """Fake sysfs GPIO tree with line 50 already present."""
    root = tmp_path / "gpio"
    (root / "gpio50").mkdir(parents=True)
    (root / "export").write_text("")
    return root


@pytest.fixture
def fast_settings(tmp_path, gpio_root):
    """Settings with short deadlines and temp paths for quick runs."""
    return UpdaterSettings(
        gpio_root=gpio_root,
        gpio_settle_delay=0,
        lock_path=tmp_path / "dbc-update.lock",
        poll_interval=0.02,
        signal_timeout=0.2,
        update_timeout=1.0,
        handoff_delay=0,
        log_file=None,
    )


@pytest.fixture
def make_process():
    """Factory for mock asyncio subprocesses with a given exit code."""

    def _make(returncode: int = 0, stderr: bytes = b"") -> AsyncMock:
        process = AsyncMock()
        process.communicate = AsyncMock(return_value=(b"", stderr))
        process.returncode = returncode
        return process

    return _make


@pytest.fixture
def mock_services():
    """ServiceController mock whose stop/start succeed."""
    services = MagicMock()
    services.stop = AsyncMock(return_value=["librescoot-vehicle"])
    services.start = AsyncMock(return_value=["librescoot-vehicle"])
    return services
