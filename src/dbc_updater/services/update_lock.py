"""Lock file rendez-vous with the external updater."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Union

import aiofiles


class UpdateLock:
    """Filesystem marker whose existence means "update in progress".

    We create it, the external updater deletes it when done. If the updater
    never does, we remove it ourselves after the update timeout.
    """

    def __init__(self, path: Union[str, Path] = "/tmp/dbc-update.lock"):
        """Initialize update lock.

        Args:
            path: Lock file location
        """
        self.logger = logging.getLogger("dbc_updater.update_lock")
        self.path = Path(path)

    async def create(self) -> None:
        """Create the lock file with the current Unix timestamp as payload.

        Raises:
            RuntimeError: If the file cannot be written
        """
        timestamp = str(int(time.time()))
        try:
            async with aiofiles.open(self.path, "w") as f:
                await f.write(timestamp)
        except OSError as e:
            raise RuntimeError(f"LOCK_CREATE_FAILED: {self.path}: {e}") from e

        self.logger.info(f"Lock file created: {self.path} ({timestamp})")

    def exists(self) -> bool:
        """Whether the lock file is currently present."""
        return self.path.exists()

    def remove(self) -> None:
        """Forcibly delete the lock file; a missing file is not an error."""
        self.path.unlink(missing_ok=True)
        self.logger.info(f"Lock file removed: {self.path}")

    async def await_removal(self, timeout: float, poll_interval: float = 1.0) -> bool:
        """Wait for the lock file to disappear.

        Args:
            timeout: Maximum seconds to wait
            poll_interval: Seconds between existence checks

        Returns:
            True if the file is gone, False if the timeout elapsed first
        """
        try:
            await asyncio.wait_for(self._poll_until_absent(poll_interval), timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Lock file {self.path} still present after {timeout:g}s"
            )
            return False
        return True

    async def _poll_until_absent(self, poll_interval: float) -> None:
        while self.exists():
            await asyncio.sleep(poll_interval)
        self.logger.info(f"Lock file {self.path} removed by updater")
