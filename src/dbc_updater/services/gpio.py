"""GPIO power control for the DBC through the sysfs interface."""

import asyncio
import errno
import logging
from pathlib import Path
from typing import Union

import aiofiles


class PowerController:
    """Drives the single GPIO line that powers the DBC.

    The line is a system-wide resource: it may still be exported from an
    earlier unclean run, so a busy export counts as success.
    """

    def __init__(
        self,
        pin: int = 50,
        gpio_root: Union[str, Path] = "/sys/class/gpio",
        settle_delay: float = 0.1,
    ):
        """Initialize power controller.

        Args:
            pin: GPIO line number
            gpio_root: sysfs GPIO directory
            settle_delay: Seconds to wait after export for the line files to appear
        """
        self.logger = logging.getLogger("dbc_updater.gpio")
        self.pin = pin
        self.gpio_root = Path(gpio_root)
        self.settle_delay = settle_delay

    @property
    def line_dir(self) -> Path:
        return self.gpio_root / f"gpio{self.pin}"

    async def _write(self, path: Path, data: str) -> None:
        async with aiofiles.open(path, "w") as f:
            await f.write(data)

    async def export_line(self) -> None:
        """Export the GPIO line.

        Raises:
            RuntimeError: If export fails for a reason other than already exported
        """
        try:
            await self._write(self.gpio_root / "export", str(self.pin))
        except OSError as e:
            if e.errno == errno.EBUSY:
                self.logger.info(f"GPIO {self.pin} already exported")
                return
            raise RuntimeError(f"GPIO_EXPORT_FAILED: GPIO {self.pin}: {e}") from e

        self.logger.debug(f"GPIO {self.pin} exported")

    async def set_direction(self, direction: str = "out") -> None:
        """Set line direction.

        Raises:
            RuntimeError: If the direction write fails
        """
        try:
            await self._write(self.line_dir / "direction", direction)
        except OSError as e:
            raise RuntimeError(
                f"GPIO_DIRECTION_FAILED: GPIO {self.pin} -> {direction}: {e}"
            ) from e

    async def set_value(self, value: int) -> None:
        """Drive the line to 0 or 1.

        Raises:
            ValueError: If value is not 0 or 1
            RuntimeError: If the value write fails
        """
        if value not in (0, 1):
            raise ValueError(f"GPIO value must be 0 or 1, got {value}")

        try:
            await self._write(self.line_dir / "value", str(value))
        except OSError as e:
            raise RuntimeError(
                f"GPIO_VALUE_FAILED: GPIO {self.pin} -> {value}: {e}"
            ) from e

    async def prepare(self) -> bool:
        """Export the line and configure it as output (best-effort).

        Returns:
            True if both export and direction writes succeeded
        """
        ok = True
        try:
            await self.export_line()
        except RuntimeError as e:
            self.logger.warning(f"{e}; attempting to continue")
            ok = False

        await asyncio.sleep(self.settle_delay)

        # Direction is attempted regardless of the export result
        try:
            await self.set_direction("out")
        except RuntimeError as e:
            self.logger.warning(f"{e}; attempting to continue")
            ok = False

        return ok

    async def power_on(self) -> bool:
        """Raise the power line (best-effort)."""
        return await self._drive(1)

    async def power_off(self) -> bool:
        """Lower the power line (best-effort)."""
        return await self._drive(0)

    async def _drive(self, value: int) -> bool:
        try:
            await self.set_value(value)
        except RuntimeError as e:
            self.logger.warning(f"{e}; attempting to continue")
            return False
        return True
