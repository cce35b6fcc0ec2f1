"""Process management for systemd vehicle service control."""

import asyncio
import logging
from typing import Iterable, Optional


class ServiceController:
    """Starts and stops a set of vehicle services as one logical unit.

    Each member gets its own ``systemctl`` invocation. The unit succeeds when
    at least one member command succeeds, because the service name differs
    between deployed system versions.
    """

    def __init__(self, systemctl: str = "systemctl"):
        """Initialize service controller.

        Args:
            systemctl: systemctl executable name or path
        """
        self.logger = logging.getLogger("dbc_updater.process")
        self.systemctl = systemctl

    async def stop(self, services: Iterable[str]) -> list[str]:
        """Stop every service in the set.

        Args:
            services: Service names (e.g., "librescoot-vehicle")

        Returns:
            Names whose stop command succeeded

        Raises:
            RuntimeError: If every stop command fails
        """
        return await self._apply("stop", list(services))

    async def start(self, services: Iterable[str]) -> list[str]:
        """Start every service in the set.

        Args:
            services: Service names

        Returns:
            Names whose start command succeeded

        Raises:
            RuntimeError: If every start command fails
        """
        return await self._apply("start", list(services))

    async def _apply(self, action: str, services: list[str]) -> list[str]:
        succeeded = []
        failures = []

        for service_name in services:
            error = await self._run_systemctl(action, service_name)
            if error is None:
                self.logger.info(f"Service {service_name}: {action} ok")
                succeeded.append(service_name)
            else:
                self.logger.warning(f"Service {service_name}: {action} failed ({error})")
                failures.append(f"{service_name} ({error})")

        if not succeeded:
            raise RuntimeError(
                f"SERVICE_{action.upper()}_FAILED: "
                f"failed to {action} all of {', '.join(failures)}"
            )

        return succeeded

    async def _run_systemctl(self, action: str, service_name: str) -> Optional[str]:
        """Run one systemctl command.

        Returns:
            None on success, otherwise a short error description
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.systemctl,
                action,
                service_name,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate()
        except OSError as e:
            return f"cannot execute {self.systemctl}: {e}"

        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            self.logger.debug(
                f"systemctl {action} {service_name} stderr: {detail}"
            )
            return f"exit code {process.returncode}"

        return None
