"""Update orchestration sequencer for the DBC power-cycle and update handoff."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field

from dbc_updater.models.session import StepResult, UpdateSession
from dbc_updater.models.settings import UpdaterSettings
from dbc_updater.models.status import StepOutcome
from dbc_updater.services.gpio import PowerController
from dbc_updater.services.pin_code import PinCodeGate
from dbc_updater.services.process import ServiceController
from dbc_updater.services.readiness import ReadinessMonitor
from dbc_updater.services.state_store import StateStore
from dbc_updater.services.update_lock import UpdateLock


class Step(BaseModel):
    """One entry of the sequence table.

    An action fails by raising. Returning ``False`` marks a degraded result
    that is recorded as a warning without aborting, whatever ``required`` says.
    """

    name: str = Field(..., description="Step identifier")
    description: str = Field(..., description="Transcript line shown when starting")
    required: bool = Field(..., description="Failure aborts the remaining steps")
    action: Callable[[], Awaitable[Any]]


class Sequencer:
    """Drives the update handoff steps in fixed order.

    Sequence:
    stop services → prepare power → power on → monitor readiness → set pin-code
    → create lock → run update → await update → clear pin-code → power off
    → start services

    No compensating actions run when a required step aborts the sequence;
    whatever was already done stays done.
    """

    def __init__(
        self,
        settings: Optional[UpdaterSettings] = None,
        services: Optional[ServiceController] = None,
        power: Optional[PowerController] = None,
        readiness: Optional[ReadinessMonitor] = None,
        pin_code: Optional[PinCodeGate] = None,
        lock: Optional[UpdateLock] = None,
    ):
        """Initialize sequencer, building default collaborators from settings.

        Args:
            settings: UpdaterSettings (defaults if None)
            services: ServiceController instance
            power: PowerController instance
            readiness: ReadinessMonitor instance
            pin_code: PinCodeGate instance
            lock: UpdateLock instance
        """
        self.logger = logging.getLogger("dbc_updater.sequencer")
        self.settings = settings or UpdaterSettings()

        store = StateStore(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
        )
        self.services = services or ServiceController()
        self.power = power or PowerController(
            pin=self.settings.gpio_pin,
            gpio_root=self.settings.gpio_root,
            settle_delay=self.settings.gpio_settle_delay,
        )
        self.readiness = readiness or ReadinessMonitor(
            store,
            channel=self.settings.dashboard_channel,
            ready_payload=self.settings.ready_payload,
            stop_after_first_reset=self.settings.stop_after_first_reset,
        )
        self.pin_code = pin_code or PinCodeGate(
            store, timeout=self.settings.signal_timeout
        )
        self.lock = lock or UpdateLock(self.settings.lock_path)

        self.session = UpdateSession(
            update_timeout=self.settings.update_timeout,
            gpio_pin=self.settings.gpio_pin,
            lock_path=self.lock.path,
        )
        self._readiness_stop = asyncio.Event()

    def build_steps(self) -> list[Step]:
        """Return the fixed step table."""
        return [
            Step(
                name="stop-services",
                description="Stopping vehicle services",
                required=True,
                action=self._stop_services,
            ),
            Step(
                name="prepare-power",
                description="Preparing GPIO for DBC power",
                required=False,
                action=self.power.prepare,
            ),
            Step(
                name="power-on",
                description="Turning on DBC",
                required=False,
                action=self.power.power_on,
            ),
            Step(
                name="readiness-monitor",
                description="Monitoring and resetting dashboard ready state",
                required=False,
                action=self._monitor_readiness,
            ),
            Step(
                name="set-pin-code",
                description="Setting BLE pin-code to UPDATE",
                required=False,
                action=self.pin_code.mark_update_window,
            ),
            Step(
                name="create-lock",
                description="Creating update lock file",
                required=True,
                action=self.lock.create,
            ),
            Step(
                name="run-update",
                description="Handing off to external updater",
                required=False,
                action=self._run_update,
            ),
            Step(
                name="await-update",
                description="Waiting for update to complete (lock file to be deleted)",
                required=False,
                action=self._await_update,
            ),
            Step(
                name="clear-pin-code",
                description="Clearing BLE pin-code",
                required=False,
                action=self.pin_code.clear_update_window,
            ),
            Step(
                name="power-off",
                description="Turning off DBC",
                required=True,
                action=self.power.power_off,
            ),
            Step(
                name="start-services",
                description="Restarting vehicle services",
                required=True,
                action=self._start_services,
            ),
        ]

    async def run(self) -> bool:
        """Execute all steps, applying each step's abort-or-continue policy.

        Returns:
            True if the sequence ran to completion, False if a required step failed
        """
        self.logger.info("DBC Updater Tool")
        steps = self.build_steps()
        completed = await self.run_steps(steps)
        self._log_summary()
        if completed:
            self.logger.info("DBC Updater Tool finished")
        return completed

    async def run_steps(self, steps: list[Step]) -> bool:
        """Interpret a step list, recording results in the session.

        Args:
            steps: Steps to execute in order

        Returns:
            True if no required step failed
        """
        loop = asyncio.get_running_loop()

        for index, step in enumerate(steps):
            self.logger.info(f"{step.description}...")
            started = loop.time()

            try:
                result = await step.action()
            except Exception as e:
                duration = loop.time() - started
                if step.required:
                    self.logger.error(f"Step {step.name} failed: {e}")
                    self.session.record(
                        StepResult(
                            name=step.name,
                            required=True,
                            outcome=StepOutcome.FAILED,
                            error=str(e),
                            duration=duration,
                        )
                    )
                    for skipped in steps[index + 1:]:
                        self.session.record(
                            StepResult(
                                name=skipped.name,
                                required=skipped.required,
                                outcome=StepOutcome.SKIPPED,
                            )
                        )
                    self.logger.error(
                        f"Aborting: {len(steps) - index - 1} remaining step(s) skipped"
                    )
                    return False

                self.logger.warning(f"Step {step.name} failed, continuing: {e}")
                self.session.record(
                    StepResult(
                        name=step.name,
                        required=False,
                        outcome=StepOutcome.WARNING,
                        error=str(e),
                        duration=duration,
                    )
                )
                continue

            outcome = StepOutcome.WARNING if result is False else StepOutcome.SUCCESS
            self.session.record(
                StepResult(
                    name=step.name,
                    required=step.required,
                    outcome=outcome,
                    duration=loop.time() - started,
                )
            )
            self.logger.info(f"{step.description}: {outcome.value}")

        return True

    async def _stop_services(self) -> None:
        await self.services.stop(self.settings.services)

    async def _start_services(self) -> None:
        await self.services.start(self.settings.services)

    async def _monitor_readiness(self) -> None:
        report = await self.readiness.observe_readiness(
            self.settings.signal_timeout, stop_event=self._readiness_stop
        )
        self.session.readiness = report
        self.logger.info(
            f"Dashboard ready state monitoring finished ({report.reason.value}): "
            f"messages={report.messages}, resets={report.resets}"
        )

    async def _run_update(self) -> None:
        self.logger.info(
            f"External updater signalled through lock file {self.lock.path}"
        )
        await asyncio.sleep(min(self.settings.handoff_delay, self.settings.update_timeout))

    async def _await_update(self) -> bool:
        removed = await self.lock.await_removal(
            self.settings.update_timeout, poll_interval=self.settings.poll_interval
        )
        if removed:
            self.logger.info("Update completed")
            return True

        # Never leave the vehicle powered down behind a hung updater
        self.logger.warning("Update timeout reached, removing lock file...")
        self.lock.remove()
        self.session.forced_lock_removal = True
        return False

    def _log_summary(self) -> None:
        readiness = self.session.readiness
        if readiness is not None:
            self.logger.info(
                f"  readiness: {readiness.reason.value}, "
                f"messages={readiness.messages}, resets={readiness.resets}"
            )
        for result in self.session.results:
            line = f"  {result.name:<18} {result.outcome.value}"
            if result.error:
                line += f" ({result.error})"
            self.logger.info(line)
