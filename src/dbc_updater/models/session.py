"""Session models for one update run."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from dbc_updater.models.status import StepOutcome, StopReason


class StepResult(BaseModel):
    """Recorded outcome of a single sequence step."""

    name: str = Field(..., description="Step identifier (e.g., 'stop-services')")
    required: bool = Field(..., description="Whether failure aborts the run")
    outcome: StepOutcome = Field(..., description="What happened")
    error: Optional[str] = Field(None, description="Error text if the step failed")
    duration: float = Field(0.0, ge=0, description="Seconds spent in the step")


class ReadinessReport(BaseModel):
    """Summary of one readiness monitoring window."""

    messages: int = Field(0, ge=0, description="Channel payloads received")
    resets: int = Field(0, ge=0, description="dashboard.ready resets performed")
    reason: StopReason = Field(..., description="Why monitoring ended")


class UpdateSession(BaseModel):
    """Process-lifetime state owned by the sequencer.

    Created at process start and never persisted.
    """

    update_timeout: float = Field(..., gt=0, description="Update wait bound")
    gpio_pin: int = Field(..., ge=0, description="DBC power-enable line")
    lock_path: Path = Field(..., description="Update lock marker")
    started_at: datetime = Field(default_factory=datetime.now)
    results: list[StepResult] = Field(default_factory=list)
    forced_lock_removal: bool = Field(
        False, description="Lock was removed by us after the update timeout"
    )
    readiness: Optional[ReadinessReport] = Field(
        None, description="Outcome of the readiness monitoring window"
    )

    def record(self, result: StepResult) -> None:
        """Append a step result."""
        self.results.append(result)

    def result_for(self, name: str) -> Optional[StepResult]:
        """Return the recorded result of a step, if any."""
        for result in self.results:
            if result.name == name:
                return result
        return None

    @property
    def succeeded(self) -> bool:
        """True when no step failed or was skipped."""
        return all(
            r.outcome in (StepOutcome.SUCCESS, StepOutcome.WARNING)
            for r in self.results
        )

