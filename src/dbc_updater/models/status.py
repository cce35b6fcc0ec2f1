"""Status enums for the DBC update sequence."""

from enum import Enum


class StepOutcome(str, Enum):
    """Outcome recorded for each sequence step.

    success  - action completed
    warning  - best-effort action failed, run continued
    failed   - required action failed, run aborted
    skipped  - never executed because an earlier required step failed
    """

    SUCCESS = "success"
    WARNING = "warning"
    FAILED = "failed"
    SKIPPED = "skipped"


class StopReason(str, Enum):
    """Why the readiness monitor stopped receiving."""

    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    FIRST_RESET = "first_reset"
