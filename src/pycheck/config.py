"""Check configuration."""

import math
from dataclasses import dataclass

from pycheck.models import WorkSource
from pycheck.procfs import DEFAULT_PROC_ROOT, DEFAULT_READ_TIMEOUT


@dataclass(slots=True, frozen=True)
class CheckConfig:
    """
    Settings for one check run.

    Thresholds are not required to be ordered: when ``crit`` is below
    ``warn`` a value above both is still CRITICAL.
    """

    interval: float = 1.0  # Seconds between the two samples of a rate
    warn: float = 80.0
    crit: float = 95.0
    work_source: WorkSource = WorkSource.ACTIVE
    show_hogs: int = 0  # Number of top processes to report
    verbose: bool = False  # Report hogs even when the check is OK
    proc_root: str = DEFAULT_PROC_ROOT
    read_timeout: float | None = DEFAULT_READ_TIMEOUT

    def __post_init__(self) -> None:
        if not (math.isfinite(self.interval) and self.interval > 0):
            raise ValueError(f"interval must be a positive number of seconds, got {self.interval}")
        for name in ("warn", "crit"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} threshold must be a finite number")
        if self.show_hogs < 0:
            raise ValueError(f"show_hogs must not be negative, got {self.show_hogs}")
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive, got {self.read_timeout}")
