"""Threshold evaluation and check results."""

import math
from dataclasses import dataclass, field

from pycheck.models import AlertLevel


def evaluate(value: float, warn: float, crit: float) -> AlertLevel:
    """
    Map a measurement onto an alert level.

    Critical is tested first so that it wins when the thresholds overlap.
    Both comparisons are strict: a value equal to a threshold does not trip
    it. A NaN measurement is UNKNOWN, never OK.
    """
    if math.isnan(value):
        return AlertLevel.UNKNOWN
    if value > crit:
        return AlertLevel.CRITICAL
    if value > warn:
        return AlertLevel.WARNING
    return AlertLevel.OK


@dataclass(slots=True)
class CheckResult:
    """Outcome of one check, ready to be reported."""

    name: str
    level: AlertLevel
    summary: str
    details: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return self.level.exit_code

    def render(self) -> str:
        """Status line followed by any detail lines."""
        lines = [f"{self.name} {self.level.label}: {self.summary}"]
        lines.extend(self.details)
        return "\n".join(lines)


def unknown(name: str, error: Exception) -> CheckResult:
    """Result for a check that could not observe the system."""
    return CheckResult(
        name=name,
        level=AlertLevel.UNKNOWN,
        summary=f"{type(error).__name__}: {error}",
    )
