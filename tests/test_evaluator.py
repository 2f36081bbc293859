"""Tests for threshold evaluation."""

import pytest

from pycheck.errors import InsufficientData
from pycheck.evaluator import CheckResult, evaluate, unknown
from pycheck.models import AlertLevel


@pytest.mark.parametrize(
    "value, warn, crit, expected",
    [
        (10.0, 80.0, 95.0, AlertLevel.OK),
        (80.0, 80.0, 95.0, AlertLevel.OK),
        (80.1, 80.0, 95.0, AlertLevel.WARNING),
        (95.0, 80.0, 95.0, AlertLevel.WARNING),
        (95.1, 80.0, 95.0, AlertLevel.CRITICAL),
        (96.0, 99.0, 95.0, AlertLevel.CRITICAL),
        (97.0, 95.0, 95.0, AlertLevel.CRITICAL),
    ],
)
def test_evaluate(value, warn, crit, expected):
    """Test strict thresholds with critical checked before warning."""
    assert evaluate(value, warn=warn, crit=crit) is expected


def test_evaluate_nan_is_unknown():
    """Test a meaningless value is never reported as OK."""
    assert evaluate(float("nan"), 80.0, 95.0) is AlertLevel.UNKNOWN


class TestCheckResult:
    """Tests for CheckResult rendering."""

    def test_render_with_details(self):
        """Test the status line comes first, details after."""
        result = CheckResult(
            name="check-ram",
            level=AlertLevel.WARNING,
            summary="85.0% > 80%",
            details=["mem: bash 2000 pages"],
        )
        assert result.render() == "check-ram warning: 85.0% > 80%\nmem: bash 2000 pages"
        assert result.exit_code == 1

    def test_unknown(self):
        """Test a failure becomes an UNKNOWN result with exit code 3."""
        result = unknown("check-ram", InsufficientData("no MemTotal"))
        assert result.level is AlertLevel.UNKNOWN
        assert result.exit_code == 3
        assert result.render() == "check-ram unknown: InsufficientData: no MemTotal"
