"""Tests for pycheck data models."""

import pytest

from pycheck.models import (
    AlertLevel,
    CpuSample,
    LoadAverage,
    MemSample,
    ProcessSample,
    WorkSource,
)


def make_cpu(**overrides) -> CpuSample:
    fields = dict(
        user=100.0,
        nice=55.0,
        system=66.0,
        idle=77.0,
        iowait=88.0,
        irq=1.0,
        softirq=9.0,
        steal=2.0,
        guest=3.0,
        guest_nice=4.0,
    )
    fields.update(overrides)
    return CpuSample(**fields)


class TestCpuSample:
    """Tests for CpuSample derived quantities."""

    def test_active_excludes_idle_and_iowait(self):
        """Test active() sums user, nice, system, irq, softirq and steal."""
        assert make_cpu().active() == 100 + 55 + 66 + 1 + 9 + 2

    def test_idle_total_includes_iowait(self):
        """Test idle_total() is idle plus iowait."""
        assert make_cpu().idle_total() == 77 + 88

    def test_total_does_not_double_count_guest(self):
        """Test guest time is not added on top of active time."""
        sample = make_cpu()
        assert sample.total() == sample.active() + sample.idle_total()
        assert sample.virt() == 7.0

    def test_virt_without_guest_nice(self):
        """Test virt() treats a missing guest_nice as zero."""
        assert make_cpu(guest_nice=None).virt() == 3.0

    def test_cpu_sample_is_frozen(self):
        """Test that CpuSample is immutable (frozen)."""
        sample = make_cpu()
        with pytest.raises(AttributeError):
            sample.user = 0.0

    def test_cpu_sample_uses_slots(self):
        """Test that CpuSample uses __slots__ for memory efficiency."""
        assert not hasattr(make_cpu(), "__dict__")


class TestWorkSource:
    """Tests for WorkSource lookup."""

    def test_parse_values(self):
        """Test every value string parses back to its member."""
        for source in WorkSource:
            assert WorkSource.parse(source.value) is source

    def test_parse_is_case_insensitive(self):
        """Test names are matched regardless of case."""
        assert WorkSource.parse("IOWait") is WorkSource.IOWAIT

    def test_total_is_an_alias_for_active(self):
        """Test the legacy name 'total' selects active."""
        assert WorkSource.parse("total") is WorkSource.ACTIVE

    def test_parse_unknown(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError, match="unknown work source"):
            WorkSource.parse("bogus")

    def test_str(self):
        """Test str() gives the value used on the command line."""
        assert str(WorkSource.ACTIVE_PLUS_IOWAIT) == "active+iowait"


class TestAlertLevel:
    """Tests for AlertLevel ordering and exit codes."""

    def test_exit_codes(self):
        """Test each level maps to its exit code."""
        assert AlertLevel.OK.exit_code == 0
        assert AlertLevel.WARNING.exit_code == 1
        assert AlertLevel.CRITICAL.exit_code == 2
        assert AlertLevel.UNKNOWN.exit_code == 3

    def test_ordered_by_severity(self):
        """Test levels compare by severity."""
        assert AlertLevel.OK < AlertLevel.WARNING < AlertLevel.CRITICAL < AlertLevel.UNKNOWN
        assert max(AlertLevel.WARNING, AlertLevel.OK) is AlertLevel.WARNING

    def test_label(self):
        """Test the label is the lower-case name."""
        assert AlertLevel.CRITICAL.label == "critical"


class TestLoadAverage:
    """Tests for LoadAverage arithmetic and display."""

    def test_divide_by_cpu_count(self):
        """Test scalar division returns a new LoadAverage."""
        assert LoadAverage(2.0, 4.0, 6.0) / 2 == LoadAverage(1.0, 2.0, 3.0)

    def test_divide_by_non_number(self):
        """Test division by a non-number is rejected."""
        with pytest.raises(TypeError):
            LoadAverage(1.0, 1.0, 1.0) / "2"

    def test_display_rounds(self):
        """Test str() rounds each figure to one decimal."""
        assert str(LoadAverage(one=0.888, five=1.0, fifteen=0.1)) == "0.9 1.0 0.1"


def test_mem_sample_defaults_to_missing():
    """Test MemSample fields default to None."""
    mem = MemSample()
    assert (mem.total, mem.available, mem.free, mem.cached) == (None, None, None, None)


def test_process_sample_is_frozen():
    """Test that ProcessSample is immutable (frozen)."""
    sample = ProcessSample(
        pid=1, comm="init", state="S", ppid=0, pgrp=1, session=1, tty_nr=0, tpgid=-1,
        flags=0, minflt=0, cminflt=0, majflt=0, cmajflt=0, utime=16, stime=41, cutime=0,
        cstime=0, priority=20, nice=0, num_threads=1, itrealvalue=0, starttime=5,
        vsize=34381824, rss=610,
    )  # fmt: skip

    with pytest.raises(AttributeError):
        sample.pid = 999
