"""Utilization engine: percentages from paired samples."""

import logging
from collections.abc import Callable, Mapping

from pycheck.errors import DegenerateWindow, InsufficientData
from pycheck.models import CpuSample, MemSample, ProcessSample, ProcessUsage, WorkSource

logger = logging.getLogger(__name__)

_SELECTORS: dict[WorkSource, Callable[[CpuSample], float]] = {
    WorkSource.ACTIVE: lambda s: s.active(),
    WorkSource.ACTIVE_PLUS_IOWAIT: lambda s: s.active() + s.iowait,
    WorkSource.ACTIVE_MINUS_NICE: lambda s: s.active() - s.nice,
    WorkSource.USER: lambda s: s.user,
    WorkSource.NICE: lambda s: s.nice,
    WorkSource.SYSTEM: lambda s: s.system,
    WorkSource.IDLE: lambda s: s.idle,
    WorkSource.IOWAIT: lambda s: s.iowait,
    WorkSource.IRQ: lambda s: s.irq,
    WorkSource.SOFTIRQ: lambda s: s.softirq,
    WorkSource.STEAL: lambda s: s.steal,
    WorkSource.GUEST: lambda s: s.guest,
    WorkSource.GUEST_NICE: lambda s: s.guest_nice or 0.0,
}


def _window(start: CpuSample, end: CpuSample) -> float:
    elapsed = end.total() - start.total()
    if elapsed <= 0:
        raise DegenerateWindow(
            f"CPU counters advanced by {elapsed:g} jiffies between samples; "
            "sample over a longer interval"
        )
    return elapsed


def percent_util_since(kind: WorkSource, start: CpuSample, end: CpuSample) -> float:
    """
    Percentage of CPU time spent on ``kind`` between two samples.

    Args:
        kind: Counter or derived combination to measure.
        start: Earlier sample.
        end: Later sample of the same line.

    Raises:
        DegenerateWindow: The total counters did not advance.
    """
    select = _SELECTORS[kind]
    return 100.0 * (select(end) - select(start)) / _window(start, end)


def cpu_delta(start: CpuSample, end: CpuSample) -> CpuSample:
    """Field-wise difference of two samples."""
    if start.guest_nice is not None and end.guest_nice is not None:
        guest_nice = end.guest_nice - start.guest_nice
    else:
        guest_nice = None
    return CpuSample(
        user=end.user - start.user,
        nice=end.nice - start.nice,
        system=end.system - start.system,
        idle=end.idle - start.idle,
        iowait=end.iowait - start.iowait,
        irq=end.irq - start.irq,
        softirq=end.softirq - start.softirq,
        steal=end.steal - start.steal,
        guest=end.guest - start.guest,
        guest_nice=guest_nice,
        cpu=end.cpu,
    )


def format_breakdown(delta: CpuSample) -> str:
    """Render every counter of a delta as a percentage of its total."""
    total = delta.total()
    if total <= 0:
        raise DegenerateWindow("empty CPU delta has no breakdown")

    def pct(value: float) -> str:
        return f"{100.0 * value / total:.1f}"

    guest_nice = "unknown" if delta.guest_nice is None else pct(delta.guest_nice)
    return (
        f"user={pct(delta.user)} system={pct(delta.system)} nice={pct(delta.nice)} "
        f"irq={pct(delta.irq)} softirq={pct(delta.softirq)} "
        f"| idle={pct(delta.idle)} iowait={pct(delta.iowait)} "
        f"| steal={pct(delta.steal)} guest={pct(delta.guest)} guest_nice={guest_nice}"
    )


def percent_free(mem: MemSample) -> float:
    """
    Percentage of memory available to start new applications.

    Uses MemAvailable when the kernel provides it (Linux 3.14+). Otherwise
    falls back to ``MemFree + Cached``, which overestimates what is actually
    reclaimable and is only an approximation of the kernel's own figure.

    Raises:
        InsufficientData: Neither formula can be computed.
    """
    if not mem.total:
        raise InsufficientData(f"meminfo has no usable MemTotal: {mem}")

    if mem.available is not None:
        return mem.available / mem.total * 100.0

    if mem.free is not None and mem.cached is not None:
        logger.warning("MemAvailable missing, approximating it as MemFree+Cached")
        return (mem.free + mem.cached) / mem.total * 100.0

    raise InsufficientData(
        f"meminfo is missing one of total, available, free, or cached: {mem}"
    )


def percent_used(mem: MemSample) -> float:
    """The complement of ``percent_free``."""
    return 100.0 - percent_free(mem)


def percent_cpu_util_since(
    start_procs: Mapping[int, ProcessSample],
    end_procs: Mapping[int, ProcessSample],
    total_cpu_delta: float,
) -> list[ProcessUsage]:
    """
    CPU share of every process that appears in both snapshots.

    Processes that started or exited within the window are left out.
    ``total_cpu_delta`` is normally ``end.total() - start.total()`` of a
    system-wide ``CpuSample`` pair taken around the same two snapshots.

    Returns:
        Usages sorted by total share, busiest first.
    """
    if total_cpu_delta <= 0:
        raise DegenerateWindow(f"total CPU delta of {total_cpu_delta:g} jiffies")

    usages: list[ProcessUsage] = []
    for pid, start in start_procs.items():
        end = end_procs.get(pid)
        if end is None:
            continue
        user = 100.0 * (end.utime - start.utime) / total_cpu_delta
        system = 100.0 * (end.stime - start.stime) / total_cpu_delta
        usages.append(
            ProcessUsage(
                process=start,
                user_percent=user,
                system_percent=system,
                total_percent=user + system,
            )
        )

    usages.sort(key=lambda u: (-u.total_percent, u.process.pid))
    return usages
