"""
The checks: sample, compute, evaluate.

Every check returns a ``CheckResult``. Any failure to observe the system is
reported as UNKNOWN; nothing here raises ``ProcFsError`` to the caller.
"""

import logging
import time
from collections.abc import Callable, Mapping

import psutil

from pycheck.config import CheckConfig
from pycheck.engine import (
    cpu_delta,
    format_breakdown,
    percent_cpu_util_since,
    percent_used,
    percent_util_since,
)
from pycheck.errors import ProcFsError
from pycheck.evaluator import CheckResult, evaluate, unknown
from pycheck.models import AlertLevel, ProcessSample, ProcessUsage
from pycheck.procfs import ProcFs

logger = logging.getLogger(__name__)


def _procfs(config: CheckConfig, procfs: ProcFs | None) -> ProcFs:
    return procfs if procfs is not None else ProcFs(config.proc_root, config.read_timeout)


def _summary(measure: str, level: AlertLevel, config: CheckConfig, unit: str = "%") -> str:
    if level is AlertLevel.CRITICAL:
        return f"{measure} > {config.crit:g}{unit}"
    if level is AlertLevel.WARNING:
        return f"{measure} > {config.warn:g}{unit}"
    return f"{measure} <= {config.warn:g}{unit}"


def _wants_hogs(config: CheckConfig, level: AlertLevel) -> bool:
    return config.show_hogs > 0 and (level is not AlertLevel.OK or config.verbose)


def _snapshot_processes(procfs: ProcFs) -> dict[int, ProcessSample] | None:
    try:
        return procfs.list_processes()
    except ProcFsError as exc:
        logger.warning("Unable to enumerate processes: %s", exc)
        return None


def top_cpu_hogs(
    start_procs: Mapping[int, ProcessSample],
    end_procs: Mapping[int, ProcessSample],
    total_cpu_delta: float,
    count: int,
) -> list[ProcessUsage]:
    """The ``count`` processes with the largest CPU share over the window."""
    return percent_cpu_util_since(start_procs, end_procs, total_cpu_delta)[:count]


def top_ram_hogs(procs: Mapping[int, ProcessSample], count: int) -> list[ProcessSample]:
    """The ``count`` processes with the largest resident set."""
    return sorted(procs.values(), key=lambda p: (-p.rss, p.pid))[:count]


def check_cpu(
    config: CheckConfig,
    procfs: ProcFs | None = None,
    sleep: Callable[[float], None] | None = None,
) -> CheckResult:
    """
    Sample CPU counters twice, ``config.interval`` seconds apart, and
    evaluate the utilization of ``config.work_source``.

    ``sleep`` defaults to time.sleep.
    """
    name = "check-cpu"
    procfs = _procfs(config, procfs)
    track_procs = config.show_hogs > 0

    try:
        start = procfs.cpu()
        start_procs = _snapshot_processes(procfs) if track_procs else None
        (sleep or time.sleep)(config.interval)
        end = procfs.cpu()
        end_procs = _snapshot_processes(procfs) if track_procs else None

        percent = percent_util_since(config.work_source, start, end)
        breakdown = format_breakdown(cpu_delta(start, end))
    except ProcFsError as exc:
        logger.error("CPU check failed: %s", exc)
        return unknown(name, exc)

    logger.debug("CPU samples: start=%s end=%s", start, end)
    level = evaluate(percent, config.warn, config.crit)
    result = CheckResult(
        name=name,
        level=level,
        summary=_summary(f"{config.work_source}={percent:.1f}%", level, config),
        details=[breakdown],
    )

    if _wants_hogs(config, level):
        if start_procs is None or end_procs is None:
            result.details.append("cpu: process list unavailable")
        else:
            elapsed = end.total() - start.total()
            for usage in top_cpu_hogs(start_procs, end_procs, elapsed, config.show_hogs):
                proc = usage.process
                result.details.append(
                    f"cpu: {proc.comm} {proc.pid} "
                    f"user={usage.user_percent:.1f}% sys={usage.system_percent:.1f}%"
                )
    return result


def check_ram(config: CheckConfig, procfs: ProcFs | None = None) -> CheckResult:
    """Evaluate the percentage of memory in use."""
    name = "check-ram"
    procfs = _procfs(config, procfs)

    try:
        mem = procfs.meminfo()
        percent = percent_used(mem)
    except ProcFsError as exc:
        logger.error("RAM check failed: %s", exc)
        return unknown(name, exc)

    logger.debug("Memory sample: %s", mem)
    level = evaluate(percent, config.warn, config.crit)
    result = CheckResult(name=name, level=level, summary=_summary(f"{percent:.1f}%", level, config))

    if _wants_hogs(config, level):
        procs = _snapshot_processes(procfs)
        if procs is None:
            result.details.append("mem: process list unavailable")
        else:
            for proc in top_ram_hogs(procs, config.show_hogs):
                result.details.append(f"mem: {proc.comm} {proc.rss} pages")
    return result


def check_load(
    config: CheckConfig,
    procfs: ProcFs | None = None,
    per_cpu: bool = False,
    cpu_count: int | None = None,
) -> CheckResult:
    """
    Evaluate the 1-minute load average.

    With ``per_cpu`` the averages are divided by the number of logical CPUs
    so that one threshold fits machines of any size.
    """
    name = "check-load"
    procfs = _procfs(config, procfs)

    try:
        load = procfs.loadavg()
        if per_cpu:
            if cpu_count is None:
                cpu_count = psutil.cpu_count(logical=True) or len(procfs.per_cpu())
            if not cpu_count:
                raise ProcFsError("unable to determine the number of CPUs")
            load = load / cpu_count
    except ProcFsError as exc:
        logger.error("Load check failed: %s", exc)
        return unknown(name, exc)

    measure = "load1/cpu" if per_cpu else "load1"
    level = evaluate(load.one, config.warn, config.crit)
    return CheckResult(
        name=name,
        level=level,
        summary=_summary(f"{measure}={load.one:.2f}", level, config, unit=""),
        details=[f"load average: {load}"],
    )
