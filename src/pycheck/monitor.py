"""Background sampler feeding the live view."""

import contextlib
import logging
import os
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from queue import Queue

import psutil

from pycheck.config import CheckConfig
from pycheck.engine import percent_cpu_util_since, percent_used, percent_util_since
from pycheck.errors import DegenerateWindow, ProcFsError
from pycheck.evaluator import evaluate
from pycheck.models import AlertLevel, CpuSample, LoadAverage, ProcessSample, ProcessUsage
from pycheck.procfs import ProcFs

logger = logging.getLogger(__name__)

PAGE_SIZE = os.sysconf("SC_PAGE_SIZE")


@dataclass(slots=True)
class SystemSnapshot:
    """Snapshot of overall system state between two polls."""

    cpu_percent: float | None
    cpu_level: AlertLevel
    cpu_percent_per_core: list[float]
    memory_total: int  # Bytes
    memory_used: int  # Bytes
    memory_percent: float | None
    memory_level: AlertLevel
    load_avg: LoadAverage | None
    uptime_seconds: float
    processes: list[ProcessUsage] = field(default_factory=list)


def unknown_snapshot() -> SystemSnapshot:
    """Snapshot for a poll that observed nothing."""
    return SystemSnapshot(
        cpu_percent=None,
        cpu_level=AlertLevel.UNKNOWN,
        cpu_percent_per_core=[],
        memory_total=0,
        memory_used=0,
        memory_percent=None,
        memory_level=AlertLevel.UNKNOWN,
        load_avg=None,
        uptime_seconds=0.0,
    )


class SystemMonitor:
    """
    Samples procfs on a daemon thread and pushes a ``SystemSnapshot`` into a
    thread-safe Queue after every poll.

    Rates are computed against the previous poll, so the first snapshot
    carries no CPU figures.
    """

    def __init__(
        self,
        update_queue: Queue[SystemSnapshot],
        poll_rate: float = 2.0,
        config: CheckConfig | None = None,
        procfs: ProcFs | None = None,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            update_queue: Thread-safe queue to push updates to.
            poll_rate: How often to poll the system (in seconds). Default 2.0s.
            config: Thresholds and procfs location; defaults to CheckConfig().
            procfs: Loader to sample from; built from ``config`` if omitted.
        """
        self._queue = update_queue
        self._poll_rate = poll_rate
        self._config = config if config is not None else CheckConfig()
        self._procfs = procfs or ProcFs(self._config.proc_root, self._config.read_timeout)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._cpu_history: deque[float] = deque(maxlen=60)
        self._last_cpu: CpuSample | None = None
        self._last_cores: dict[int | None, CpuSample] = {}
        self._last_procs: dict[int, ProcessSample] = {}
        self._cpu_window: float | None = None  # Jiffies between the last two polls

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                snapshot = self.collect_snapshot()
            except Exception:
                logger.exception("Poll failed")
                snapshot = unknown_snapshot()
            self._queue.put(snapshot)

            self._stop_event.wait(timeout=self._poll_rate)

    def collect_snapshot(self) -> SystemSnapshot:
        """
        Sample procfs once and compute rates against the previous poll.

        A figure that cannot be read is reported as None with an UNKNOWN
        level; the other figures of the poll are still filled in.
        """
        cpu_percent = self._collect_cpu()
        per_core = self._collect_per_core()
        usages = self._collect_processes()

        memory_total = 0
        memory_percent: float | None = None
        try:
            mem = self._procfs.meminfo()
            memory_total = (mem.total or 0) * 1024
            memory_percent = percent_used(mem)
        except ProcFsError as exc:
            logger.warning("No memory figure this poll: %s", exc)
        memory_used = int(memory_total * memory_percent / 100.0) if memory_percent is not None else 0

        try:
            load_avg: LoadAverage | None = self._procfs.loadavg()
        except ProcFsError as exc:
            logger.warning("No load average this poll: %s", exc)
            load_avg = None

        return SystemSnapshot(
            cpu_percent=cpu_percent,
            cpu_level=self._level(cpu_percent),
            cpu_percent_per_core=per_core,
            memory_total=memory_total,
            memory_used=memory_used,
            memory_percent=memory_percent,
            memory_level=self._level(memory_percent),
            load_avg=load_avg,
            uptime_seconds=time.time() - psutil.boot_time(),
            processes=usages,
        )

    def _collect_cpu(self) -> float | None:
        self._cpu_window = None
        try:
            cpu = self._procfs.cpu()
        except ProcFsError as exc:
            logger.warning("No CPU figure this poll: %s", exc)
            # The next successful poll primes the counters again
            self._last_cpu = None
            return None

        previous, self._last_cpu = self._last_cpu, cpu
        if previous is None:
            return None
        try:
            cpu_percent = percent_util_since(self._config.work_source, previous, cpu)
        except DegenerateWindow as exc:
            logger.debug("No CPU rate this poll: %s", exc)
            return None
        self._cpu_window = cpu.total() - previous.total()
        self._cpu_history.append(cpu_percent)
        return cpu_percent

    def _collect_per_core(self) -> list[float]:
        try:
            cores = {core.cpu: core for core in self._procfs.per_cpu()}
        except ProcFsError as exc:
            logger.warning("No per-core figures this poll: %s", exc)
            return []

        per_core = []
        for index, core in cores.items():
            previous = self._last_cores.get(index)
            percent = 0.0
            if previous is not None:
                with contextlib.suppress(DegenerateWindow):
                    percent = percent_util_since(self._config.work_source, previous, core)
            per_core.append(percent)
        self._last_cores = cores
        return per_core

    def _collect_processes(self) -> list[ProcessUsage]:
        """Per-process CPU shares over the window measured by ``_collect_cpu``."""
        try:
            procs = self._procfs.list_processes()
        except ProcFsError as exc:
            logger.warning("No process list this poll: %s", exc)
            self._last_procs = {}
            return []

        previous, self._last_procs = self._last_procs, procs
        if self._cpu_window is None:
            return []
        return percent_cpu_util_since(previous, procs, self._cpu_window)

    def _level(self, value: float | None) -> AlertLevel:
        if value is None:
            return AlertLevel.UNKNOWN
        return evaluate(value, self._config.warn, self._config.crit)

    def get_cpu_history(self) -> list[float]:
        """Get the aggregate CPU usage history for sparkline rendering."""
        return list(self._cpu_history)
