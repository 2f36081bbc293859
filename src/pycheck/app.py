"""pycheck-top - live view of the checks as a Textual application."""

import argparse
from enum import Enum
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from pycheck.config import CheckConfig
from pycheck.models import AlertLevel, LoadAverage, ProcessUsage
from pycheck.monitor import PAGE_SIZE, SystemMonitor, SystemSnapshot
from pycheck.procfs import DEFAULT_PROC_ROOT

LEVEL_COLORS = {
    AlertLevel.OK: "green",
    AlertLevel.WARNING: "yellow",
    AlertLevel.CRITICAL: "red",
    AlertLevel.UNKNOWN: "magenta",
}


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    NAME = "name"


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_level(level: AlertLevel) -> str:
    color = LEVEL_COLORS[level]
    return f"[{color}]{level.name}[/{color}]"


def _bar(percent: float, color: str) -> str:
    bar_len = min(max(int(percent / 5), 0), 20)  # 20 chars
    return f"[{color}]█[/{color}]" * bar_len + "[dim]░[/dim]" * (20 - bar_len)


class HeaderStats(Static):
    """Header widget showing CPU, memory and load with their alert levels."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._cpu_percent: float | None = None
        self._cpu_level: AlertLevel = AlertLevel.UNKNOWN
        self._cpu_percents: list[float] = []
        self._memory_total: int = 0
        self._memory_used: int = 0
        self._memory_percent: float | None = None
        self._memory_level: AlertLevel = AlertLevel.UNKNOWN
        self._load_avg: LoadAverage | None = None
        self._uptime_seconds: float = 0.0
        self._has_data = False

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def update_stats(self, snapshot: SystemSnapshot) -> None:
        """Update the statistics from a system snapshot."""
        self._cpu_percent = snapshot.cpu_percent
        self._cpu_level = snapshot.cpu_level
        self._cpu_percents = snapshot.cpu_percent_per_core
        self._memory_total = snapshot.memory_total
        self._memory_used = snapshot.memory_used
        self._memory_percent = snapshot.memory_percent
        self._memory_level = snapshot.memory_level
        self._load_avg = snapshot.load_avg
        self._uptime_seconds = snapshot.uptime_seconds
        self._has_data = True
        self._refresh_display()

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        if not self.is_mounted:
            return
        self.query_one("#cpu-info", Static).update(self._get_cpu_info())
        self.query_one("#mem-info", Static).update(self._get_mem_info())

    def _get_cpu_info(self) -> str:
        """Get CPU info display."""
        if not self._has_data:
            return "Sampling CPU..."
        if self._cpu_percent is None:
            lines = [f"CPU   n/a  {format_level(self._cpu_level)}"]
        else:
            lines = [f"CPU {self._cpu_percent:5.1f}% {format_level(self._cpu_level)}"]
        for i, usage in enumerate(self._cpu_percents):
            # Escaped bracket so Rich does not read the bar as markup
            lines.append(f"CPU{i:<2} \\[{_bar(usage, 'green')}] {usage:5.1f}%")
        return "\n".join(lines)

    def _get_mem_info(self) -> str:
        """Get memory info display."""
        if not self._has_data:
            return "Loading memory info..."

        if self._memory_percent is None:
            mem_line = f"Mem unavailable {format_level(self._memory_level)}"
        else:
            mem_used_gb = self._memory_used / (1024**3)
            mem_total_gb = self._memory_total / (1024**3)
            mem_line = (
                f"Mem\\[{_bar(self._memory_percent, 'cyan')}] "
                f"{mem_used_gb:.1f}G/{mem_total_gb:.1f}G {format_level(self._memory_level)}"
            )

        if self._load_avg is None:
            load = "unavailable"
        else:
            avg = self._load_avg
            load = f"{avg.one:.2f} {avg.five:.2f} {avg.fifteen:.2f}"

        uptime = self._uptime_seconds
        days = int(uptime // 86400)
        hours = int((uptime % 86400) // 3600)
        minutes = int((uptime % 3600) // 60)
        seconds = int(uptime % 60)
        if days > 0:
            uptime_str = f"{days} days, {hours:02d}:{minutes:02d}:{seconds:02d}"
        else:
            uptime_str = f"{hours:02d}:{minutes:02d}:{seconds:02d}"

        return f"{mem_line}\nLoad average: {load}\nUptime: {uptime_str}"


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True  # Default: descending for CPU

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        next_index = (keys.index(self._sort_key) + 1) % len(keys)
        self._sort_key = keys[next_index]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.MEM)
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("S", key="state", width=3)
        table.add_column("NI", key="nice", width=4)
        table.add_column("CPU%", key="cpu", width=7)
        table.add_column("USR%", key="user", width=7)
        table.add_column("SYS%", key="sys", width=7)
        table.add_column("RES", key="rss", width=8)
        table.add_column("THR", key="threads", width=5)
        table.add_column("Command", key="command")

    def update_processes(self, usages: list[ProcessUsage]) -> None:
        """
        Update the process table with new data.

        Rows of processes that are still running are updated in place with
        update_cell; new processes are appended.
        """
        table = self.query_one("#process-table", DataTable)
        sorted_usages = self._sort_usages(usages)
        new_pids = {usage.process.pid for usage in sorted_usages}

        for pid in self._current_pids - new_pids:
            table.remove_row(str(pid))

        for usage in sorted_usages:
            row_key = str(usage.process.pid)
            cells = self._cells(usage)
            if usage.process.pid in self._current_pids:
                for column, value in zip(self._columns(), cells):
                    table.update_cell(row_key, column, value)
            else:
                table.add_row(*cells, key=row_key)

        self._current_pids = new_pids

    @staticmethod
    def _columns() -> tuple[str, ...]:
        return ("pid", "state", "nice", "cpu", "user", "sys", "rss", "threads", "command")

    @staticmethod
    def _cells(usage: ProcessUsage) -> tuple[str, ...]:
        proc = usage.process
        return (
            str(proc.pid),
            proc.state,
            str(proc.nice),
            f"{usage.total_percent:5.1f}",
            f"{usage.user_percent:5.1f}",
            f"{usage.system_percent:5.1f}",
            format_bytes(proc.rss * PAGE_SIZE),
            str(proc.num_threads),
            proc.comm[:50],
        )

    def _sort_usages(self, usages: list[ProcessUsage]) -> list[ProcessUsage]:
        """Sort processes based on the current sort key."""
        key_func = {
            SortKey.CPU: lambda u: u.total_percent,
            SortKey.MEM: lambda u: u.process.rss,
            SortKey.PID: lambda u: u.process.pid,
            SortKey.NAME: lambda u: u.process.comm.lower(),
        }
        return sorted(usages, key=key_func[self._sort_key], reverse=self._sort_reverse)


class PycheckApp(App):
    """Live view of CPU, memory and load with their alert levels."""

    TITLE = "pycheck-top"
    SUB_TITLE = "procfs checks, live"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, config: CheckConfig | None = None, poll_rate: float = 2.0) -> None:
        """Initialize the PycheckApp."""
        super().__init__()
        self._update_queue: Queue[SystemSnapshot] = Queue()
        self._monitor = SystemMonitor(self._update_queue, poll_rate=poll_rate, config=config)

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the system monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and show the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self._update_ui(snapshot)

    def _update_ui(self, snapshot: SystemSnapshot) -> None:
        """Update the UI with the new system snapshot."""
        self.query_one("#header-stats", HeaderStats).update_stats(snapshot)
        self.query_one(ProcessTable).update_processes(snapshot.processes)

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def main(argv: list[str] | None = None) -> None:
    """Entry point for pycheck-top."""
    parser = argparse.ArgumentParser(prog="pycheck-top", description=__doc__)
    parser.add_argument(
        "-s",
        "--interval",
        type=float,
        default=2.0,
        metavar="SECONDS",
        help="""
        Seconds between polls, default: %(default)s
        """,
    )
    parser.add_argument("-w", "--warn", type=float, default=80.0)
    parser.add_argument("-c", "--crit", type=float, default=95.0)
    parser.add_argument("--proc-root", default=DEFAULT_PROC_ROOT)
    args = parser.parse_args(argv)

    try:
        config = CheckConfig(
            interval=args.interval,
            warn=args.warn,
            crit=args.crit,
            proc_root=args.proc_root,
        )
    except ValueError as exc:
        parser.error(str(exc))
    app = PycheckApp(config=config, poll_rate=args.interval)
    app.run()


if __name__ == "__main__":
    main()
