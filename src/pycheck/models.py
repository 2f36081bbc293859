"""Data models for pycheck."""

from dataclasses import dataclass
from enum import Enum, IntEnum


class WorkSource(Enum):
    """Which CPU counter, or derived combination, a utilization check targets."""

    ACTIVE = "active"
    ACTIVE_PLUS_IOWAIT = "active+iowait"
    ACTIVE_MINUS_NICE = "active-nice"
    USER = "user"
    NICE = "nice"
    SYSTEM = "system"
    IDLE = "idle"
    IOWAIT = "iowait"
    IRQ = "irq"
    SOFTIRQ = "softirq"
    STEAL = "steal"
    GUEST = "guest"
    GUEST_NICE = "guestnice"

    @classmethod
    def parse(cls, text: str) -> "WorkSource":
        """Look up a work source by name. ``total`` is accepted for ``active``."""
        name = text.strip().lower()
        if name == "total":
            return cls.ACTIVE
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(source.value for source in cls)
            raise ValueError(f"unknown work source {text!r} (choose from: {choices})") from None

    def __str__(self) -> str:
        return self.value


class AlertLevel(IntEnum):
    """Outcome of a check, ordered by severity. The value is the exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def exit_code(self) -> int:
        return int(self)


@dataclass(slots=True, frozen=True)
class CpuSample:
    """
    Cumulative jiffie counters from one ``cpu`` line of the stat file.

    The values only mean something as differences against an earlier sample
    of the same line.
    """

    user: float
    nice: float
    system: float
    idle: float
    iowait: float
    irq: float
    softirq: float
    steal: float
    guest: float
    guest_nice: float | None = None  # Absent before Linux 2.6.33
    cpu: int | None = None  # None for the aggregate line

    def active(self) -> float:
        """Jiffies spent doing work: user space, kernel, interrupts and steal."""
        return self.user + self.nice + self.system + self.irq + self.softirq + self.steal

    def idle_total(self) -> float:
        """Jiffies spent with nothing to do, including waiting on I/O."""
        return self.idle + self.iowait

    def virt(self) -> float:
        """
        Jiffies spent running guest VMs.

        Already accounted in ``user``/``nice`` by the kernel, so never add this
        to ``total()``.
        """
        return self.guest + (self.guest_nice or 0.0)

    def total(self) -> float:
        """All jiffies since the kernel started accounting."""
        return self.active() + self.idle_total()


@dataclass(slots=True, frozen=True)
class MemSample:
    """Memory accounting in kibibytes. Any field may be missing."""

    total: int | None = None
    available: int | None = None  # MemAvailable exists since Linux 3.14
    free: int | None = None
    cached: int | None = None


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """Immutable accounting record of one process, from its stat file."""

    pid: int
    comm: str
    state: str  # 'R', 'S', 'Z', 'D', etc.
    ppid: int
    pgrp: int
    session: int
    tty_nr: int
    tpgid: int
    flags: int
    minflt: int
    cminflt: int
    majflt: int
    cmajflt: int
    utime: int  # Jiffies in user mode
    stime: int  # Jiffies in kernel mode
    cutime: int
    cstime: int
    priority: int
    nice: int
    num_threads: int
    itrealvalue: int
    starttime: int
    vsize: int  # Bytes
    rss: int  # Pages


@dataclass(slots=True, frozen=True)
class LoadAverage:
    """Run-queue length averaged over 1, 5 and 15 minutes."""

    one: float
    five: float
    fifteen: float

    def __truediv__(self, divisor: float) -> "LoadAverage":
        if isinstance(divisor, bool) or not isinstance(divisor, (int, float)):
            return NotImplemented
        return LoadAverage(self.one / divisor, self.five / divisor, self.fifteen / divisor)

    def __str__(self) -> str:
        return f"{self.one:.1f} {self.five:.1f} {self.fifteen:.1f}"


@dataclass(slots=True, frozen=True)
class ProcessUsage:
    """CPU share of one process over a sampling window."""

    process: ProcessSample
    user_percent: float
    system_percent: float
    total_percent: float
