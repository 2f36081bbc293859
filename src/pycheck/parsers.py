"""
Parsers for procfs text records.

Every parser is a pure function from the raw text of a pseudo-file to an
immutable sample. Malformed input raises ``ParseError`` naming the first
field that could not be read.
"""

import math
import re
from enum import Enum, auto

from pycheck.errors import ParseError
from pycheck.models import CpuSample, LoadAverage, MemSample, ProcessSample

CPU_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)
CPU_REQUIRED_FIELDS = 9

# Fields of /proc/[pid]/stat after the parenthesised comm, up to rss
PROCESS_STAT_FIELDS = (
    "state",
    "ppid",
    "pgrp",
    "session",
    "tty_nr",
    "tpgid",
    "flags",
    "minflt",
    "cminflt",
    "majflt",
    "cmajflt",
    "utime",
    "stime",
    "cutime",
    "cstime",
    "priority",
    "nice",
    "num_threads",
    "itrealvalue",
    "starttime",
    "vsize",
    "rss",
)

LOADAVG_FIELDS = ("one", "five", "fifteen")

_CPU_LABEL = re.compile(r"^cpu(\d*)$")
_LOADAVG_SEPARATORS = re.compile(r"[\s,]+")
# Plain decimal only: float() would also take "1_0", "1e3", "inf" and "nan"
_DECIMAL = re.compile(r"[0-9]+(?:\.[0-9]+)?")


def _non_negative(field: str, token: str) -> float:
    if _DECIMAL.fullmatch(token) is None:
        raise ParseError(field, f"{token!r} is not a non-negative decimal number")
    value = float(token)
    if not math.isfinite(value):
        raise ParseError(field, f"{token!r} is out of range")
    return value


# ---------------------------------------------------------------------------
# stat


def parse_cpu_line(line: str) -> CpuSample:
    """
    Parse one ``cpu`` or ``cpuN`` line of the stat file.

    ``guest_nice`` is optional (older kernels omit it); fields past it are
    ignored.
    """
    tokens = line.split()
    if not tokens:
        raise ParseError("label", "empty line")

    match = _CPU_LABEL.match(tokens[0])
    if match is None:
        raise ParseError("label", f"expected a cpu line, got {tokens[0]!r}")
    cpu = int(match.group(1)) if match.group(1) else None

    values = tokens[1 : 1 + len(CPU_FIELDS)]
    if len(values) < CPU_REQUIRED_FIELDS:
        missing = CPU_FIELDS[len(values)]
        raise ParseError(
            missing,
            f"expected at least {CPU_REQUIRED_FIELDS} counters, found {len(values)}",
        )

    counters = {field: _non_negative(field, token) for field, token in zip(CPU_FIELDS, values)}
    counters.setdefault("guest_nice", None)
    return CpuSample(cpu=cpu, **counters)


def parse_stat(text: str) -> CpuSample:
    """Parse the aggregate (first) line of the stat file."""
    lines = text.splitlines()
    if not lines:
        raise ParseError("cpu", "stat file is empty")

    sample = parse_cpu_line(lines[0])
    if sample.cpu is not None:
        raise ParseError("cpu", f"first line is cpu{sample.cpu}, not the aggregate line")
    return sample


def parse_stat_per_cpu(text: str) -> list[CpuSample]:
    """Parse every per-core line of the stat file, skipping the aggregate."""
    return [parse_cpu_line(line) for line in text.splitlines()[1:] if line.startswith("cpu")]


# ---------------------------------------------------------------------------
# meminfo


class MeminfoState(Enum):
    """Tokenizer states for ``Label:   <number> kB`` lines."""

    SCANNING_LABEL = auto()
    AFTER_COLON = auto()
    SCANNING_NUMBER = auto()
    SCANNING_UNIT = auto()


class MeminfoField(Enum):
    """Which sample field the number after the current label updates."""

    TOTAL = "total"
    AVAILABLE = "available"
    FREE = "free"
    CACHED = "cached"
    UNTRACKED = None


MEMINFO_LABELS = {
    "MemTotal": MeminfoField.TOTAL,
    "MemAvailable": MeminfoField.AVAILABLE,
    "MemFree": MeminfoField.FREE,
    "Cached": MeminfoField.CACHED,
}

MEMINFO_UNIT = "kB"
DIGITS = "0123456789"


class _MeminfoTokenizer:
    """Character-class driven state machine over the text of meminfo."""

    def __init__(self) -> None:
        self.state = MeminfoState.SCANNING_LABEL
        self.field = MeminfoField.UNTRACKED
        self.label = ""
        self.word = ""
        self.values: dict[str, int] = {}

    def feed(self, char: str) -> None:
        if self.state is MeminfoState.SCANNING_LABEL:
            self._scan_label(char)
        elif self.state is MeminfoState.AFTER_COLON:
            self._after_colon(char)
        elif self.state is MeminfoState.SCANNING_NUMBER:
            self._scan_number(char)
        else:
            self._scan_unit(char)

    def finish(self) -> MemSample:
        # Input need not end with a newline
        self.feed("\n")
        return MemSample(**self.values)

    def _scan_label(self, char: str) -> None:
        if char == ":":
            self.label = self.word
            self.field = MEMINFO_LABELS.get(self.word, MeminfoField.UNTRACKED)
            self.word = ""
            self.state = MeminfoState.AFTER_COLON
        elif char.isspace():
            if not self.word:
                return
            if self.word.isdigit():
                raise ParseError("label", f"number {self.word} found before any label")
            raise ParseError("label", f"label {self.word!r} is not followed by ':'")
        else:
            # Labels may hold digits and parentheses, e.g. DirectMap4k, Active(anon)
            self.word += char

    def _after_colon(self, char: str) -> None:
        if char == "\n":
            self.state = MeminfoState.SCANNING_LABEL
        elif char.isspace():
            return
        elif char in DIGITS:
            self.word = char
            self.state = MeminfoState.SCANNING_NUMBER
        else:
            raise ParseError(self.label, f"expected a number, found {char!r}")

    def _scan_number(self, char: str) -> None:
        if char in DIGITS:
            self.word += char
            return
        if not char.isspace():
            raise ParseError(self.label, f"unexpected {char!r} in number {self.word}")

        if self.field is not MeminfoField.UNTRACKED:
            self.values[self.field.value] = int(self.word)
        self.word = ""
        self.state = MeminfoState.SCANNING_LABEL if char == "\n" else MeminfoState.SCANNING_UNIT

    def _scan_unit(self, char: str) -> None:
        if char == "\n":
            if self.word and self.word != MEMINFO_UNIT:
                raise ParseError(self.label, f"unknown unit {self.word!r}")
            self.word = ""
            self.state = MeminfoState.SCANNING_LABEL
        elif not char.isspace():
            self.word += char


def parse_meminfo(text: str) -> MemSample:
    """
    Parse the meminfo file.

    Only MemTotal, MemAvailable, MemFree and Cached are kept; every other
    label is skipped.
    """
    tokenizer = _MeminfoTokenizer()
    for char in text:
        tokenizer.feed(char)
    return tokenizer.finish()


# ---------------------------------------------------------------------------
# /proc/[pid]/stat


def parse_process_stat(text: str) -> ProcessSample:
    """
    Parse the single line of a per-process stat file.

    The command name sits between the first ``(`` and the *last* ``)``: it
    may itself contain spaces and parentheses, so the line cannot simply be
    split on whitespace.
    """
    open_paren = text.find("(")
    close_paren = text.rfind(")")
    if open_paren < 0 or close_paren < open_paren:
        raise ParseError("comm", "command name is not enclosed in parentheses")

    pid_token = text[:open_paren].strip()
    try:
        pid = int(pid_token)
    except ValueError:
        raise ParseError("pid", f"{pid_token!r} is not an integer") from None
    if pid <= 0:
        raise ParseError("pid", f"{pid} is not a positive process id")

    tokens = text[close_paren + 1 :].split()
    if len(tokens) < len(PROCESS_STAT_FIELDS):
        missing = PROCESS_STAT_FIELDS[len(tokens)]
        raise ParseError(missing, "record ends early")

    state = tokens[0]
    if len(state) != 1:
        raise ParseError("state", f"{state!r} is not a single character")

    numbers = {}
    for field, token in zip(PROCESS_STAT_FIELDS[1:], tokens[1:]):
        try:
            numbers[field] = int(token)
        except ValueError:
            raise ParseError(field, f"{token!r} is not an integer") from None

    return ProcessSample(
        pid=pid,
        comm=text[open_paren + 1 : close_paren],
        state=state,
        **numbers,
    )


# ---------------------------------------------------------------------------
# loadavg


def parse_loadavg(text: str) -> LoadAverage:
    """Parse the loadavg file. Spaces and commas both separate the figures."""
    tokens = [token for token in _LOADAVG_SEPARATORS.split(text.strip()) if token]
    if len(tokens) < len(LOADAVG_FIELDS):
        missing = LOADAVG_FIELDS[len(tokens)]
        raise ParseError(missing, f"expected 3 load figures, found {len(tokens)}")

    one, five, fifteen = (
        _non_negative(field, token) for field, token in zip(LOADAVG_FIELDS, tokens)
    )
    return LoadAverage(one=one, five=five, fifteen=fifteen)
