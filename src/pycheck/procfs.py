"""Loaders binding the parsers to a procfs tree."""

import logging
import os
from pathlib import Path

from pycheck.errors import IoFailure, ParseError
from pycheck.models import CpuSample, LoadAverage, MemSample, ProcessSample
from pycheck.parsers import (
    parse_loadavg,
    parse_meminfo,
    parse_process_stat,
    parse_stat,
    parse_stat_per_cpu,
)
from pycheck.readers import read_pseudo_file

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = "/proc"
DEFAULT_READ_TIMEOUT = 2.0


class ProcFs:
    """
    Reads samples from a procfs tree.

    The root is configurable so that tests (and containers with a host
    procfs mounted elsewhere) can point it at another directory.
    """

    def __init__(
        self,
        root: str | Path = DEFAULT_PROC_ROOT,
        read_timeout: float | None = DEFAULT_READ_TIMEOUT,
    ) -> None:
        """
        Initialize the ProcFs.

        Args:
            root: Mount point of procfs.
            read_timeout: Bound on each pseudo-file read (seconds), or None.
        """
        self._root = Path(root)
        self._read_timeout = read_timeout

    @property
    def root(self) -> Path:
        return self._root

    def _read(self, *parts: str) -> str:
        return read_pseudo_file(self._root.joinpath(*parts), timeout=self._read_timeout)

    def cpu(self) -> CpuSample:
        """Aggregate CPU counters of the whole system."""
        return parse_stat(self._read("stat"))

    def per_cpu(self) -> list[CpuSample]:
        """CPU counters of every core."""
        return parse_stat_per_cpu(self._read("stat"))

    def meminfo(self) -> MemSample:
        return parse_meminfo(self._read("meminfo"))

    def loadavg(self) -> LoadAverage:
        return parse_loadavg(self._read("loadavg"))

    def process(self, pid: int | str) -> ProcessSample:
        """Accounting record of one process."""
        return parse_process_stat(self._read(str(pid), "stat"))

    def list_processes(self) -> dict[int, ProcessSample]:
        """
        Load every running process.

        Processes that exit between listing the directory and reading their
        stat file, or whose record cannot be parsed, are skipped.

        Raises:
            IoFailure: The procfs root itself cannot be listed.
        """
        try:
            entries = os.listdir(self._root)
        except OSError as exc:
            raise IoFailure(str(self._root), exc.strerror or str(exc)) from exc

        processes: dict[int, ProcessSample] = {}
        for name in entries:
            if not (name.isascii() and name.isdigit()):
                continue
            try:
                sample = self.process(name)
            except (IoFailure, ParseError) as exc:
                logger.debug("Skipping pid %s: %s", name, exc)
                continue
            processes[sample.pid] = sample
        return processes
