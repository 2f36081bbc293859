"""Shared fixtures: a fake procfs tree under tmp_path."""

from pathlib import Path

import pytest

from pycheck.procfs import ProcFs

STAT_TEXT = """cpu  100 55 66 77 88 1 9 0 0 0
cpu0 415415 55 55572 37240261 7008 1 1803 0 0 0
cpu1 415416 56 55573 37240262 7009 2 1804 0 0 0
intr 17749885 52 10 0 0 0 0 0 0 0 0 0 0 149 0 0 0 0 0 0 493792 10457659 2437665
ctxt 310
btime 143
"""

MEMINFO_TEXT = """MemTotal: 500 kB
MemAvailable: 20 kB
MemFree: 280 kB
Cached: 200 kB
"""

LOADAVG_TEXT = "0.1 1.5 21 5/23 938\n"


def stat_line(
    pid: int,
    comm: str = "init",
    state: str = "S",
    utime: int = 16,
    stime: int = 41,
    rss: int = 610,
) -> str:
    """A /proc/[pid]/stat line with the given interesting fields."""
    return (
        f"{pid} ({comm}) {state} 0 1 1 0 -1 4219136 40326 5752369 36 3370 "
        f"{utime} {stime} 25846 8061 20 0 1 0 5 34381824 {rss} "
        "18446744073709551615 1 1 0 0 0 0 0 4096 536962595 0 0 0 17 0 0 0 7 0 0\n"
    )


class FakeProcFs:
    """Writes pseudo-files into a directory laid out like /proc."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def set_stat(self, text: str) -> None:
        (self.root / "stat").write_text(text)

    def set_meminfo(self, text: str) -> None:
        (self.root / "meminfo").write_text(text)

    def set_loadavg(self, text: str) -> None:
        (self.root / "loadavg").write_text(text)

    def add_process(self, pid: int, text: str | None = None, **fields) -> None:
        pid_dir = self.root / str(pid)
        pid_dir.mkdir(exist_ok=True)
        (pid_dir / "stat").write_text(text if text is not None else stat_line(pid, **fields))

    def remove_process(self, pid: int) -> None:
        pid_dir = self.root / str(pid)
        (pid_dir / "stat").unlink()
        pid_dir.rmdir()

    def procfs(self) -> ProcFs:
        return ProcFs(self.root, read_timeout=None)


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProcFs:
    """A populated fake procfs tree."""
    fake = FakeProcFs(tmp_path / "proc")
    fake.set_stat(STAT_TEXT)
    fake.set_meminfo(MEMINFO_TEXT)
    fake.set_loadavg(LOADAVG_TEXT)
    fake.add_process(1)
    fake.add_process(42, comm="bash", utime=100, stime=10, rss=2000)
    (fake.root / "self").mkdir()
    (fake.root / "sys").mkdir()
    return fake
