"""Tests for the command line entry points."""

import pytest

from conftest import FakeProcFs
from pycheck import checks
from pycheck.cli import check_cpu_main, check_load_main, check_ram_main


class TestCheckRamMain:
    """Tests for check-ram."""

    def test_critical_exit_code(self, fake_proc: FakeProcFs, capsys):
        """Test the exit code follows the alert level."""
        code = check_ram_main(["--proc-root", str(fake_proc.root)])
        assert code == 2
        assert capsys.readouterr().out == "check-ram critical: 96.0% > 95%\n"

    def test_thresholds(self, fake_proc: FakeProcFs, capsys):
        """Test -w and -c override the defaults."""
        code = check_ram_main(["-w", "97", "-c", "99", "--proc-root", str(fake_proc.root)])
        assert code == 0
        assert capsys.readouterr().out.startswith("check-ram ok: 96.0% <= 97%")

    def test_show_hogs(self, fake_proc: FakeProcFs, capsys):
        """Test hog lines follow the status line."""
        check_ram_main(["--show-hogs", "1", "--proc-root", str(fake_proc.root)])
        assert capsys.readouterr().out.splitlines()[1:] == ["mem: bash 2000 pages"]

    def test_unreadable_is_unknown(self, tmp_path, capsys):
        """Test a missing procfs gives exit code 3."""
        code = check_ram_main(["--proc-root", str(tmp_path / "missing")])
        assert code == 3
        assert capsys.readouterr().out.startswith("check-ram unknown: IoFailure")

    def test_unexpected_error_is_unknown(self, fake_proc: FakeProcFs, capsys, monkeypatch):
        """Test an error outside ProcFsError still exits 3 with a status line."""

        def explode(config):
            raise RuntimeError("can't start new thread")

        monkeypatch.setattr("pycheck.cli.check_ram", explode)
        code = check_ram_main(["--proc-root", str(fake_proc.root)])

        assert code == 3
        assert capsys.readouterr().out == "check-ram unknown: RuntimeError: can't start new thread\n"


class TestCheckCpuMain:
    """Tests for check-cpu."""

    def test_samples_twice(self, fake_proc: FakeProcFs, capsys, monkeypatch):
        """Test the check sleeps for the requested interval between samples."""
        slept = []

        def fake_sleep(seconds):
            slept.append(seconds)
            fake_proc.set_stat("cpu  185 55 66 92 88 1 9 0 0 0\n")

        monkeypatch.setattr(checks.time, "sleep", fake_sleep)
        code = check_cpu_main(["-s", "0.25", "--type", "user", "--proc-root", str(fake_proc.root)])

        assert slept == [0.25]
        assert code == 1
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "check-cpu warning: user=85.0% > 80%"
        assert out[1].startswith("user=85.0")

    def test_bad_work_source(self, fake_proc: FakeProcFs, capsys):
        """Test an unknown --type exits UNKNOWN, not argparse's 2."""
        with pytest.raises(SystemExit) as excinfo:
            check_cpu_main(["--type", "bogus"])
        assert excinfo.value.code == 3
        assert "unknown work source" in capsys.readouterr().err

    def test_zero_sleep_rejected(self, capsys):
        """Test a zero-width sampling interval is refused up front."""
        with pytest.raises(SystemExit) as excinfo:
            check_cpu_main(["-s", "0"])
        assert excinfo.value.code == 3
        assert "interval" in capsys.readouterr().err


class TestCheckLoadMain:
    """Tests for check-load."""

    def test_ok(self, fake_proc: FakeProcFs, capsys):
        """Test load average below the warning threshold."""
        code = check_load_main(["--proc-root", str(fake_proc.root)])
        assert code == 0
        assert capsys.readouterr().out.splitlines() == [
            "check-load ok: load1=0.10 <= 1",
            "load average: 0.1 1.5 21.0",
        ]

    def test_log_level_choices(self, capsys):
        """Test an invalid log level is a usage error."""
        with pytest.raises(SystemExit) as excinfo:
            check_load_main(["--log-level", "chatty"])
        assert excinfo.value.code == 3
