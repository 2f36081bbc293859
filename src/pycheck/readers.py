"""Pseudo-file readers."""

import threading
from pathlib import Path

from pycheck.errors import IoFailure


def _read_text(path: Path) -> str:
    # procfs reports a size of 0, so read until EOF rather than trusting stat()
    with open(path, encoding="utf-8", errors="surrogateescape") as fh:
        return fh.read()


def read_pseudo_file(path: str | Path, timeout: float | None = None) -> str:
    """
    Read a pseudo-file into memory as text.

    Args:
        path: File to read, e.g. ``/proc/stat``.
        timeout: Upper bound on the read (in seconds). ``None`` reads inline
            with no bound.

    Raises:
        IoFailure: The file is unreadable, vanished, or the read timed out.
    """
    path = Path(path)
    if timeout is None:
        try:
            return _read_text(path)
        except OSError as exc:
            raise IoFailure(str(path), exc.strerror or str(exc)) from exc

    result: dict[str, str] = {}
    failure: list[OSError] = []

    def worker() -> None:
        try:
            result["text"] = _read_text(path)
        except OSError as exc:
            failure.append(exc)

    # A blocked kernel read cannot be interrupted; the daemon thread is left behind
    thread = threading.Thread(target=worker, daemon=True, name=f"read:{path}")
    thread.start()
    thread.join(timeout=timeout)

    if thread.is_alive():
        raise IoFailure(str(path), f"read timed out after {timeout:g}s")
    if failure:
        exc = failure[0]
        raise IoFailure(str(path), exc.strerror or str(exc)) from exc
    return result["text"]
