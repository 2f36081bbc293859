"""Error types raised by the procfs readers, parsers and engine."""


class ProcFsError(Exception):
    """Base class for every failure to observe the system through procfs."""


class IoFailure(ProcFsError):
    """A pseudo-file could not be read (permissions, vanished pid, timeout)."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"unable to read {path}: {reason}")
        self.path = path
        self.reason = reason


class ParseError(ProcFsError):
    """A record was malformed or short. ``field`` names the offending field."""

    def __init__(self, field: str, detail: str) -> None:
        super().__init__(f"cannot parse {field}: {detail}")
        self.field = field
        self.detail = detail


class InsufficientData(ProcFsError):
    """A required combination of fields is absent from an otherwise valid sample."""


class DegenerateWindow(ProcFsError):
    """Two samples span no CPU time, so no rate can be computed from them."""
