"""Error types for softstat."""


class SoftstatError(Exception):
    """Base class for softstat errors."""


class TransientProcessUnavailable(SoftstatError):
    """Raised when a process exited or can't be inspected mid-scan.

    Recovered locally: the process is dropped from the report.
    """

    def __init__(self, pid: int, reason: str = "gone"):
        super().__init__(f"PID {pid} unavailable: {reason}")
        self.pid = pid
        self.reason = reason


class SystemCeilingUnavailable(SoftstatError):
    """Raised when a system-wide ceiling can't be read or parsed.

    Without these values no percentage is meaningful, so the run aborts.
    """

    def __init__(self, path: str, detail: str = ""):
        message = f"Cannot read system ceiling {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.path = path
        self.detail = detail


class InvalidInput(SoftstatError, ValueError):
    """Raised when an evaluator operation gets an empty sequence."""
