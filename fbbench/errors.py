from typing import Optional


class FbBenchError(Exception):
    """Base class for errors raised by the benchmark harness."""


class SetupError(FbBenchError):
    """
    The run cannot start: missing isql client, invalid target folder, or a
    stale database file that cannot be removed.
    """


class ExecutionError(FbBenchError):
    def __init__(self, returncode: int, stderr: Optional[str] = None, sql: Optional[str] = None) -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.sql = sql
        message = "isql exited with status %s" % returncode
        if stderr and stderr.strip():
            message += ": %s" % stderr.strip()
        super().__init__(message)


class ParseError(FbBenchError):
    """Captured isql output did not look like list output."""
