import logging
import subprocess
import time
from typing import List, Optional

from .config import FirebirdConfig
from .errors import ExecutionError
from .models import ExecutionResult

logger = logging.getLogger(__name__)


class IsqlClient:
    """
    Executes SQL on Firebird through the `isql` CLI.

    Each call spawns one isql process, writes the SQL to its stdin and waits
    for it to exit. There is no timeout.
    """

    def __init__(self, config: FirebirdConfig, isql_path: str) -> None:
        self.config = config
        self.isql_path = isql_path

    def execute(
        self, sql: str, database: Optional[str] = None, ignore_errors: bool = False
    ) -> ExecutionResult:
        cmd = self._build_command(database)
        start = time.perf_counter()
        proc = subprocess.run(
            cmd,
            input=sql.encode("utf-8"),
            capture_output=True,
            check=False,
        )
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        stdout = proc.stdout.decode("utf-8", errors="replace")
        stderr = proc.stderr.decode("utf-8", errors="replace")
        success = proc.returncode == 0
        if not success:
            if not ignore_errors:
                raise ExecutionError(proc.returncode, stderr or stdout, sql=sql)
            logger.debug("isql exited with %s (ignored): %s", proc.returncode, stderr.strip())
        return ExecutionResult(
            sql=sql,
            success=success,
            returncode=proc.returncode,
            elapsed_ms=elapsed_ms,
            raw_output=stdout,
            error_output=stderr,
        )

    def _build_command(self, database: Optional[str]) -> List[str]:
        cmd = [
            self.isql_path,
            "-b",
            "-q",
            "-pag",
            "0",
            "-user",
            self.config.user,
            "-password",
            self.config.password,
        ]
        if database:
            cmd.append(database)
        return cmd
