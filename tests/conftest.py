from typing import List, Optional

import pytest

from fbbench.errors import ExecutionError
from fbbench.models import ExecutionResult


class FakeIsqlClient:
    """
    Stands in for IsqlClient. `failures` maps a SQL fragment to the exit
    status isql should report for statements containing it.
    """

    def __init__(self, failures=None, outputs=None, elapsed_ms=0.0) -> None:
        self.failures = failures or {}
        self.outputs = outputs or {}
        self.elapsed_ms = elapsed_ms
        self.calls: List[tuple] = []

    def execute(self, sql: str, database: Optional[str] = None, ignore_errors: bool = False):
        self.calls.append((sql, database, ignore_errors))
        returncode = 0
        for fragment, code in self.failures.items():
            if fragment in sql:
                returncode = code
        if returncode and not ignore_errors:
            raise ExecutionError(returncode, "Statement failed", sql=sql)
        output = ""
        for fragment, text in self.outputs.items():
            if fragment in sql:
                output = text
        return ExecutionResult(
            sql=sql,
            success=returncode == 0,
            returncode=returncode,
            elapsed_ms=self.elapsed_ms,
            raw_output=output,
            error_output="Statement failed" if returncode else "",
        )

    def executed(self, fragment: str) -> bool:
        return any(fragment in sql for sql, _, _ in self.calls)


@pytest.fixture
def fake_client():
    return FakeIsqlClient()
