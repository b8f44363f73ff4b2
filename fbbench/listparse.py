"""
Parser for isql "list" output (`SET LIST ON`).

In list mode isql prints every column of a row on its own line as
`<label><whitespace><value>`; rows are separated by a blank line. With `-q`
the output starts with two banner lines that carry no data.
"""

import re
from typing import Iterable, Optional, Union

from .errors import ParseError
from .models import FactMap

HEADER_LINES = 2

_LINE_RE = re.compile(r"^(\S+)\s+(.*)$")


def parse_list_output(raw: Union[str, Iterable[str]]) -> FactMap:
    """
    Return the first result block as an ordered label -> value mapping.

    The first two lines are dropped, scanning stops at the first blank line.
    A line that is a single bare token is skipped; on duplicate labels the
    first value is kept.
    """
    lines = raw.splitlines() if isinstance(raw, str) else [line.rstrip("\r\n") for line in raw]
    if len(lines) < HEADER_LINES:
        raise ParseError(
            "expected at least %s header lines, got %s" % (HEADER_LINES, len(lines))
        )

    facts: FactMap = {}
    for line in lines[HEADER_LINES:]:
        if not line.strip():
            break
        match = _LINE_RE.match(line)
        if not match:
            continue
        key, value = match.group(1), match.group(2).strip()
        if key not in facts:
            facts[key] = value
    return facts


def query_list(client, sql: str, database: Optional[str] = None) -> FactMap:
    """
    Run `sql` in list mode and parse the first row it returns.
    An isql failure raises ExecutionError before any parsing happens.
    """
    statement = sql.strip()
    if not statement.endswith(";"):
        statement += ";"
    result = client.execute("SET LIST ON;\n%s\n" % statement, database=database)
    return parse_list_output(result.raw_output)
