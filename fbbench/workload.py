import logging
from typing import List, Sequence

from .config import RunOptions
from .errors import ExecutionError
from .models import PhaseResult, WorkloadPhase

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE TEST_DATA (
    ID INTEGER NOT NULL PRIMARY KEY,
    NAME VARCHAR(100),
    DESCRIPTION VARCHAR(255),
    VALUE_NUM INTEGER,
    CREATED_AT TIMESTAMP
);
COMMIT;
"""

INSERT_SQL_TEMPLATE = """
SET TERM ^ ;
EXECUTE BLOCK AS
    DECLARE VARIABLE I INTEGER = 0;
BEGIN
    WHILE (I < %(records)d) DO
    BEGIN
        INSERT INTO TEST_DATA (ID, NAME, DESCRIPTION, VALUE_NUM, CREATED_AT)
        VALUES (:I, 'Name_' || :I, 'Description for row ' || :I, MOD(:I, 1000),
                CAST('NOW' AS TIMESTAMP));
        I = I + 1;
    END
END^
SET TERM ; ^
COMMIT;
"""

SELECT_SQL = """
SELECT COUNT(*) FROM TEST_DATA;
SELECT COUNT(*) FROM TEST_DATA WHERE NAME LIKE 'Name_1%';
SELECT AVG(VALUE_NUM), MIN(CREATED_AT), MAX(CREATED_AT) FROM TEST_DATA;
SELECT VALUE_NUM, COUNT(*) FROM TEST_DATA GROUP BY VALUE_NUM ORDER BY VALUE_NUM ROWS 10;
"""

UPDATE_SQL = """
UPDATE TEST_DATA SET VALUE_NUM = VALUE_NUM + 1 WHERE MOD(ID, 10) = 0;
COMMIT;
"""

CREATE_INDEX_SQL = """
CREATE INDEX IDX_TEST_DATA_VALUE ON TEST_DATA (VALUE_NUM);
COMMIT;
"""


def insert_sql(records: int) -> str:
    if records < 0:
        raise ValueError("records must be >= 0, got %s" % records)
    return INSERT_SQL_TEMPLATE % {"records": records}


def default_phases(options: RunOptions) -> List[WorkloadPhase]:
    """
    The canonical phase list: schema, insert, select, update, createIndex.
    """
    return [
        WorkloadPhase("schema", SCHEMA_SQL, timed=False),
        WorkloadPhase("insert", insert_sql(options.records)),
        WorkloadPhase("select", SELECT_SQL, ignore_errors=options.tolerate_select_errors),
        WorkloadPhase("update", UPDATE_SQL),
        WorkloadPhase("createIndex", CREATE_INDEX_SQL),
    ]


def run_phases(client, phases: Sequence[WorkloadPhase], target: str) -> List[PhaseResult]:
    """
    Execute phases in order against `target`, one at a time.

    An ExecutionError from a phase that does not ignore errors propagates
    immediately; no later phase runs.
    """
    results: List[PhaseResult] = []
    for phase in phases:
        logger.info("Phase %s started", phase.name)
        try:
            result = client.execute(phase.sql, database=target, ignore_errors=phase.ignore_errors)
        except ExecutionError:
            logger.error("Phase %s failed, aborting run", phase.name)
            raise
        elapsed_ms = int(round(result.elapsed_ms))
        if not result.success:
            logger.warning(
                "Phase %s exited with status %s (tolerated): %s",
                phase.name,
                result.returncode,
                result.error_output.strip(),
            )
        if result.raw_output:
            logger.debug("Phase %s output:\n%s", phase.name, result.raw_output)
        if phase.timed:
            results.append(PhaseResult(phase_name=phase.name, elapsed_ms=max(elapsed_ms, 0)))
            logger.info("Phase %s finished in %s ms", phase.name, elapsed_ms)
        else:
            logger.info("Phase %s finished", phase.name)
    return results
