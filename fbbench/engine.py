import logging
from typing import Optional

from .errors import ParseError
from .listparse import query_list
from .models import FactMap

logger = logging.getLogger(__name__)

# isql renders SQL NULL as this literal
ISQL_NULL = "<null>"

ENGINE_FACTS_SQL = """
SELECT
    RDB$GET_CONTEXT('SYSTEM', 'ENGINE_VERSION') AS "EngineVersion",
    MON$REMOTE_PROTOCOL AS "RemoteProtocol",
    MON$CLIENT_VERSION AS "ClientVersion"
FROM MON$ATTACHMENTS
WHERE MON$ATTACHMENT_ID = CURRENT_CONNECTION
"""


def fetch_engine_facts(client, target: str) -> Optional[FactMap]:
    """
    Engine version, remote protocol and client version of the current
    attachment. Output that does not parse is reported as missing facts;
    an isql failure still raises ExecutionError.
    """
    try:
        facts = query_list(client, ENGINE_FACTS_SQL, database=target)
    except ParseError as exc:
        logger.warning("Unexpected isql list output for engine facts: %s", exc)
        return None
    if not facts:
        logger.warning("isql returned no engine facts")
        return None
    return {key: None if value == ISQL_NULL else value for key, value in facts.items()}
