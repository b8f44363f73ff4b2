import pytest

from fbbench.errors import ExecutionError, ParseError
from fbbench.listparse import parse_list_output, query_list

from tests.conftest import FakeIsqlClient

ENGINE_OUTPUT = """
Database: /tmp/fbbench.fdb, User: SYSDBA
EngineVersion                   4.0.1
RemoteProtocol                  TCPv4
ClientVersion                   WI-V4.0.1.2692 Firebird 4.0

EngineVersion                   9.9.9
"""


def test_skips_two_header_lines_and_stops_at_blank():
    facts = parse_list_output(ENGINE_OUTPUT)
    assert list(facts) == ["EngineVersion", "RemoteProtocol", "ClientVersion"]
    assert facts["EngineVersion"] == "4.0.1"


def test_value_with_embedded_whitespace_is_trimmed():
    facts = parse_list_output(["", "", "EngineVersion    4.0.1   ", "Client  WI-V4.0 Firebird 4.0"])
    assert facts == {"EngineVersion": "4.0.1", "Client": "WI-V4.0 Firebird 4.0"}


def test_k_entries_then_trailing_content():
    lines = ["banner", "banner"] + ["KEY%d value %d" % (i, i) for i in range(5)]
    lines += ["", "OTHER 1", "garbage"]
    facts = parse_list_output(lines)
    assert len(facts) == 5
    assert "OTHER" not in facts


def test_header_lines_are_dropped_even_if_they_look_like_data():
    facts = parse_list_output(["A 1", "B 2", "C 3"])
    assert facts == {"C": "3"}


def test_whitespace_only_line_terminates():
    facts = parse_list_output(["", "", "A 1", "   \t", "B 2"])
    assert facts == {"A": "1"}


def test_duplicate_key_keeps_first():
    facts = parse_list_output(["", "", "A first", "A second"])
    assert facts == {"A": "first"}


def test_bare_token_and_indented_lines_are_skipped():
    facts = parse_list_output(["", "", "LONELY", "  indented value", "A 1"])
    assert facts == {"A": "1"}


def test_only_headers_gives_empty_map():
    assert parse_list_output(["", ""]) == {}


def test_too_short_output_is_parse_error():
    with pytest.raises(ParseError):
        parse_list_output("only one line")


def test_crlf_lines():
    facts = parse_list_output(["\r\n", "\r\n", "A 1\r\n", "\r\n"])
    assert facts == {"A": "1"}


def test_query_list_enables_list_mode():
    client = FakeIsqlClient(outputs={"SELECT": ENGINE_OUTPUT})
    facts = query_list(client, "SELECT 1 FROM RDB$DATABASE", database="db.fdb")
    sql, database, _ = client.calls[0]
    assert sql.startswith("SET LIST ON;")
    assert sql.rstrip().endswith(";")
    assert database == "db.fdb"
    assert facts["RemoteProtocol"] == "TCPv4"


def test_query_list_failure_is_not_parsed():
    client = FakeIsqlClient(failures={"SELECT": 1})
    with pytest.raises(ExecutionError) as excinfo:
        query_list(client, "SELECT 1 FROM RDB$DATABASE")
    assert excinfo.value.returncode == 1


def test_null_marker_is_left_to_callers():
    facts = parse_list_output(["", "", "RemoteProtocol   <null>"])
    assert facts == {"RemoteProtocol": "<null>"}
