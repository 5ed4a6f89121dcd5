from datetime import datetime, timedelta, timezone

import pytest

from doc_agent.crm.client import SalesforceClient
from doc_agent.config import SalesforceSettings
from doc_agent.crm.opportunities import OpportunityLookupService
from doc_agent.query.builder import QueryBuilder
from doc_agent.query.soql import escape_soql_literal, render_literal, render_soql

NASTY_VALUES = [
    "O'Brien",
    "x' OR Name != '",
    "back\\slash",
    "trailing\\",
    "\\' OR Id != null --",
    'double "quoted"',
    "new\nline\ttab",
    "100% of_value",
    "''''",
]


def _decode_literal(literal: str) -> tuple[str, int]:
    """Read one single-quoted SOQL literal; return (value, index after it)."""

    assert literal[0] == "'"
    out: list[str] = []
    i = 1
    while i < len(literal):
        char = literal[i]
        if char == "\\":
            out.append(literal[i + 1])
            i += 2
            continue
        if char == "'":
            return "".join(out), i + 1
        out.append(char)
        i += 1
    raise AssertionError("unterminated literal")


def _without_control(value: str) -> str:
    return "".join(c for c in value if ord(c) >= 0x20 or c in "\n\r\t\b\f")


@pytest.mark.parametrize("value", NASTY_VALUES)
def test_literal_round_trips_and_ends_at_closing_quote(value) -> None:
    literal = render_literal(value)
    decoded, end = _decode_literal(literal)

    assert end == len(literal)
    expected = _without_control(value)
    escapes = {"\n": "n", "\t": "t", "\r": "r", "\b": "b", "\f": "f"}
    assert decoded == "".join(escapes.get(c, c) for c in expected)


@pytest.mark.parametrize("value", NASTY_VALUES)
def test_contains_filter_cannot_alter_clause_structure(value) -> None:
    query = QueryBuilder().contains("name", value).equals("stage", "Open").build()
    soql = render_soql(
        query,
        sobject="Opportunity",
        fields=("Id",),
        field_map={"name": "Name", "stage": "StageName"},
    )

    prefix = "SELECT Id FROM Opportunity WHERE Name LIKE "
    assert soql.startswith(prefix)
    _, end = _decode_literal(soql[len(prefix) :])
    assert soql[len(prefix) + end :] == " AND StageName = 'Open'"


def test_like_wildcards_are_escaped() -> None:
    assert escape_soql_literal("50%_off", like=True) == "50\\%\\_off"
    assert escape_soql_literal("50%_off") == "50%_off"
    assert render_literal("ab", like=True) == "'%ab%'"


def test_control_characters_are_dropped() -> None:
    assert escape_soql_literal("a\x00b\x1fc") == "abc"


def test_datetimes_render_as_utc() -> None:
    local = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert render_literal(local) == "2024-05-01T10:00:00Z"
    assert render_literal(datetime(2024, 5, 1)) == "2024-05-01T00:00:00Z"


def _service() -> OpportunityLookupService:
    settings = SalesforceSettings(client_id="id", client_secret="s", username="u", password="p")
    return OpportunityLookupService(SalesforceClient(settings))


def test_opportunity_identity_ignores_other_filters() -> None:
    soql = _service().build_statement(
        opportunity_id="006000000000001AAA",
        policy_number="P-1",
        stage_name="Closed Won",
        created_after=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    assert "WHERE Id = '006000000000001AAA' ORDER BY" in soql
    assert "POLICY_NUMBER_CURRENT__C" not in soql.split("FROM Opportunity")[1]
    assert "StageName =" not in soql


def test_opportunity_statement_composes_filters_sort_and_page() -> None:
    soql = _service().build_statement(
        policy_number="P'1",
        unique_id="U-9",
        stage_name="Closed Won",
        created_after=datetime(2024, 1, 1, tzinfo=timezone.utc),
        created_before=datetime(2024, 2, 1, tzinfo=timezone.utc),
        sort_order="OLDEST",
        take=500,
        skip=20,
    )

    where = soql.split(" WHERE ", 1)[1]
    assert where == (
        "POLICY_NUMBER_CURRENT__C LIKE '%P\\'1%'"
        " AND STARR_UNIQUE_ID__C LIKE '%U-9%'"
        " AND StageName = 'Closed Won'"
        " AND CreatedDate >= 2024-01-01T00:00:00Z AND CreatedDate <= 2024-02-01T00:00:00Z"
        " ORDER BY CreatedDate ASC LIMIT 100 OFFSET 20"
    )


def test_opportunity_defaults_sort_newest_without_offset() -> None:
    soql = _service().build_statement(sort_order="sideways")

    assert soql.endswith("FROM Opportunity ORDER BY CreatedDate DESC LIMIT 10")
