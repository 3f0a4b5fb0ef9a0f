import pytest

from cricket_pipeline.common.exceptions import StructuralError, ValidationRejected
from cricket_pipeline.data_collection.scrapers.points_table_scraper import (
    COLUMN_TOKENS,
    build_standings_row,
    create_column_map,
    parse_points_table,
)

EXTRACTED_AT = "2025-04-01T10:00:00.000Z"
HEADER = ["POS", "TEAM", "P", "W", "L", "NR", "NRR", "FOR", "AGAINST", "PTS", "RECENT FORM"]


def _table(*rows):
    body = "".join("<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>" for row in rows)
    return f"<table>{body}</table>"


def test_column_map_full_header():
    column_map = create_column_map(HEADER)
    assert column_map == {token: i for i, token in enumerate(HEADER)}


def test_column_map_reordered_and_partial():
    column_map = create_column_map(["Team", "pts", "P", "Recent  Form"])
    assert column_map["TEAM"] == 0
    assert column_map["PTS"] == 1
    assert column_map["P"] == 2
    assert column_map["RECENT FORM"] == 3
    assert column_map["NRR"] == -1
    assert set(column_map) == set(COLUMN_TOKENS)


def test_example_row_from_documentation():
    html = _table(HEADER, ["1", "MI", "14", "10", "4", "0", "1.542", "1960/0", "1800/0", "20", "WWWLW"])
    result = parse_points_table(html, 2025, EXTRACTED_AT)
    assert len(result.teams) == 1
    row = result.teams[0].to_payload()
    assert row == {
        "position": 1,
        "team": "MI",
        "played": 14,
        "won": 10,
        "lost": 4,
        "noResult": 0,
        "netRunRate": 1.542,
        "runsFor": "1960/0",
        "runsAgainst": "1800/0",
        "points": 20,
        "recentForm": "WWWLW",
    }


def test_fixture_rows_filtered(points_table_html):
    result = parse_points_table(points_table_html, 2024, EXTRACTED_AT)
    assert [r.team for r in result.teams] == ["MI", "CSK", "SRH"]
    assert all(2 <= len(r.team) <= 5 for r in result.teams)
    assert result.skipped_rows == 1
    assert len(result.rejected_rows) == 2
    assert result.teams[2].position == 6
    assert result.teams[2].net_run_rate == -0.45


def test_payload_shape(points_table_html):
    payload = parse_points_table(points_table_html, 2024, EXTRACTED_AT).to_payload()
    assert payload["year"] == 2024
    assert payload["totalTeams"] == 3
    assert payload["lastUpdated"] == EXTRACTED_AT
    assert payload["tableStructure"]["TEAM"] == 1


def test_parsing_is_idempotent(points_table_html):
    first = parse_points_table(points_table_html, 2024, EXTRACTED_AT).to_payload()
    second = parse_points_table(points_table_html, 2024, EXTRACTED_AT).to_payload()
    assert first == second


@pytest.mark.parametrize("missing", ["TEAM", "P"])
def test_missing_required_column(missing):
    header = [h for h in HEADER if h != missing]
    html = _table(header, ["1"] * len(header))
    with pytest.raises(StructuralError):
        parse_points_table(html, 2025, EXTRACTED_AT)


def test_table_without_data_rows():
    with pytest.raises(StructuralError):
        parse_points_table(_table(HEADER), 2025, EXTRACTED_AT)
    with pytest.raises(StructuralError):
        parse_points_table("<html><body>No table</body></html>", 2025, EXTRACTED_AT)


def test_capped_at_ten_rows():
    rows = [[str(i), f"T{i:02d}", "14", "7", "7", "0", "0.1", "-", "-", "14", "W"] for i in range(1, 13)]
    result = parse_points_table(_table(HEADER, *rows), 2025, EXTRACTED_AT)
    assert len(result.teams) == 10
    assert result.teams[-1].team == "T10"


def test_position_falls_back_to_row_index():
    column_map = create_column_map(HEADER)
    row = build_standings_row(["-", "GT", "14", "", "", "", "", "", "", "", ""], column_map, 4)
    assert row.position == 4
    assert row.won == 0
    assert row.net_run_rate == 0.0


def test_invalid_team_raises_validation_rejected():
    column_map = create_column_map(HEADER)
    with pytest.raises(ValidationRejected):
        build_standings_row(["1", "", "14", "", "", "", "", "", "", "", ""], column_map, 1)
