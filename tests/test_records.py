"""
Tests for processing/records.py

Covers: quantity and cell coercion, stock stats and levels, component
search, quantity adjustment, competition stats/filters/position tiers,
date formatting, truncation, and the form payload builders.
"""

from datetime import date, datetime

import pytest

from processing.records import (
    CompetitionStats,
    ComponentStats,
    adjust_quantity,
    cell_to_text,
    competition_payload,
    competition_stats,
    component_payload,
    component_stats,
    filter_competitions,
    format_date,
    order_payload,
    parse_quantity,
    position_tier,
    project_payload,
    result_payload,
    search_components,
    split_components_used,
    stock_level,
    truncate,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _components() -> list[dict]:
    return [
        {"ComponentID": "C001", "ComponentName": "Servo Motor", "Type": "Actuator",
         "Description": "MG996R high torque", "Quantity": "12"},
        {"ComponentID": "C002", "ComponentName": "Ultrasonic Sensor", "Type": "Sensor",
         "Description": "HC-SR04", "Quantity": 3},
        {"ComponentID": "C003", "ComponentName": "Arduino Uno", "Type": "Board",
         "Description": "", "Quantity": 0},
        {"ComponentID": "C004", "ComponentName": "Jumper Wires", "Type": "",
         "Description": None, "Quantity": "lots"},
    ]


TODAY = date(2024, 6, 1)


# ═══════════════════════════════════════════════════════════════════════════
# Coercion
# ═══════════════════════════════════════════════════════════════════════════

class TestParseQuantity:
    @pytest.mark.parametrize("value, expected", [
        ("7", 7),
        (7, 7),
        (7.0, 7),
        ("  9 ", 9),
        ("12 pcs", 12),
        ("3.7", 3),
        ("1,250", 1250),
        ("abc", 0),
        ("-3", 0),
        (-3, 0),
        (None, 0),
        ("", 0),
        (float("nan"), 0),
        (float("inf"), 0),
        (0.00005, 0),
        (3.9, 3),
        (-2.5, 0),
        (True, 0),
    ])
    def test_values(self, value, expected):
        assert parse_quantity(value) == expected


class TestCellToText:
    def test_none_is_blank(self):
        assert cell_to_text(None) == ""

    def test_whole_float_drops_decimal(self):
        assert cell_to_text(5.0) == "5"

    def test_fraction_kept(self):
        assert cell_to_text(2.5) == "2.5"

    def test_string_trimmed(self):
        assert cell_to_text("  bolt \n") == "bolt"

    def test_midnight_datetime_renders_as_date(self):
        assert cell_to_text(datetime(2024, 3, 5)) == "2024-03-05"

    def test_date(self):
        assert cell_to_text(date(2024, 3, 5)) == "2024-03-05"


# ═══════════════════════════════════════════════════════════════════════════
# Components
# ═══════════════════════════════════════════════════════════════════════════

class TestComponentStats:
    def test_counts(self):
        stats = component_stats(_components())
        assert stats == ComponentStats(total=4, in_stock=1, low_stock=1, out_of_stock=2)

    def test_empty(self):
        assert component_stats([]) == ComponentStats()

    def test_threshold_boundary(self):
        assert stock_level(5) == "low"
        assert stock_level(6) == "ok"
        assert stock_level(1) == "low"
        assert stock_level(0) == "zero"


class TestSearchComponents:
    def test_matches_name_case_insensitive(self):
        result = search_components(_components(), "servo")
        assert [c["ComponentID"] for c in result] == ["C001"]

    def test_matches_id(self):
        assert len(search_components(_components(), "c00")) == 4

    def test_matches_type_and_description(self):
        assert [c["ComponentID"] for c in search_components(_components(), "sensor")] == ["C002"]
        assert [c["ComponentID"] for c in search_components(_components(), "mg996")] == ["C001"]

    def test_blank_query_returns_all(self):
        assert len(search_components(_components(), "  ")) == 4

    def test_missing_fields_do_not_break(self):
        assert search_components([{"ComponentID": "X1"}], "widget") == []


class TestAdjustQuantity:
    def test_increment(self):
        assert adjust_quantity(4, 1) == 5

    def test_clamps_at_zero(self):
        assert adjust_quantity(2, -10) == 0

    def test_string_current(self):
        assert adjust_quantity("3", 10) == 13


# ═══════════════════════════════════════════════════════════════════════════
# Competitions
# ═══════════════════════════════════════════════════════════════════════════

class TestCompetitionStats:
    def test_counts(self):
        competitions = [
            {"Status": "Upcoming", "Date": "2024-01-01"},
            {"Status": "", "Date": "2024-07-01"},
            {"Status": "Cancelled", "Date": "2024-07-01"},
            {"Status": "Ongoing", "Date": "2024-05-30"},
            {"Status": "Completed", "Date": "2024-02-01", "Position": "1st Place"},
            {"Status": "Completed", "Date": "2024-03-01", "Position": "Second"},
            {"Status": "Completed", "Date": "2024-04-01", "Position": "Finalist"},
        ]
        stats = competition_stats(competitions, today=TODAY)
        assert stats == CompetitionStats(upcoming=2, ongoing=1, completed=3, wins=2)

    def test_unparseable_date_not_upcoming(self):
        stats = competition_stats([{"Status": "", "Date": "TBD"}], today=TODAY)
        assert stats.upcoming == 0


class TestFilterCompetitions:
    def test_all(self):
        competitions = [{"Status": "Ongoing"}, {"Status": "Completed"}]
        assert filter_competitions(competitions, "all") == competitions

    def test_by_status(self):
        competitions = [{"Status": "Ongoing"}, {"Status": "Completed"}]
        assert filter_competitions(competitions, "completed") == [{"Status": "Completed"}]

    def test_blank_status_is_upcoming(self):
        competitions = [{"Status": ""}, {"Status": "Ongoing"}]
        assert filter_competitions(competitions, "upcoming") == [{"Status": ""}]


class TestPositionTier:
    @pytest.mark.parametrize("position, expected", [
        ("1st Place", "gold"),
        ("2nd", "silver"),
        ("Third", "bronze"),
        ("Quarter-finalist", "other"),
        ("", None),
        (None, None),
    ])
    def test_tiers(self, position, expected):
        assert position_tier(position) == expected


# ═══════════════════════════════════════════════════════════════════════════
# Display helpers
# ═══════════════════════════════════════════════════════════════════════════

class TestFormatDate:
    def test_iso_date(self):
        assert format_date("2024-03-05") == "Mar 5, 2024"

    def test_blank(self):
        assert format_date(None) == ""

    def test_unparseable_passthrough(self):
        assert format_date("sometime soon") == "sometime soon"


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("bolt", 30) == "bolt"

    def test_long_text_shortened(self):
        assert truncate("a" * 35, 30) == "a" * 30 + "..."

    def test_none(self):
        assert truncate(None, 10) == ""


# ═══════════════════════════════════════════════════════════════════════════
# Payloads
# ═══════════════════════════════════════════════════════════════════════════

class TestPayloads:
    def test_project_joins_components(self):
        payload = project_payload(
            {"ProjectName": " Rover ", "Overview": "Mars rover", "Code": ""},
            ["C001", "C002"],
        )
        assert payload == {
            "ProjectName": "Rover",
            "Overview": "Mars rover",
            "Code": "",
            "ComponentsUsed": "C001, C002",
        }

    def test_split_components_used(self):
        assert split_components_used("C001, C002,,C003 ") == ["C001", "C002", "C003"]
        assert split_components_used(None) == []

    def test_component_quantity_coerced(self):
        payload = component_payload({"ComponentName": "Bolt", "Quantity": "8"})
        assert payload == {
            "ComponentName": "Bolt", "Type": "", "Description": "", "Quantity": 8,
        }

    def test_competition_default_status(self):
        payload = competition_payload({"EventName": "RoboCup", "Date": "2024-07-01"})
        assert payload["Status"] == "Upcoming"
        assert len(payload) == 10

    def test_result_payload_fields(self):
        payload = result_payload({"Status": "Completed", "Position": "2nd", "Extra": "x"})
        assert payload == {
            "Status": "Completed", "Position": "2nd", "Result": "", "Notes": "",
        }

    def test_order_default_status(self):
        payload = order_payload({"ComponentID": "C001", "Quantity": -2})
        assert payload["Status"] == "Ordered"
        assert payload["Quantity"] == 0
