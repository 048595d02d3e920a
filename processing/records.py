"""
Record helpers — pure functions behind the four dashboard pages.

Everything here works on plain dicts as returned by the spreadsheet API
(keys are the sheet column names, values are whatever the sheet holds:
strings, numbers, or blanks). Nothing in this module talks to the network
or to Streamlit, so every rule the pages display is testable on its own.

Public API:
    parse_quantity(value) → int
    cell_to_text(value) → str
    component_stats(components) → ComponentStats
    stock_level(quantity) → str
    search_components(components, query) → list[dict]
    adjust_quantity(current, delta) → int
    competition_stats(competitions, today) → CompetitionStats
    filter_competitions(competitions, status) → list[dict]
    position_tier(position) → str | None
    format_date(value) → str
    truncate(text, length) → str
    project_payload / component_payload / competition_payload /
    result_payload / order_payload → dict
    split_components_used(value) → list[str]
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime

import pandas as pd

from config.schema import (
    COMPETITION_FIELDS,
    COMPETITION_RESULT_FIELDS,
    COMPONENT_FIELDS,
    DEFAULT_COMPETITION_STATUS,
    DEFAULT_ORDER_STATUS,
    INTEGER_FIELDS,
    LOW_STOCK_THRESHOLD,
    ORDER_FIELDS,
    PODIUM_KEYWORDS,
    PROJECT_FIELDS,
    WIN_KEYWORDS,
)

logger = logging.getLogger(__name__)

# Leading integer of a cell, after whitespace: "12", "-3", "7 pcs", "3.7".
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

# "1,250" → "1250" (only commas sitting between digit groups)
_THOUSANDS_SEP_PATTERN = re.compile(r"(?<=\d),(?=\d{3}\b)")

_INACTIVE_STATUSES: set[str] = {"completed", "cancelled"}


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ComponentStats:
    """Stock counters shown above the components table."""

    total: int = 0
    in_stock: int = 0
    low_stock: int = 0
    out_of_stock: int = 0


@dataclass
class CompetitionStats:
    """Counters shown above the competitions table."""

    upcoming: int = 0
    ongoing: int = 0
    completed: int = 0
    wins: int = 0


# ═══════════════════════════════════════════════════════════════════════════
# Cell coercion
# ═══════════════════════════════════════════════════════════════════════════

def cell_to_text(value: object) -> str:
    """
    Render a raw sheet cell as trimmed text.

    Blanks (None, NaN) become "". Whole floats drop their ".0" so a
    spreadsheet number like 3.0 reads as "3". Dates at midnight render as
    ISO dates.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, datetime):
        if value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_quantity(value: object) -> int:
    """
    Coerce a quantity cell to a non-negative integer.

    Takes the leading integer of the cell text, so "12 pcs" → 12 and
    "3.7" → 3. Numeric cells are truncated directly, never via their text
    form. Thousands separators are removed first. Anything that does
    not start with a number, or parses negative, becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0) if math.isfinite(value) else 0

    text = _THOUSANDS_SEP_PATTERN.sub("", cell_to_text(value))
    match = _LEADING_INT_PATTERN.match(text)
    if match is None:
        return 0

    quantity = int(match.group(1))
    return quantity if quantity > 0 else 0


# ═══════════════════════════════════════════════════════════════════════════
# Components
# ═══════════════════════════════════════════════════════════════════════════

def stock_level(quantity: int) -> str:
    """Return "zero", "low" or "ok" for a component quantity."""
    if quantity <= 0:
        return "zero"
    if quantity <= LOW_STOCK_THRESHOLD:
        return "low"
    return "ok"


def component_stats(components: list[dict]) -> ComponentStats:
    """Count components by stock level."""
    stats = ComponentStats(total=len(components))

    for component in components:
        level = stock_level(parse_quantity(component.get("Quantity")))
        if level == "ok":
            stats.in_stock += 1
        elif level == "low":
            stats.low_stock += 1
        else:
            stats.out_of_stock += 1

    return stats


def search_components(components: list[dict], query: str) -> list[dict]:
    """
    Filter components by a case-insensitive substring.

    Matches against ComponentName, ComponentID, Type and Description.
    An empty query returns every component.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(components)

    searched_fields = ("ComponentName", "ComponentID", "Type", "Description")
    matches = [
        component for component in components
        if any(
            needle in cell_to_text(component.get(key)).lower()
            for key in searched_fields
        )
    ]
    logger.debug(f"Search '{needle}': {len(matches)} of {len(components)} components")
    return matches


def adjust_quantity(current: int, delta: int) -> int:
    """Apply a +/- step to a quantity, never going below zero."""
    return max(0, parse_quantity(current) + delta)


# ═══════════════════════════════════════════════════════════════════════════
# Competitions
# ═══════════════════════════════════════════════════════════════════════════

def _status_of(competition: dict) -> str:
    return cell_to_text(competition.get("Status")).lower()


def _parse_date(value: object) -> date | None:
    text = cell_to_text(value)
    if not text:
        return None
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def competition_stats(competitions: list[dict], today: date) -> CompetitionStats:
    """
    Count competitions by status and podium finishes.

    A competition is upcoming when its status says so, or when its start
    date is after *today* and it is neither completed nor cancelled.
    """
    stats = CompetitionStats()

    for competition in competitions:
        status = _status_of(competition)
        start = _parse_date(competition.get("Date"))

        if status == "upcoming" or (
            start is not None and start > today and status not in _INACTIVE_STATUSES
        ):
            stats.upcoming += 1
        if status == "ongoing":
            stats.ongoing += 1
        if status == "completed":
            stats.completed += 1

        position = cell_to_text(competition.get("Position")).lower()
        if any(keyword in position for keyword in WIN_KEYWORDS):
            stats.wins += 1

    return stats


def filter_competitions(competitions: list[dict], status: str) -> list[dict]:
    """
    Keep competitions with the given status (case-insensitive).

    "all" keeps everything. A blank status counts as the default status.
    """
    wanted = (status or "all").lower()
    if wanted == "all":
        return list(competitions)

    default = DEFAULT_COMPETITION_STATUS.lower()
    return [
        competition for competition in competitions
        if (_status_of(competition) or default) == wanted
    ]


def position_tier(position: object) -> str | None:
    """
    Classify a competition Position as "gold", "silver", "bronze" or "other".

    Returns None for a blank position.
    """
    text = cell_to_text(position).lower()
    if not text:
        return None
    for tier, keywords in PODIUM_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return tier
    return "other"


# ═══════════════════════════════════════════════════════════════════════════
# Display helpers
# ═══════════════════════════════════════════════════════════════════════════

def format_date(value: object) -> str:
    """
    Format a sheet date as "Mar 5, 2024".

    Unparseable text is returned unchanged; blanks become "".
    """
    text = cell_to_text(value)
    if not text:
        return ""
    parsed = _parse_date(text)
    if parsed is None:
        return text
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def truncate(text: object, length: int) -> str:
    """Shorten *text* to *length* characters plus "..." when it is longer."""
    rendered = cell_to_text(text)
    if len(rendered) <= length:
        return rendered
    return rendered[:length] + "..."


# ═══════════════════════════════════════════════════════════════════════════
# Form payloads
# ═══════════════════════════════════════════════════════════════════════════

def _payload(values: dict, fields: list[str]) -> dict:
    payload: dict = {}
    for key in fields:
        if key in INTEGER_FIELDS:
            payload[key] = parse_quantity(values.get(key))
        else:
            payload[key] = cell_to_text(values.get(key))
    return payload


def split_components_used(value: object) -> list[str]:
    """Split a project's "C001, C002" ComponentsUsed cell into IDs."""
    return [part.strip() for part in cell_to_text(value).split(",") if part.strip()]


def project_payload(values: dict, component_ids: list[str]) -> dict:
    """Build the addProject/updateProject body from form values."""
    payload = _payload(values, PROJECT_FIELDS)
    payload["ComponentsUsed"] = ", ".join(component_ids)
    return payload


def component_payload(values: dict) -> dict:
    """Build the addComponent/updateComponent body from form values."""
    return _payload(values, COMPONENT_FIELDS)


def competition_payload(values: dict) -> dict:
    """Build the addCompetition/updateCompetition body from form values."""
    payload = _payload(values, COMPETITION_FIELDS)
    if not payload["Status"]:
        payload["Status"] = DEFAULT_COMPETITION_STATUS
    return payload


def result_payload(values: dict) -> dict:
    """Build the updateCompetitionResult body from the result form."""
    payload = _payload(values, COMPETITION_RESULT_FIELDS)
    if not payload["Status"]:
        payload["Status"] = DEFAULT_COMPETITION_STATUS
    return payload


def order_payload(values: dict) -> dict:
    """Build the addOrder/updateOrder body from form values."""
    payload = _payload(values, ORDER_FIELDS)
    if not payload["Status"]:
        payload["Status"] = DEFAULT_ORDER_STATUS
    return payload
