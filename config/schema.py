"""
Record schema definitions for the dashboard's four record types.

Each record type is a sheet in the remote spreadsheet store. The field lists
below are the editable columns sent to the add/update actions; the ID and
timestamp columns are assigned by the store.
"""

# ---------------------------------------------------------------------------
# Record ID columns, one per sheet.
# ---------------------------------------------------------------------------
PROJECT_ID: str = "ProjectID"
COMPONENT_ID: str = "ComponentID"
COMPETITION_ID: str = "EventID"
ORDER_ID: str = "OrderID"

# ---------------------------------------------------------------------------
# Editable fields per record type, in form order.
# ---------------------------------------------------------------------------
PROJECT_FIELDS: list[str] = [
    "ProjectName",
    "Overview",
    "Code",
    "ComponentsUsed",
]

COMPONENT_FIELDS: list[str] = [
    "ComponentName",
    "Type",
    "Description",
    "Quantity",
]

COMPETITION_FIELDS: list[str] = [
    "EventName",
    "Date",
    "EndDate",
    "Location",
    "Details",
    "Status",
    "Result",
    "Position",
    "Participants",
    "Notes",
]

# Subset written by the updateCompetitionResult action.
COMPETITION_RESULT_FIELDS: list[str] = [
    "Status",
    "Position",
    "Result",
    "Notes",
]

ORDER_FIELDS: list[str] = [
    "ComponentID",
    "ComponentName",
    "Quantity",
    "Vendor",
    "OrderDate",
    "ExpectedDelivery",
    "Status",
    "Notes",
]

# Fields coerced to non-negative integers before sending.
INTEGER_FIELDS: set[str] = {"Quantity"}

# ---------------------------------------------------------------------------
# Constrained values
# ---------------------------------------------------------------------------
COMPETITION_STATUS_OPTIONS: list[str] = [
    "Upcoming",
    "Ongoing",
    "Completed",
    "Cancelled",
]

DEFAULT_COMPETITION_STATUS: str = "Upcoming"

ORDER_STATUS_OPTIONS: list[str] = [
    "Ordered",
    "Shipped",
    "Delivered",
    "Cancelled",
]

DEFAULT_ORDER_STATUS: str = "Ordered"

# Competition filter tabs: "all" plus every status in lowercase.
COMPETITION_FILTERS: list[str] = ["all"] + [
    status.lower() for status in COMPETITION_STATUS_OPTIONS
]

# ---------------------------------------------------------------------------
# Stock thresholds for the components page.
# quantity == 0 → out of stock; 1..LOW_STOCK_THRESHOLD → low; above → in stock
# ---------------------------------------------------------------------------
LOW_STOCK_THRESHOLD: int = 5

# Substrings in a competition Position that count as a podium finish.
# Checked in order; the first hit decides the medal tier.
PODIUM_KEYWORDS: dict[str, list[str]] = {
    "gold": ["1st", "first"],
    "silver": ["2nd", "second"],
    "bronze": ["3rd", "third"],
}

# Any of these in a Position (case-insensitive) counts as a win.
WIN_KEYWORDS: list[str] = [
    keyword for keywords in PODIUM_KEYWORDS.values() for keyword in keywords
]
