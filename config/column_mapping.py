"""
Column detection configuration for the component spreadsheet import.

Maps arbitrary spreadsheet header text to the four canonical component
fields. Patterns are matched case-insensitively against the trimmed header.

Order matters twice over:
  - fields are claimed in CANONICAL_FIELDS order for each header
  - within a field, patterns are tried top to bottom
"""

# ---------------------------------------------------------------------------
# Canonical fields every imported component is reduced to.
# ---------------------------------------------------------------------------
NAME: str = "Name"
TYPE: str = "Type"
DESCRIPTION: str = "Description"
QUANTITY: str = "Quantity"

CANONICAL_FIELDS: list[str] = [NAME, TYPE, DESCRIPTION, QUANTITY]

# Sentinel column index for a field that is not mapped to any column.
UNMAPPED: int = -1

# Labels shown next to the mapping dropdowns. Name is the only required field.
FIELD_LABELS: dict[str, str] = {
    NAME: "📦 Component Name *",
    TYPE: "🏷️ Type",
    DESCRIPTION: "📝 Description",
    QUANTITY: "🔢 Quantity",
}

# Wire keys expected by the bulkAddComponents action.
FIELD_PAYLOAD_KEYS: dict[str, str] = {
    NAME: "ComponentName",
    TYPE: "Type",
    DESCRIPTION: "Description",
    QUANTITY: "Quantity",
}

# ---------------------------------------------------------------------------
# Detection patterns: ordered (field, regex) pairs.
# Anchored patterns require the whole header to be the synonym; unanchored
# ones match anywhere in the header ("Item Name", "Raw Material").
# ---------------------------------------------------------------------------
FIELD_PATTERNS: list[tuple[str, str]] = [
    # Name
    (NAME, r"^name$"),
    (NAME, r"component\s*name"),
    (NAME, r"^item$"),
    (NAME, r"item\s*name"),
    (NAME, r"product"),
    (NAME, r"^component$"),
    (NAME, r"^part$"),
    (NAME, r"material"),
    (NAME, r"^title$"),
    # Type
    (TYPE, r"^type$"),
    (TYPE, r"^category$"),
    (TYPE, r"^kind$"),
    (TYPE, r"^class$"),
    (TYPE, r"^group$"),
    # Description
    (DESCRIPTION, r"^description$"),
    (DESCRIPTION, r"^details$"),
    (DESCRIPTION, r"^info$"),
    (DESCRIPTION, r"^notes$"),
    (DESCRIPTION, r"^spec"),
    # Quantity
    (QUANTITY, r"^qty$"),
    (QUANTITY, r"^quantity$"),
    (QUANTITY, r"^count$"),
    (QUANTITY, r"^stock$"),
    (QUANTITY, r"^amount$"),
    (QUANTITY, r"^number$"),
    (QUANTITY, r"^units$"),
]

# ---------------------------------------------------------------------------
# Upload handling
# ---------------------------------------------------------------------------
SUPPORTED_EXTENSIONS: list[str] = [".xlsx", ".xls", ".csv"]

# Rows shown in the mapping preview table before "... and N more rows".
PREVIEW_ROW_LIMIT: int = 10

# Description cells longer than this are shortened in the preview.
PREVIEW_DESCRIPTION_LENGTH: int = 30
