from __future__ import annotations

import re
from collections.abc import Sequence

from zone_import.models.mapping import ColumnMapping

from .reader import TabularRow

"""Column role detection.

Header names are matched (case-insensitively, whole name) against a fixed set
of synonyms per role. Roles are tried in a fixed order and the first matching
header wins; a header claimed by an earlier role is not reconsidered. When no
header looks like a name, the first column becomes the name column.

The result is a suggestion: callers may override any role before
normalizing.
"""

__all__ = [
    "ROLE_PATTERNS",
    "analyze_columns",
]

ROLE_PATTERNS: dict[str, re.Pattern[str]] = {
    "name_column": re.compile(r"^(name|title|place|location|site|venue|business)$", re.I),
    "address_column": re.compile(
        r"^(address|location|street|street[ _]address|addr|full_address|complete_address)$", re.I
    ),
    "description_column": re.compile(
        r"^(description|desc|details|info|information|summary|about|notes)$", re.I
    ),
    "category_column": re.compile(r"^(category|cat|group|classification|tag|type_name)$", re.I),
    "latitude_column": re.compile(r"^(lat|latitude|y|lat_coord|geo_lat)$", re.I),
    "longitude_column": re.compile(
        r"^(lon|long|longitude|lng|x|lng_coord|lon_coord|geo_lng|geo_lon)$", re.I
    ),
    "type_column": re.compile(r"^(type|zone_type|kind|class|shape)$", re.I),
}


def analyze_columns(rows: Sequence[TabularRow]) -> ColumnMapping:
    """Suggest a ColumnMapping from the header names of ``rows``."""
    if not rows:
        return ColumnMapping()

    headers = list(rows[0].keys())
    claimed: set[str] = set()
    suggestion: dict[str, str] = {}

    for role, pattern in ROLE_PATTERNS.items():
        for header in headers:
            if header in claimed:
                continue
            if pattern.match(header.strip()):
                suggestion[role] = header
                claimed.add(header)
                break

    if "name_column" not in suggestion and headers:
        first = headers[0]
        if first in claimed:
            # the first header already backs another role; give it to name instead
            for role, header in list(suggestion.items()):
                if header == first:
                    del suggestion[role]
        suggestion["name_column"] = first

    return ColumnMapping(**suggestion)
