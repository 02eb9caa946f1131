from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, fields, replace

"""ColumnMapping model: semantic role -> source column header."""

__all__ = [
    "ColumnMapping",
    "ColumnMappingError",
    "ROLE_FIELDS",
]

# Role names as used in config overrides -> dataclass field
ROLE_FIELDS = {
    "name": "name_column",
    "address": "address_column",
    "description": "description_column",
    "category": "category_column",
    "latitude": "latitude_column",
    "longitude": "longitude_column",
    "type": "type_column",
}


class ColumnMappingError(ValueError):
    """Raised when a mapping assigns one header to several roles."""


@dataclass(frozen=True)
class ColumnMapping:
    """Which header feeds which zone field.

    A header may back at most one role. ``name_column`` is effectively
    required: rows are dropped downstream when it yields an empty value.
    """
    name_column: str | None = None
    address_column: str | None = None
    description_column: str | None = None
    category_column: str | None = None
    latitude_column: str | None = None
    longitude_column: str | None = None
    type_column: str | None = None
    additional_columns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        counts = Counter(h for h in self.role_columns().values() if h is not None)
        duplicated = sorted(h for h, n in counts.items() if n > 1)
        if duplicated:
            raise ColumnMappingError(f"header mapped to more than one role: {duplicated}")

    def role_columns(self) -> dict[str, str | None]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "additional_columns"
        }

    def with_overrides(
        self,
        overrides: dict[str, str | None] | None = None,
        additional_columns: list[str] | None = None,
    ) -> ColumnMapping:
        """Return a copy with user-chosen columns applied.

        Keys are role names (``name``, ``address``...). ``None`` or ``"none"``
        unmaps the role. A header taken by an override is released from the
        role it was suggested for.
        """
        changes: dict[str, object] = {}
        for role, header in (overrides or {}).items():
            if role not in ROLE_FIELDS:
                raise ColumnMappingError(f"unknown mapping role: {role}")
            if header is not None and header.strip().lower() == "none":
                header = None
            changes[ROLE_FIELDS[role]] = header
        taken = {h for h in changes.values() if h is not None}
        for field_name, header in self.role_columns().items():
            if field_name not in changes and header in taken:
                changes[field_name] = None
        if additional_columns is not None:
            changes["additional_columns"] = tuple(additional_columns)
        return replace(self, **changes)  # type: ignore[arg-type]
