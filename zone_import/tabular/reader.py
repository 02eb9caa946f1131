from __future__ import annotations

import io
import warnings
from pathlib import Path

import pandas as pd

"""Tabular reader.

Turns comma-separated UTF-8 text into an ordered list of rows (header ->
value). Rules:
- blank lines are ignored; the first non-blank line is the header row
- double-quoted fields may contain commas, ``""`` is a literal quote; spaces
  between a comma and the opening quote are skipped
- short rows are padded with empty strings, surplus fields are dropped
- header cells and values are whitespace-trimmed
- input without a header line yields ``[]`` (the caller reports "no data")
"""

__all__ = [
    "TabularRow",
    "TabularReadError",
    "parse_csv_text",
    "read_csv_file",
]

TabularRow = dict[str, str]


class TabularReadError(Exception):
    """Raised when the file cannot be read as UTF-8 text or tokenized."""


def _non_blank_lines(text: str) -> list[str]:
    return [line for line in text.lstrip("\ufeff").splitlines() if line.strip()]


def parse_csv_text(text: str) -> list[TabularRow]:
    lines = _non_blank_lines(text)
    if not lines:
        return []
    body = "\n".join(lines)

    # Header width decides how ragged data rows are trimmed
    try:
        header = pd.read_csv(
            io.StringIO(lines[0]), nrows=0, dtype=str, engine="python", skipinitialspace=True
        )
    except pd.errors.EmptyDataError:
        return []
    width = len(header.columns)

    try:
        # index_col=False keeps a surplus field on the first row from turning
        # column one into the index; surplus fields are truncated either way.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(body),
                dtype=str,
                keep_default_na=False,
                engine="python",
                skipinitialspace=True,
                index_col=False,
                skip_blank_lines=True,
                on_bad_lines=lambda fields: fields[:width],
            )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        raise TabularReadError(f"cannot tokenize tabular data: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    rows: list[TabularRow] = []
    for values in df.itertuples(index=False, name=None):
        # missing trailing fields come back as NaN
        rows.append(
            {col: "" if pd.isna(val) else str(val).strip() for col, val in zip(columns, values, strict=False)}
        )
    return rows


def read_csv_file(path: Path) -> list[TabularRow]:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise TabularReadError(f"file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise TabularReadError(f"file is not UTF-8 text: {path}: {e}") from e
    return parse_csv_text(text)
