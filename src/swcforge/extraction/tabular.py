"""Tabular input - Flatten decoded requirement tables into extractor text.

Spreadsheet adapters decode their container and hand over rows of
cells; each row becomes one requirement line.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Sequence


def _cell_text(cell: Any) -> str:
    if cell is None:
        return ""
    return str(cell).strip()


def rows_to_text(rows: Iterable[Sequence[Any] | Any]) -> str:
    """Join the cells of each row with spaces, one row per line.

    Non-sequence rows are converted with str(). Rows with no text are
    skipped.

    Args:
        rows: Decoded table rows.

    Returns:
        Newline-separated text for RequirementExtractor.parse().
    """
    lines = []
    for row in rows:
        if isinstance(row, (list, tuple)):
            line = " ".join(text for text in (_cell_text(cell) for cell in row) if text)
        else:
            line = _cell_text(row)
        if line:
            lines.append(line)
    return "\n".join(lines)


def csv_to_text(content: str, delimiter: str = ",") -> str:
    """Flatten CSV text into extractor input.

    Args:
        content: CSV document text.
        delimiter: Field delimiter.

    Returns:
        Newline-separated text, one line per non-empty record.
    """
    reader = csv.reader(io.StringIO(content), delimiter=delimiter)
    return rows_to_text(reader)
