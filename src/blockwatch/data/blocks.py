from __future__ import annotations

from typing import Any, Iterable

from blockwatch.data.calendar import REFERENCE_YEAR, label_sort_key
from blockwatch.data.grid import SUBSTRING_RECOGNIZER, DateRecognizer, Grid, scan_anchors
from blockwatch.models import METRIC_KEYS, DateAnchor, DateBlock


# Rows below the anchor: 1..20, then 24..26. Rows 21..23 are a fixed gap in the sheet layout.
BLOCK_ROW_OFFSETS: tuple[int, ...] = tuple(range(1, 21)) + tuple(range(24, 27))


def read_cell(grid: Grid, row0: int, col0: int) -> Any:
    if row0 < 0 or col0 < 0 or row0 >= len(grid):
        return None
    row = grid[row0]
    if not isinstance(row, (list, tuple)) or col0 >= len(row):
        return None
    cell = row[col0]
    if isinstance(cell, str):
        cell = cell.strip()
        return cell if cell != "" else None
    return cell


def extract_block(grid: Grid, sheet: str, anchor: DateAnchor) -> DateBlock:
    raw_values = [read_cell(grid, anchor.row0 + offset, anchor.col0) for offset in BLOCK_ROW_OFFSETS]
    return DateBlock(
        sheet=sheet,
        date=anchor.label,
        a1=anchor.a1,
        row=anchor.row0 + 1,
        col=anchor.col0 + 1,
        metrics=dict(zip(METRIC_KEYS, raw_values)),
    )


def sort_blocks(blocks: Iterable[DateBlock]) -> list[DateBlock]:
    return sorted(blocks, key=lambda b: (label_sort_key(b.date), b.a1))


def extract_blocks(
    grid: Grid,
    sheet: str,
    recognizer: DateRecognizer = SUBSTRING_RECOGNIZER,
    reference_year: int = REFERENCE_YEAR,
) -> list[DateBlock]:
    anchors = scan_anchors(grid, recognizer=recognizer, reference_year=reference_year)
    return sort_blocks(extract_block(grid, sheet, a) for a in anchors)
