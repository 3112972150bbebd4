from __future__ import annotations

from pathlib import Path
import sys
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from blockwatch.data.blocks import BLOCK_ROW_OFFSETS
from blockwatch.models import FREE_TEXT_KEYS, METRIC_KEYS, Dataset, DateBlock

VIEWS = "24時間の再生回数"


def make_metrics(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """A complete block: identifiers set, every numeric metric '10', improvement notes filled."""
    metrics: dict[str, Any] = {}
    for key in METRIC_KEYS:
        if key == "動画タイトル":
            metrics[key] = "テスト動画"
        elif key == "ビデオID":
            metrics[key] = "abcDEF"
        elif key in FREE_TEXT_KEYS:
            metrics[key] = "記入済み"
        else:
            metrics[key] = "10"
    metrics.update(overrides or {})
    return metrics


def make_grid(blocks: list[tuple[str, int, int, dict[str, Any]]], gap_text: str = "メモ") -> list[list[Any]]:
    """Lay out (label, row0, col0, metrics) anchors; rows 21..23 under each anchor hold filler text."""
    n_rows = max(row0 + 27 for _, row0, _, _ in blocks)
    n_cols = max(col0 + 1 for _, _, col0, _ in blocks)
    grid: list[list[Any]] = [["" for _ in range(n_cols)] for _ in range(n_rows)]
    for label, row0, col0, metrics in blocks:
        grid[row0][col0] = label
        for gap in (21, 22, 23):
            grid[row0 + gap][col0] = gap_text
        for offset, key in zip(BLOCK_ROW_OFFSETS, METRIC_KEYS):
            value = metrics.get(key)
            grid[row0 + offset][col0] = "" if value is None else value
    return grid


def make_dataset(sheets: dict[str, list[tuple[str, dict[str, Any]]]]) -> Dataset:
    out: dict[str, list[DateBlock]] = {}
    for sheet, items in sheets.items():
        out[sheet] = [
            DateBlock(sheet=sheet, date=label, a1=f"{chr(65 + i)}1", row=1, col=i + 1, metrics=dict(metrics))
            for i, (label, metrics) in enumerate(items)
        ]
    return Dataset(
        updated_at="2026-02-25T09:00:00+09:00",
        spreadsheet_id="sid",
        output_file="data/date_blocks.json",
        sheets=out,
    )
