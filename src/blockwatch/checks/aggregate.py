from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Any, Iterable

import pandas as pd

from blockwatch.data.calendar import parse_date_label
from blockwatch.data.normalize import normalize_value
from blockwatch.errors import CellParseError
from blockwatch.models import IDENTIFIER_KEYS, METRIC_KEYS, DateBlock


logger = logging.getLogger(__name__)


def dated_blocks(blocks: Iterable[DateBlock], year: int) -> list[tuple[DateBlock, date]]:
    """Pair each block with its label read as a date in `year`; unreadable labels are dropped."""
    out: list[tuple[DateBlock, date]] = []
    for block in blocks:
        try:
            out.append((block, parse_date_label(block.date, year)))
        except CellParseError as exc:
            logger.debug("[%s] skipping block %s: %s", block.sheet, block.a1, exc)
    return out


def latest_date(blocks: Iterable[DateBlock], year: int) -> date | None:
    dates = [d for _, d in dated_blocks(blocks, year)]
    return max(dates) if dates else None


def numeric_metric_names(blocks: Iterable[DateBlock]) -> list[str]:
    seen: list[str] = [k for k in METRIC_KEYS if k not in IDENTIFIER_KEYS]
    known = set(seen)
    for block in blocks:
        for key in block.metrics:
            if key not in known and key not in IDENTIFIER_KEYS:
                seen.append(key)
                known.add(key)
    return seen


def metric_frame(blocks: list[DateBlock]) -> pd.DataFrame:
    """One row per block, one float column per non-identifier metric (NaN = no usable value)."""
    columns = numeric_metric_names(blocks)
    records: list[dict[str, Any]] = []
    for block in blocks:
        row: dict[str, Any] = {}
        for key in columns:
            value = normalize_value(block.metrics.get(key))
            row[key] = float("nan") if value is None else value
        records.append(row)
    return pd.DataFrame.from_records(records, columns=columns).astype(float)


@dataclass(slots=True)
class MonthlyBaseline:
    month: int
    sample_blocks: int
    averages: dict[str, float] = field(default_factory=dict)
    counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": int(self.month),
            "sample_blocks": int(self.sample_blocks),
            "averages": {k: float(v) for k, v in self.averages.items()},
            "counts": {k: int(v) for k, v in self.counts.items()},
        }


def monthly_baseline(blocks: Iterable[DateBlock], latest: date, year: int) -> MonthlyBaseline:
    """Per-metric mean over every block dated in the same month as `latest`.

    Identifier metrics never take part; metrics with no numeric sample get no average.
    """
    month_blocks = [b for b, d in dated_blocks(blocks, year) if d.month == latest.month]
    if not month_blocks:
        return MonthlyBaseline(month=latest.month, sample_blocks=0)

    frame = metric_frame(month_blocks)
    counts = frame.count()
    means = frame.mean(axis=0, skipna=True)
    averages = {str(k): float(v) for k, v in means.items() if pd.notna(v)}
    return MonthlyBaseline(
        month=latest.month,
        sample_blocks=len(month_blocks),
        averages=averages,
        counts={str(k): int(v) for k, v in counts.items() if int(v) > 0},
    )
