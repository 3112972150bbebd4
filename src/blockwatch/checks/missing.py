from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable

from blockwatch.checks.aggregate import dated_blocks
from blockwatch.data.calendar import label_sort_key
from blockwatch.models import MISSING_IGNORE_KEYS, Dataset, DateBlock, SheetDateAlert, is_blank


@dataclass(slots=True)
class MissingReport:
    cutoff: date
    alerts: list[SheetDateAlert] = field(default_factory=list)

    def by_sheet(self) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for a in self.alerts:
            out.setdefault(a.sheet, []).append(a.date)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {"cutoff": self.cutoff.isoformat(), "alerts": [a.to_dict() for a in self.alerts]}


def has_missing(block: DateBlock, ignore: Iterable[str] = MISSING_IGNORE_KEYS) -> bool:
    skip = set(ignore)
    return any(is_blank(v) for k, v in block.metrics.items() if k not in skip)


class MissingFieldScanner:
    """Flags (sheet, date) pairs at least `grace_days` old with any blank non-excluded metric.

    Keeps no ledger: incomplete data is reported again on every run.
    """

    def __init__(self, today: date, grace_days: int = 3, ignore: Iterable[str] = MISSING_IGNORE_KEYS) -> None:
        self.today = today
        self.grace_days = int(grace_days)
        self.ignore = tuple(ignore)

    @property
    def cutoff(self) -> date:
        return self.today - timedelta(days=self.grace_days)

    def detect(self, dataset: Dataset) -> MissingReport:
        report = MissingReport(cutoff=self.cutoff)
        for sheet, blocks in dataset.sheets.items():
            labels: list[str] = []
            for block, d in dated_blocks(blocks, self.today.year):
                if d > self.cutoff or block.date in labels:
                    continue
                if has_missing(block, self.ignore):
                    labels.append(block.date)
            for label in sorted(labels, key=label_sort_key):
                report.alerts.append(SheetDateAlert(sheet=sheet, date=label))
        return report
