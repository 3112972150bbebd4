from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from blockwatch.checks.aggregate import MonthlyBaseline, dated_blocks, monthly_baseline
from blockwatch.data.calendar import canonical_label
from blockwatch.data.ledger import NotificationLedger
from blockwatch.data.normalize import normalize_value
from blockwatch.models import (
    IDENTIFIER_KEYS,
    BelowAverageGroup,
    BelowAverageItem,
    Dataset,
    DateBlock,
    LedgerEntry,
    ledger_key,
)


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BelowAverageReport:
    groups: list[BelowAverageGroup] = field(default_factory=list)
    entries: list[LedgerEntry] = field(default_factory=list)
    skipped_notified: list[str] = field(default_factory=list)
    baselines: dict[str, MonthlyBaseline] = field(default_factory=dict)

    @property
    def flagged(self) -> bool:
        return len(self.groups) > 0

    def sheets(self) -> list[str]:
        out: list[str] = []
        for g in self.groups:
            if g.sheet not in out:
                out.append(g.sheet)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "keys": [e.key for e in self.entries],
            "skipped_notified": list(self.skipped_notified),
            "baselines": {k: v.to_dict() for k, v in self.baselines.items()},
        }


def flag_block(block: DateBlock, baseline: MonthlyBaseline) -> list[BelowAverageItem]:
    items: list[BelowAverageItem] = []
    for metric, raw in block.metrics.items():
        if metric in IDENTIFIER_KEYS:
            continue
        latest = normalize_value(raw)
        if latest is None:
            continue
        average = baseline.averages.get(metric)
        if average is None:
            continue
        if latest < average:
            items.append(BelowAverageItem(metric=metric, latest=latest, average=average))
    return items


class BelowAverageDetector:
    """Flags metrics of each sheet's latest block(s) that sit strictly below the monthly mean.

    A sheet whose 'sheet|latest date' key is already in the ledger is skipped outright.
    """

    def __init__(self, ledger: NotificationLedger, year: int) -> None:
        self.ledger = ledger
        self.year = int(year)

    def evaluate_sheet(self, sheet: str, blocks: list[DateBlock], report: BelowAverageReport) -> None:
        dated = dated_blocks(blocks, self.year)
        if not dated:
            return
        latest = max(d for _, d in dated)
        label = canonical_label(latest.month, latest.day)
        key = ledger_key(sheet, label)
        if self.ledger.contains(key):
            logger.debug("[%s] %s already notified", sheet, label)
            report.skipped_notified.append(key)
            return

        baseline = monthly_baseline([b for b, _ in dated], latest, self.year)
        report.baselines[sheet] = baseline
        latest_blocks = [b for b, d in dated if d == latest]

        groups: list[BelowAverageGroup] = []
        for idx, block in enumerate(latest_blocks):
            items = flag_block(block, baseline)
            if items:
                groups.append(BelowAverageGroup(sheet=sheet, date=label, a1=block.a1, block_index=idx + 1, items=items))

        if groups:
            report.groups.extend(groups)
            report.entries.append(LedgerEntry(sheet=sheet, date=label, notified_at=""))

    def detect(self, dataset: Dataset) -> BelowAverageReport:
        report = BelowAverageReport()
        for sheet, blocks in dataset.sheets.items():
            self.evaluate_sheet(sheet, blocks, report)
        return report

    def record(self, report: BelowAverageReport, notified_at: str) -> list[str]:
        entries = [LedgerEntry(sheet=e.sheet, date=e.date, notified_at=notified_at) for e in report.entries]
        self.ledger.merge(entries)
        self.ledger.save()
        return [e.key for e in entries]
