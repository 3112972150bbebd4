from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
import logging
from typing import Any

from blockwatch.checks.aggregate import dated_blocks
from blockwatch.data.calendar import label_to_date
from blockwatch.data.ledger import NotificationLedger
from blockwatch.models import FREE_TEXT_KEYS, Dataset, LedgerEntry, SheetDateAlert, is_blank, split_ledger_key


logger = logging.getLogger(__name__)


class FollowupState(str, Enum):
    BELOW_AVG_NOTIFIED = "below_avg_notified"
    FOLLOWUP_DUE = "followup_due"
    RESOLVED = "resolved"
    FOLLOWUP_NOTIFIED = "followup_notified"


@dataclass(slots=True)
class FollowupReport:
    alerts: list[SheetDateAlert] = field(default_factory=list)
    states: dict[str, FollowupState] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alerts": [a.to_dict() for a in self.alerts],
            "states": {k: v.value for k, v in self.states.items()},
        }


class FollowupMonitor:
    """Second-stage escalation over keys of the below-average ledger.

    Once `delay_days` have passed after a flagged date, the flagged block must have all
    free-text improvement fields filled in. A key that escalates is written to the follow-up
    ledger and never looked at again; a key found complete is not recorded and is re-read
    on the next run.
    """

    def __init__(
        self,
        below_avg_ledger: NotificationLedger,
        followup_ledger: NotificationLedger,
        today: date,
        delay_days: int = 1,
    ) -> None:
        self.below_avg_ledger = below_avg_ledger
        self.followup_ledger = followup_ledger
        self.today = today
        self.delay_days = int(delay_days)

    def evaluate(self, key: str, dataset: Dataset) -> FollowupState | None:
        if self.followup_ledger.contains(key):
            return FollowupState.FOLLOWUP_NOTIFIED
        parsed = split_ledger_key(key)
        if parsed is None:
            return None
        sheet, label = parsed
        flagged_on = label_to_date(label, self.today.year)
        if flagged_on is None:
            logger.debug("followup: unreadable date in key %r", key)
            return None
        if flagged_on + timedelta(days=self.delay_days) >= self.today:
            return FollowupState.BELOW_AVG_NOTIFIED

        matching = [b for b, d in dated_blocks(dataset.blocks(sheet), self.today.year) if d == flagged_on]
        for block in matching:
            if any(is_blank(block.metrics.get(k)) for k in FREE_TEXT_KEYS):
                return FollowupState.FOLLOWUP_DUE
        if not matching:
            logger.debug("followup: no block for %s in current dataset", key)
        return FollowupState.RESOLVED

    def detect(self, dataset: Dataset) -> FollowupReport:
        """Walk every below-average key whatever its stored value; only the follow-up ledger gates on presence."""
        report = FollowupReport()
        for key in self.below_avg_ledger.keys():
            state = self.evaluate(key, dataset)
            if state is None:
                continue
            report.states[key] = state
            if state is FollowupState.FOLLOWUP_DUE:
                sheet, label = split_ledger_key(key) or ("", "")
                report.alerts.append(SheetDateAlert(sheet=sheet, date=label))
        return report

    def record(self, report: FollowupReport, notified_at: str) -> list[str]:
        entries = [LedgerEntry(sheet=a.sheet, date=a.date, notified_at=notified_at) for a in report.alerts]
        self.followup_ledger.merge(entries)
        self.followup_ledger.save()
        for entry in entries:
            report.states[entry.key] = FollowupState.FOLLOWUP_NOTIFIED
        return [e.key for e in entries]
