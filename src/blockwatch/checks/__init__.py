from blockwatch.checks.aggregate import MonthlyBaseline, dated_blocks, latest_date, metric_frame, monthly_baseline
from blockwatch.checks.below_average import BelowAverageDetector, BelowAverageReport, flag_block
from blockwatch.checks.followup import FollowupMonitor, FollowupReport, FollowupState
from blockwatch.checks.missing import MissingFieldScanner, MissingReport, has_missing

__all__ = [
    "MonthlyBaseline",
    "dated_blocks",
    "latest_date",
    "metric_frame",
    "monthly_baseline",
    "BelowAverageDetector",
    "BelowAverageReport",
    "flag_block",
    "FollowupMonitor",
    "FollowupReport",
    "FollowupState",
    "MissingFieldScanner",
    "MissingReport",
    "has_missing",
]
