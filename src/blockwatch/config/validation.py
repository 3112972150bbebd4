from __future__ import annotations

import calendar
from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from blockwatch.config.settings import SystemSettings
from blockwatch.errors import ConfigurationError


@dataclass(slots=True, frozen=True)
class ValidationIssue:
    level: str  # error | warning
    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level, "path": self.path, "message": self.message}


def _is_blank_text(v: Any) -> bool:
    """YAML `key:` with no value loads as None; only a non-empty string counts as set."""
    return not isinstance(v, str) or v.strip() == ""


def _as_int(v: Any, default: int | None = None) -> int | None:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def validate_settings(settings: SystemSettings) -> dict[str, Any]:
    issues: list[ValidationIssue] = []

    tz = str(settings.timezone or "")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        issues.append(ValidationIssue("error", "timezone", f"unknown timezone: {tz!r}"))

    paths = settings.paths
    for key in ("dataset", "below_avg_ledger", "followup_ledger"):
        if _is_blank_text(paths.get(key)):
            issues.append(ValidationIssue("error", f"paths.{key}", f"must be a non-empty path, got {paths.get(key)!r}"))
    ledger_paths = [str(paths.get(k) or "").strip() for k in ("below_avg_ledger", "followup_ledger")]
    if ledger_paths[0] and ledger_paths[0] == ledger_paths[1]:
        issues.append(ValidationIssue("error", "paths.followup_ledger", "must differ from paths.below_avg_ledger"))

    checks = settings.checks
    for key, default in (("missing_grace_days", 3), ("followup_delay_days", 1)):
        value = _as_int(checks.get(key, default))
        if value is None or value < 0:
            issues.append(ValidationIssue("error", f"checks.{key}", f"must be an integer >= 0, got {checks.get(key)!r}"))

    year = _as_int(settings.extraction.get("reference_year", 2001))
    if year is None or not 1 <= year <= 9999:
        issues.append(ValidationIssue("error", "extraction.reference_year", "must be a year in [1, 9999]"))
    elif calendar.isleap(year):
        issues.append(ValidationIssue("warning", "extraction.reference_year", f"{year} is a leap year; 2月29日 becomes extractable"))

    sheet_cfg = settings.spreadsheet
    for key, default in (
        ("range_columns", "A:ZZ"),
        ("sheets_file", "config/sheets.json"),
        ("service_account_file", "oauth/service_account.json"),
    ):
        if _is_blank_text(sheet_cfg.get(key, default)):
            issues.append(ValidationIssue("error", f"spreadsheet.{key}", f"must be a non-empty string, got {sheet_cfg.get(key)!r}"))

    timeout = settings.chatwork.get("timeout_seconds", 30)
    try:
        if float(timeout) <= 0:
            raise ValueError
    except (TypeError, ValueError):
        issues.append(ValidationIssue("error", "chatwork.timeout_seconds", "must be > 0"))

    errors = [x for x in issues if x.level == "error"]
    warnings = [x for x in issues if x.level == "warning"]
    return {
        "ok": len(errors) == 0,
        "errors": [x.to_dict() for x in errors],
        "warnings": [x.to_dict() for x in warnings],
        "summary": {
            "errors": len(errors),
            "warnings": len(warnings),
        },
    }


def assert_valid_settings(settings: SystemSettings) -> None:
    result = validate_settings(settings)
    if result["ok"]:
        return
    lines = ["configuration invalid:"]
    for item in result.get("errors", []):
        lines.append(f"- [{item['path']}] {item['message']}")
    raise ConfigurationError("\n".join(lines))
