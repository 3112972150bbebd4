from __future__ import annotations

from datetime import date
import re

from blockwatch.errors import CellParseError


# Labels carry no year; month/day validity is checked against a fixed non-leap year.
REFERENCE_YEAR = 2001

_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")
LABEL_RE = re.compile(r"^\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日\s*$", re.ASCII)


def to_halfwidth_digits(text: str) -> str:
    return str(text).translate(_FULLWIDTH_DIGITS)


def canonical_label(month: int, day: int) -> str:
    return f"{int(month)}月{int(day)}日"


def is_valid_month_day(month: int, day: int, year: int = REFERENCE_YEAR) -> bool:
    try:
        date(int(year), int(month), int(day))
    except ValueError:
        return False
    return True


def parse_month_day(label: str) -> tuple[int, int]:
    m = LABEL_RE.match(to_halfwidth_digits(label or ""))
    if not m:
        raise CellParseError(f"not a M月D日 label: {label!r}")
    return int(m.group(1)), int(m.group(2))


def parse_date_label(label: str, year: int) -> date:
    month, day = parse_month_day(label)
    try:
        return date(int(year), month, day)
    except ValueError as exc:
        raise CellParseError(f"{label!r} is not a calendar date in {year}") from exc


def label_to_date(label: str, year: int) -> date | None:
    try:
        return parse_date_label(label, year)
    except CellParseError:
        return None


def label_sort_key(label: str) -> tuple[int, int]:
    try:
        return parse_month_day(label)
    except CellParseError:
        return (99, 99)
