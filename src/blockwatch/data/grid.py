from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Any, Sequence

from blockwatch.data.calendar import REFERENCE_YEAR, canonical_label, is_valid_month_day, to_halfwidth_digits
from blockwatch.errors import CellParseError
from blockwatch.models import DateAnchor


logger = logging.getLogger(__name__)

Grid = Sequence[Sequence[Any]]


@dataclass(slots=True, frozen=True)
class DateRecognizer:
    """A named policy for spotting M月D日 labels in cell text."""

    name: str
    pattern: re.Pattern[str]

    def match(self, text: str, reference_year: int = REFERENCE_YEAR) -> tuple[int, int, str] | None:
        """Return (month, day, canonical label), None when the text is not a label.

        Raises CellParseError when the text looks like a label but is not a real date.
        """
        s = to_halfwidth_digits(str(text)).strip()
        if s == "":
            return None
        m = self.pattern.search(s)
        if not m:
            return None
        month, day = int(m.group(1)), int(m.group(2))
        if not is_valid_month_day(month, day, reference_year):
            raise CellParseError(f"{self.name}: {month}月{day}日 is not a date in {reference_year}")
        return month, day, canonical_label(month, day)

    def recognize(self, text: str, reference_year: int = REFERENCE_YEAR) -> tuple[int, int, str] | None:
        try:
            return self.match(text, reference_year)
        except CellParseError:
            return None


# Block anchors may carry surrounding text, e.g. "1月7日(火)".
SUBSTRING_RECOGNIZER = DateRecognizer(
    name="substring",
    pattern=re.compile(r"(\d{1,2})\s*月\s*(\d{1,2})\s*日", re.ASCII),
)
# Listing accepts a bare label only.
STRICT_RECOGNIZER = DateRecognizer(
    name="strict",
    pattern=re.compile(r"^(\d{1,2})\s*月\s*(\d{1,2})\s*日$", re.ASCII),
)


def scan_anchors(
    grid: Grid,
    recognizer: DateRecognizer = SUBSTRING_RECOGNIZER,
    reference_year: int = REFERENCE_YEAR,
) -> list[DateAnchor]:
    anchors: list[DateAnchor] = []
    for row0, row in enumerate(grid or []):
        if not isinstance(row, (list, tuple)):
            continue
        for col0, cell in enumerate(row):
            if not isinstance(cell, str):
                continue
            try:
                hit = recognizer.match(cell, reference_year)
            except CellParseError as exc:
                logger.debug("skipping cell r%d c%d: %s", row0 + 1, col0 + 1, exc)
                continue
            if hit is None:
                continue
            month, day, label = hit
            anchors.append(DateAnchor(month=month, day=day, label=label, row0=row0, col0=col0))
    return anchors


def list_dates(grid: Grid, reference_year: int = REFERENCE_YEAR) -> list[str]:
    """Unique bare date labels in the grid, ordered by month then day."""
    uniq: dict[tuple[int, int], str] = {}
    for anchor in scan_anchors(grid, recognizer=STRICT_RECOGNIZER, reference_year=reference_year):
        uniq[(anchor.month, anchor.day)] = anchor.label
    return [uniq[k] for k in sorted(uniq)]
