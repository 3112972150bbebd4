from __future__ import annotations

import math
import re
from typing import Any

from blockwatch.models import CellKind, CellValue


_FULLWIDTH_ASCII = {code: code - 0xFEE0 for code in range(0xFF01, 0xFF5F)}
_FULLWIDTH_ASCII[0x3000] = 0x20

COLON_DURATION_RE = re.compile(r"^(\d+):(\d{1,2})(?::(\d{1,2}))?$", re.ASCII)
KANJI_DURATION_RE = re.compile(
    r"^\s*(?:(\d+(?:\.\d+)?)\s*時間)?\s*(?:(\d+(?:\.\d+)?)\s*分)?\s*(?:(\d+(?:\.\d+)?)\s*秒)?\s*$",
    re.ASCII,
)
NUMBER_TOKEN_RE = re.compile(r"-?\d+(?:\.\d+)?", re.ASCII)


def to_halfwidth(text: str) -> str:
    """Full-width ASCII block and ideographic space -> half-width."""
    return str(text).translate(_FULLWIDTH_ASCII)


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


def _colon_seconds(text: str) -> float | None:
    m = COLON_DURATION_RE.match(text)
    if not m:
        return None
    if m.group(3) is not None:
        return float(m.group(1)) * 3600.0 + float(m.group(2)) * 60.0 + float(m.group(3))
    return float(m.group(1)) * 60.0 + float(m.group(2))


def _kanji_seconds(text: str) -> float | None:
    m = KANJI_DURATION_RE.match(text)
    if not m or all(g is None for g in m.groups()):
        return None
    hours, minutes, seconds = (float(g) if g is not None else 0.0 for g in m.groups())
    return hours * 3600.0 + minutes * 60.0 + seconds


def normalize_value(raw: Any) -> float | None:
    """Raw cell -> finite float, or None when the cell carries no usable number.

    Durations ("0:42", "1:02:03", "1時間23分") become seconds; "1,234" -> 1234.0;
    otherwise the first embedded number token wins ("12.5%" -> 12.5). Never raises.
    """
    cell = CellValue.of(raw)
    if cell.kind is CellKind.NUMBER:
        return cell.number
    if cell.kind is CellKind.BLANK:
        return None

    text = to_halfwidth(cell.text).strip().replace(",", "")
    if text == "":
        return None

    seconds = _colon_seconds(text)
    if seconds is not None:
        return _finite(seconds)

    seconds = _kanji_seconds(text)
    if seconds is not None:
        return _finite(seconds)

    m = NUMBER_TOKEN_RE.search(text)
    if not m:
        return None
    return _finite(float(m.group(0)))
