from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
import math
from typing import Any

from blockwatch.errors import MalformedDatasetError


logger = logging.getLogger(__name__)


# Order is the on-sheet order of the 23 cells under a date anchor.
METRIC_KEYS: tuple[str, ...] = (
    "動画タイトル",
    "ビデオID",
    "総動画時間",
    "24時間平均視聴時間",
    "48時間平均視聴時間",
    "24時間総再生時間",
    "48時間総再生時間",
    "24時間のインプレッション数",
    "48時間のインプレッション数",
    "24時間のクリック率",
    "48時間のクリック率",
    "24時間の再生回数",
    "48時間の再生回数",
    "24時間の視聴維持率",
    "48時間の視聴維持率",
    "48時間の動画内チャンネル登録者数",
    "インプ伸び率",
    "CTR伸び率",
    "視聴回数伸び率",
    "維持率伸び率",
    "編集担当",
    "今回の改善箇所",
    "改善の成否/次回の改善",
)

IDENTIFIER_KEYS: tuple[str, ...] = ("動画タイトル", "ビデオID")
FREE_TEXT_KEYS: tuple[str, ...] = ("編集担当", "今回の改善箇所", "改善の成否/次回の改善")
DURATION_KEYS: tuple[str, ...] = ("総動画時間", "24時間平均視聴時間", "48時間平均視聴時間")
MISSING_IGNORE_KEYS: tuple[str, ...] = IDENTIFIER_KEYS + FREE_TEXT_KEYS


class CellKind(str, Enum):
    BLANK = "blank"
    TEXT = "text"
    NUMBER = "number"


@dataclass(slots=True, frozen=True)
class CellValue:
    kind: CellKind
    text: str = ""
    number: float | None = None

    @classmethod
    def of(cls, raw: Any) -> CellValue:
        if raw is None:
            return cls(CellKind.BLANK)
        if isinstance(raw, bool):
            return cls(CellKind.TEXT, text=str(raw))
        if isinstance(raw, (int, float)):
            num = float(raw)
            if not math.isfinite(num):
                return cls(CellKind.BLANK)
            return cls(CellKind.NUMBER, number=num)
        txt = str(raw)
        if txt.strip() == "":
            return cls(CellKind.BLANK)
        return cls(CellKind.TEXT, text=txt)

    @property
    def is_blank(self) -> bool:
        return self.kind is CellKind.BLANK


def is_blank(raw: Any) -> bool:
    return CellValue.of(raw).is_blank


def column_letters(col0: int) -> str:
    """0-based column index -> A1 column letters (0 -> A, 26 -> AA)."""
    col = int(col0) + 1
    out = ""
    while col > 0:
        col, rem = divmod(col - 1, 26)
        out = chr(65 + rem) + out
    return out


@dataclass(slots=True, frozen=True)
class DateAnchor:
    month: int
    day: int
    label: str
    row0: int
    col0: int

    @property
    def a1(self) -> str:
        return f"{column_letters(self.col0)}{self.row0 + 1}"


@dataclass(slots=True)
class DateBlock:
    sheet: str
    date: str
    a1: str
    row: int
    col: int
    metrics: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "a1": self.a1,
            "row": int(self.row),
            "col": int(self.col),
            "metrics": dict(self.metrics),
        }

    @classmethod
    def from_dict(cls, sheet: str, payload: Any) -> DateBlock | None:
        if not isinstance(payload, dict):
            return None
        label = str(payload.get("date") or "").strip()
        if label == "":
            return None
        metrics = payload.get("metrics")
        try:
            row = int(payload.get("row") or 0)
            col = int(payload.get("col") or 0)
        except (TypeError, ValueError):
            row, col = 0, 0
        return cls(
            sheet=str(sheet),
            date=label,
            a1=str(payload.get("a1") or ""),
            row=row,
            col=col,
            metrics=dict(metrics) if isinstance(metrics, dict) else {},
        )


@dataclass(slots=True)
class Dataset:
    updated_at: str
    spreadsheet_id: str
    output_file: str
    sheets: dict[str, list[DateBlock]] = field(default_factory=dict)

    def blocks(self, sheet: str) -> list[DateBlock]:
        return list(self.sheets.get(sheet, []))

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated_at": self.updated_at,
            "spreadsheet_id": self.spreadsheet_id,
            "output_file": self.output_file,
            "sheets": {name: [b.to_dict() for b in blocks] for name, blocks in self.sheets.items()},
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Dataset:
        if not isinstance(payload, dict):
            raise MalformedDatasetError("dataset document is not a JSON object")
        raw_sheets = payload.get("sheets")
        if not isinstance(raw_sheets, dict):
            raise MalformedDatasetError("dataset document has no 'sheets' mapping")

        sheets: dict[str, list[DateBlock]] = {}
        for name, raw_blocks in raw_sheets.items():
            blocks: list[DateBlock] = []
            if isinstance(raw_blocks, list):
                for raw in raw_blocks:
                    block = DateBlock.from_dict(str(name), raw)
                    if block is None:
                        logger.debug("skipping malformed block in sheet %s: %r", name, raw)
                        continue
                    blocks.append(block)
            sheets[str(name)] = blocks
        return cls(
            updated_at=str(payload.get("updated_at") or ""),
            spreadsheet_id=str(payload.get("spreadsheet_id") or ""),
            output_file=str(payload.get("output_file") or ""),
            sheets=sheets,
        )


def ledger_key(sheet: str, date: str) -> str:
    return f"{sheet}|{date}"


def split_ledger_key(key: str) -> tuple[str, str] | None:
    """Split on the last '|' so sheet names may themselves contain a pipe."""
    if not isinstance(key, str) or "|" not in key:
        return None
    sheet, _, date = key.rpartition("|")
    sheet = sheet.strip()
    date = date.strip()
    if sheet == "" or date == "":
        return None
    return sheet, date


@dataclass(slots=True, frozen=True)
class LedgerEntry:
    sheet: str
    date: str
    notified_at: str

    @property
    def key(self) -> str:
        return ledger_key(self.sheet, self.date)

    def to_dict(self) -> dict[str, str]:
        return {"sheet": self.sheet, "date": self.date, "notified_at": self.notified_at}


@dataclass(slots=True)
class BelowAverageItem:
    metric: str
    latest: float
    average: float

    def to_dict(self) -> dict[str, Any]:
        return {"metric": self.metric, "latest": float(self.latest), "average": float(self.average)}


@dataclass(slots=True)
class BelowAverageGroup:
    sheet: str
    date: str
    a1: str
    block_index: int
    items: list[BelowAverageItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet": self.sheet,
            "date": self.date,
            "a1": self.a1,
            "block_index": int(self.block_index),
            "items": [x.to_dict() for x in self.items],
        }


@dataclass(slots=True, frozen=True)
class SheetDateAlert:
    sheet: str
    date: str

    def to_dict(self) -> dict[str, str]:
        return {"sheet": self.sheet, "date": self.date}


@dataclass(slots=True)
class StageResult:
    stage: str
    ok: bool = True
    notified: bool = False
    alerts: list[dict[str, Any]] = field(default_factory=list)
    recorded_keys: list[str] = field(default_factory=list)
    message: str | None = None
    error_type: str | None = None
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "ok": bool(self.ok),
            "notified": bool(self.notified),
            "alerts": list(self.alerts),
            "recorded_keys": list(self.recorded_keys),
            "message": self.message,
            "error_type": self.error_type,
            "error": self.error,
            "details": dict(self.details),
        }
