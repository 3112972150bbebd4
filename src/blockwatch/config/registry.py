from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
import re
from typing import Any

from blockwatch.data.storage import read_json, write_json
from blockwatch.errors import ConfigurationError


_WS_RE = re.compile(r"\s+")


def normalize_sheet_name(name: str) -> str:
    return _WS_RE.sub(" ", str(name or "").strip())


@dataclass(slots=True)
class SheetRegistry:
    """The monitored sheet list, persisted as {spreadsheet_id, sheets, updated_at}."""

    path: Path
    spreadsheet_id: str = ""
    sheets: list[str] = field(default_factory=list)
    updated_at: str = ""

    @classmethod
    def load(cls, path: Path) -> SheetRegistry:
        path = Path(path)
        if not path.exists():
            return cls(path=path)
        try:
            data = read_json(path)
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"invalid sheet registry {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"invalid sheet registry {path}: not a JSON object")
        raw_sheets = data.get("sheets") or []
        sheets = [s.strip() for s in raw_sheets if isinstance(s, str) and s.strip() != ""] if isinstance(raw_sheets, list) else []
        return cls(
            path=path,
            spreadsheet_id=str(data.get("spreadsheet_id") or ""),
            sheets=sheets,
            updated_at=str(data.get("updated_at") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"spreadsheet_id": self.spreadsheet_id, "sheets": list(self.sheets), "updated_at": self.updated_at}

    def save(self, now: datetime) -> None:
        self.updated_at = now.isoformat(timespec="seconds")
        write_json(self.path, self.to_dict())

    def set_spreadsheet_id(self, spreadsheet_id: str) -> None:
        self.spreadsheet_id = str(spreadsheet_id or "").strip()

    def add(self, name: str) -> str:
        clean = normalize_sheet_name(name)
        if clean == "":
            raise ConfigurationError("sheet name is empty")
        if clean in self.sheets:
            raise ConfigurationError(f"sheet already registered: {clean}")
        self.sheets.append(clean)
        return clean

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.sheets):
            raise ConfigurationError(f"no sheet at index {index}")

    def remove(self, index: int) -> str:
        self._check_index(index)
        return self.sheets.pop(index)

    def move(self, index: int, direction: str) -> bool:
        """Swap with the neighbour above/below; False when already at that edge."""
        self._check_index(index)
        if direction not in {"up", "down"}:
            raise ConfigurationError(f"direction must be 'up' or 'down', got {direction!r}")
        target = index - 1 if direction == "up" else index + 1
        if not 0 <= target < len(self.sheets):
            return False
        self.sheets[index], self.sheets[target] = self.sheets[target], self.sheets[index]
        return True
