from __future__ import annotations

from typing import Any, Protocol


class GridSource(Protocol):
    def fetch(self, sheet_range: str) -> list[list[Any]]: ...


class AlertSink(Protocol):
    def send(self, message: str) -> bool: ...
