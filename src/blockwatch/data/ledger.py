from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Protocol

from blockwatch.data.storage import exclusive_lock, read_json_safely, write_json
from blockwatch.models import LedgerEntry


logger = logging.getLogger(__name__)


class NotificationLedger(Protocol):
    def get(self, key: str) -> dict[str, Any] | None: ...

    def contains(self, key: str) -> bool: ...

    def keys(self) -> list[str]: ...

    def merge(self, entries: Iterable[LedgerEntry]) -> None: ...

    def save(self) -> None: ...


class InMemoryLedger:
    """Append/merge-only record of already-alerted 'sheet|date' keys."""

    def __init__(self, entries: dict[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = dict(entries or {})
        self._pending: dict[str, dict[str, str]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._entries.get(key)
        return value if isinstance(value, dict) else None

    def contains(self, key: str) -> bool:
        return bool(self._entries.get(key))

    def keys(self) -> list[str]:
        return [k for k in self._entries if isinstance(k, str)]

    def merge(self, entries: Iterable[LedgerEntry]) -> None:
        for entry in entries:
            payload = entry.to_dict()
            self._entries[entry.key] = payload
            self._pending[entry.key] = payload

    @property
    def pending(self) -> dict[str, dict[str, str]]:
        return dict(self._pending)

    def save(self) -> None:
        self._pending.clear()

    def to_dict(self) -> dict[str, Any]:
        return dict(self._entries)


class JsonLedger(InMemoryLedger):
    """Ledger persisted as a flat JSON object at `path`.

    A missing or unreadable file is an empty ledger. `save` re-reads the file under an
    exclusive lock and unions pending entries over it, so concurrent writers never drop keys.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> dict[str, Any]:
        data = read_json_safely(self.path, default={})
        if not isinstance(data, dict):
            logger.warning("ledger %s is not a JSON object; treating as empty", self.path)
            return {}
        return data

    def reload(self) -> None:
        self._entries = self._load()
        self._entries.update(self._pending)

    def save(self) -> None:
        if not self._pending:
            return
        with exclusive_lock(self.path):
            current = self._load()
            current.update(self._pending)
            write_json(self.path, current)
        logger.info("ledger %s: merged %d key(s)", self.path.name, len(self._pending))
        self._entries = current
        self._pending.clear()
