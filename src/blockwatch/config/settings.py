from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from blockwatch.errors import ConfigurationError


@dataclass(slots=True)
class SystemSettings:
    raw: dict[str, Any]

    def _section(self, name: str) -> dict[str, Any]:
        value = self.raw.get(name, {})
        return value if isinstance(value, dict) else {}

    @property
    def timezone(self) -> str:
        return self.raw.get("timezone", "Asia/Tokyo")

    @property
    def spreadsheet(self) -> dict[str, Any]:
        return self._section("spreadsheet")

    @property
    def chatwork(self) -> dict[str, Any]:
        return self._section("chatwork")

    @property
    def paths(self) -> dict[str, str]:
        return self._section("paths")

    @property
    def checks(self) -> dict[str, Any]:
        return self._section("checks")

    @property
    def extraction(self) -> dict[str, Any]:
        return self._section("extraction")


DEFAULT_CONFIG = Path(__file__).resolve().parents[3] / "config.yaml"


def load_settings(path: str | Path | None = None) -> SystemSettings:
    config_path = Path(path) if path else DEFAULT_CONFIG
    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"cannot read config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"config {config_path} must be a mapping")
    return SystemSettings(raw=raw)
