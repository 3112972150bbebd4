from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
import httplib2

from blockwatch.errors import ConfigurationError, UpstreamFetchError


logger = logging.getLogger(__name__)

SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
DEFAULT_COLUMNS = "A:ZZ"


def sheet_range(sheet: str, columns: str = DEFAULT_COLUMNS) -> str:
    quoted = str(sheet).replace("'", "''")
    return f"'{quoted}'!{columns}"


def sheet_name_from_range(rng: str) -> str:
    name, sep, _ = str(rng).rpartition("!")
    if not sep:
        return str(rng)
    if len(name) >= 2 and name.startswith("'") and name.endswith("'"):
        name = name[1:-1].replace("''", "'")
    return name


class GoogleSheetsGridSource:
    def __init__(self, spreadsheet_id: str, service_account_file: str | Path, service: Any = None) -> None:
        self.spreadsheet_id = str(spreadsheet_id)
        self.service_account_file = Path(service_account_file)
        self._svc = service

    def _service(self) -> Any:
        if self._svc is not None:
            return self._svc
        try:
            creds = service_account.Credentials.from_service_account_file(
                str(self.service_account_file),
                scopes=[SHEETS_READONLY_SCOPE],
            )
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"cannot load service account {self.service_account_file}: {exc}") from exc
        self._svc = build("sheets", "v4", credentials=creds, cache_discovery=False)
        return self._svc

    def fetch(self, sheet_range: str) -> list[list[Any]]:
        request = self._service().spreadsheets().values().get(
            spreadsheetId=self.spreadsheet_id,
            range=sheet_range,
            majorDimension="ROWS",
            valueRenderOption="FORMATTED_VALUE",
            dateTimeRenderOption="FORMATTED_STRING",
        )
        try:
            resp = request.execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", "?")
            raise UpstreamFetchError(f"Sheets API failed (HTTP {status}) for {sheet_range}") from exc
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as exc:
            raise UpstreamFetchError(f"Sheets API unreachable for {sheet_range}: {exc}") from exc
        values = resp.get("values", []) if isinstance(resp, dict) else []
        logger.debug("fetched %s: %d row(s)", sheet_range, len(values))
        return [list(row) if isinstance(row, list) else [] for row in values]


class StaticGridSource:
    """Serves pre-loaded grids keyed by sheet name."""

    def __init__(self, grids: dict[str, list[list[Any]]]) -> None:
        self.grids = dict(grids)
        self.requested: list[str] = []

    def fetch(self, sheet_range: str) -> list[list[Any]]:
        self.requested.append(sheet_range)
        name = sheet_name_from_range(sheet_range)
        if name not in self.grids:
            raise UpstreamFetchError(f"unknown sheet: {name}")
        return [list(row) for row in self.grids[name]]
