from __future__ import annotations

from datetime import datetime
import logging
import os
from pathlib import Path
from typing import Iterable

from blockwatch.data.blocks import extract_blocks
from blockwatch.data.calendar import REFERENCE_YEAR
from blockwatch.data.grid import list_dates
from blockwatch.data.protocols import GridSource
from blockwatch.data.sources import DEFAULT_COLUMNS, sheet_range
from blockwatch.data.storage import read_json, write_json
from blockwatch.errors import MalformedDatasetError
from blockwatch.models import Dataset, DateBlock


logger = logging.getLogger(__name__)


def clean_sheet_names(names: Iterable[object]) -> list[str]:
    return [str(n).strip() for n in names if isinstance(n, str) and n.strip() != ""]


def load_dataset(path: Path) -> Dataset:
    if not path.exists():
        raise MalformedDatasetError(f"dataset not found: {path}")
    try:
        payload = read_json(path)
    except (OSError, ValueError) as exc:
        raise MalformedDatasetError(f"dataset unreadable: {path}: {exc}") from exc
    return Dataset.from_dict(payload)


class DatasetExporter:
    def __init__(
        self,
        source: GridSource,
        output_path: Path,
        root: Path | None = None,
        columns: str = DEFAULT_COLUMNS,
        reference_year: int = REFERENCE_YEAR,
    ) -> None:
        self.source = source
        self.output_path = Path(output_path)
        self.root = Path(root) if root else self.output_path.parent
        self.columns = columns
        self.reference_year = int(reference_year)

    def _fetch(self, sheet: str) -> list[list[object]]:
        return self.source.fetch(sheet_range(sheet, self.columns))

    def build_sheet_blocks(self, sheet: str) -> list[DateBlock]:
        return extract_blocks(self._fetch(sheet), sheet, reference_year=self.reference_year)

    def list_dates(self, sheet: str) -> list[str]:
        return list_dates(self._fetch(sheet), reference_year=self.reference_year)

    def _relative_output(self) -> str:
        try:
            return os.path.relpath(self.output_path, self.root)
        except ValueError:
            return str(self.output_path)

    def build(self, spreadsheet_id: str, sheets: Iterable[str], now: datetime) -> Dataset:
        dataset = Dataset(
            updated_at=now.isoformat(timespec="seconds"),
            spreadsheet_id=str(spreadsheet_id),
            output_file=self._relative_output(),
        )
        for sheet in clean_sheet_names(sheets):
            blocks = self.build_sheet_blocks(sheet)
            dataset.sheets[sheet] = blocks
            logger.info("[%s] blocks: %d", sheet, len(blocks))
        return dataset

    def export(self, spreadsheet_id: str, sheets: Iterable[str], now: datetime) -> Dataset:
        dataset = self.build(spreadsheet_id, sheets, now)
        write_json(self.output_path, dataset.to_dict())
        logger.info("saved dataset: %s", self.output_path)
        return dataset
