from blockwatch.data.blocks import BLOCK_ROW_OFFSETS, extract_block, extract_blocks, sort_blocks
from blockwatch.data.grid import STRICT_RECOGNIZER, SUBSTRING_RECOGNIZER, DateRecognizer, list_dates, scan_anchors
from blockwatch.data.ledger import InMemoryLedger, JsonLedger, NotificationLedger
from blockwatch.data.normalize import normalize_value
from blockwatch.data.pipeline import DatasetExporter, load_dataset
from blockwatch.data.protocols import AlertSink, GridSource
from blockwatch.data.sources import GoogleSheetsGridSource, StaticGridSource, sheet_range

__all__ = [
    "BLOCK_ROW_OFFSETS",
    "extract_block",
    "extract_blocks",
    "sort_blocks",
    "STRICT_RECOGNIZER",
    "SUBSTRING_RECOGNIZER",
    "DateRecognizer",
    "list_dates",
    "scan_anchors",
    "InMemoryLedger",
    "JsonLedger",
    "NotificationLedger",
    "normalize_value",
    "DatasetExporter",
    "load_dataset",
    "AlertSink",
    "GridSource",
    "GoogleSheetsGridSource",
    "StaticGridSource",
    "sheet_range",
]
