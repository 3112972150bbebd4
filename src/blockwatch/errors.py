from __future__ import annotations


class BlockwatchError(Exception):
    """Base class for every failure a stage can report."""

    kind = "error"


class ConfigurationError(BlockwatchError):
    kind = "configuration"


class UpstreamFetchError(BlockwatchError):
    """Grid fetch or alert delivery failed; nothing from the run is recorded."""

    kind = "upstream"


class MalformedDatasetError(BlockwatchError):
    kind = "malformed_dataset"


class CellParseError(BlockwatchError):
    """A single cell could not be read as a date label. Always recovered locally."""

    kind = "cell_parse"
