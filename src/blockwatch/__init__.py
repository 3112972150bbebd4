from blockwatch.errors import (
    BlockwatchError,
    CellParseError,
    ConfigurationError,
    MalformedDatasetError,
    UpstreamFetchError,
)
from blockwatch.models import METRIC_KEYS, Dataset, DateBlock

__version__ = "0.1.0"

__all__ = [
    "BlockwatchError",
    "CellParseError",
    "ConfigurationError",
    "MalformedDatasetError",
    "UpstreamFetchError",
    "METRIC_KEYS",
    "Dataset",
    "DateBlock",
]
