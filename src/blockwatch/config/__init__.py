from blockwatch.config.registry import SheetRegistry, normalize_sheet_name
from blockwatch.config.settings import DEFAULT_CONFIG, SystemSettings, load_settings
from blockwatch.config.validation import assert_valid_settings, validate_settings

__all__ = [
    "DEFAULT_CONFIG",
    "SheetRegistry",
    "SystemSettings",
    "assert_valid_settings",
    "load_settings",
    "normalize_sheet_name",
    "validate_settings",
]
