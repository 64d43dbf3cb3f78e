from __future__ import annotations


class AssetReconError(Exception):
    """Base class for fatal errors that abort a run."""


class ConfigError(AssetReconError):
    """Missing data-source profile, config file or input file."""


class InputError(AssetReconError):
    """Input spreadsheet is malformed (missing columns, too few rows)."""
