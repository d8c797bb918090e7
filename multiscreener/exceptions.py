"""
Error types shared by the data source, the engines and the orchestrator.
"""


class ScreenerError(Exception):
    """Base class for all screener errors."""


class DataSourceError(ScreenerError):
    """Network, timeout, non-200 or provider-reported failure."""


class UniverseUnavailableError(DataSourceError):
    """The symbol universe itself could not be fetched. Fatal for a batch."""


class InsufficientDataError(ScreenerError):
    """Fewer statement periods than an engine needs."""


class ValidationError(ScreenerError):
    """A required numeric field is missing or out of range."""
