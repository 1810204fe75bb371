"""Exception types shared by the analytics pipeline."""


class AnalyticsError(Exception):
    """Base class for every error raised by the analytics modules."""


class LoadError(AnalyticsError):
    """The uploaded file could not be read as a transaction table."""


class InvalidConfiguration(AnalyticsError, ValueError):
    """A cluster count or mining threshold is outside its allowed range."""
