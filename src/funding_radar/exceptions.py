"""Error taxonomy for the funding radar.

Source and catalog errors are recoverable: they are caught at the call
boundary and turned into a recorded failure or an empty result. A
ConfigurationError stops the operation that needed the missing setting.
"""


class RadarError(Exception):
    """Base exception for all funding radar errors."""


class SourceError(RadarError):
    """Raised when one upstream exchange fails, times out, or returns garbage."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id
        self.message = message


class CatalogError(RadarError):
    """Raised when the economic event catalog cannot be fetched or parsed."""


class NotificationError(RadarError):
    """Raised when a push notification could not be delivered."""


class ConfigurationError(RadarError):
    """Raised when required configuration (credentials, source ids) is missing or invalid."""
