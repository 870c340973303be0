"""Error taxonomy shared by the core, adapters and the delivery layer."""


class BrieflyError(Exception):
    """Base class for all Briefly errors."""


class ConfigError(BrieflyError):
    """Raised when a required configuration value is missing or invalid."""


class AuthenticationError(BrieflyError):
    """Raised when the task tracker rejects or lacks credentials."""


class SourceUnavailable(BrieflyError):
    """A single calendar feed or API endpoint could not be reached."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class MalformedRecord(BrieflyError):
    """A single event or task record could not be normalized."""


class CalendarFetchError(BrieflyError):
    """The whole calendar ingestion cycle failed."""


class TimezoneUnavailable(BrieflyError):
    """The target timezone could not be loaded from the tz database."""
