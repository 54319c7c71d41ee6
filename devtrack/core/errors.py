from enum import Enum


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    MALFORMED = "malformed"
    CONFIGURATION_MISSING = "configuration_missing"


class DevTrackError(Exception):
    """Base class for every error raised inside the devtrack package."""


class TelemetryError(DevTrackError):
    kind = FetchErrorKind.TRANSIENT


class NotFoundError(TelemetryError):
    """Handle unknown to the platform (user-correctable)."""
    kind = FetchErrorKind.NOT_FOUND


class TransientError(TelemetryError):
    """Timeout, rate limit, 5xx or connection failure."""
    kind = FetchErrorKind.TRANSIENT


class MalformedResponseError(TelemetryError):
    """Unexpected response shape."""
    kind = FetchErrorKind.MALFORMED


class ConfigurationMissingError(TelemetryError):
    """No handle or credential configured."""
    kind = FetchErrorKind.CONFIGURATION_MISSING


class CoachingError(DevTrackError):
    """The coaching oracle failed or answered with something unusable."""
