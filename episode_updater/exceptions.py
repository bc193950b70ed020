"""Error types raised while updating episodes."""

from enum import Enum
from typing import Optional, Sequence


class EpisodeUpdaterError(Exception):
    """Base class for every error that stops a run."""


class ConfigError(EpisodeUpdaterError):
    """Missing or invalid configuration (.env file, credentials, CSV path)."""


# CSV header errors

class HeaderValidationError(EpisodeUpdaterError):
    """The CSV header does not describe a valid update."""


class EmptyCsvFile(HeaderValidationError):
    def __init__(self, path: str):
        super().__init__(f"CSV file '{path}' is empty")
        self.path = path


class MissingUrlColumn(HeaderValidationError):
    def __init__(self, found: str):
        super().__init__(f"First column must be 'url', found '{found}'")
        self.found = found


class UnknownHeaderField(HeaderValidationError):
    def __init__(self, field: str):
        super().__init__(f"Invalid field '{field}' in CSV header")
        self.field = field


class DuplicateHeaderField(HeaderValidationError):
    def __init__(self, field: str):
        super().__init__(f"Field '{field}' appears more than once in CSV header")
        self.field = field


# Row errors

class ValidationFailure(str, Enum):
    """Why a field value was rejected."""

    UNKNOWN_FIELD = "unknown_field"
    INVALID_VALUE = "invalid_value"
    INVALID_FORMAT = "invalid_format"
    EMPTY_VALUE = "empty_value"


class RowValidationError(EpisodeUpdaterError):
    """A data row holds a value that cannot be sent to the API."""


class FieldValidationError(RowValidationError):
    def __init__(self, field: str, value: str, reason: ValidationFailure, message: str):
        super().__init__(message)
        self.field = field
        self.value = value
        self.reason = reason


class IdentifierExtractionError(EpisodeUpdaterError):
    def __init__(self, url: str):
        super().__init__(f"Invalid URL format: {url}")
        self.url = url


# Remote service errors

class ApiError(EpisodeUpdaterError):
    """The remote service answered with a non-200 status."""

    def __init__(self, status: int, episode_id: str, body: str = ""):
        super().__init__(f"HTTP {status} for episode {episode_id}")
        self.status = status
        self.episode_id = episode_id
        self.body = body


class MalformedResponse(EpisodeUpdaterError):
    def __init__(self, episode_id: str, reason: str = "Invalid JSON response"):
        super().__init__(f"{reason} for episode {episode_id}")
        self.episode_id = episode_id


class TransportError(EpisodeUpdaterError):
    """The request never produced a response (connection error, timeout)."""


class MissingPublishDate(EpisodeUpdaterError):
    def __init__(self, episode_id: str, available_keys: Optional[Sequence[str]] = None):
        super().__init__("No publishOn date available (not in CSV and not in episode data)")
        self.episode_id = episode_id
        self.available_keys = list(available_keys or [])
