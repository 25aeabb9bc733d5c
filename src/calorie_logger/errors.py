"""Error types surfaced to API callers."""


class CalorieLoggerError(Exception):
    """Base error carrying a human-readable message and a suggested status."""

    http_status = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CalorieLoggerError):
    """Raised when a credential or backend setting is missing or rejected."""

    http_status = 400


class ValidationError(CalorieLoggerError):
    """Raised when user input is missing or malformed."""

    http_status = 422


class EntryNotFoundError(CalorieLoggerError):
    """Raised when a date or entry index does not exist in the log."""

    http_status = 404


class AnalysisInProgressError(CalorieLoggerError):
    """Raised when a meal analysis is already running."""

    http_status = 409


class UpstreamFormatError(CalorieLoggerError):
    """Raised when the model output does not match the nutrition schema."""

    http_status = 502


class NetworkError(CalorieLoggerError):
    """Raised when the model API cannot be reached or times out."""

    http_status = 503
