class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or invalid."""


class AuthenticationError(Exception):
    """Raised when the Gemini API key is missing at call time."""


class IntegrationError(Exception):
    """Raised when an external call fails."""


class RateLimitError(Exception):
    """Raised when an external rate limit is hit."""


class EmptyInputError(ValueError):
    """Raised by callers when there is neither text nor an image to analyze."""


class InvalidAttachmentError(ValueError):
    """Raised when an image attachment cannot be encoded for the wire."""


class EmptyResponseError(IntegrationError):
    """Gemini finished without returning any text.

    ``reason`` is one of ``"safety"``, ``"early_stop"`` or ``"unspecified"``;
    ``finish_reason`` carries the raw completion status when there was one.
    """

    def __init__(self, message: str, reason: str, finish_reason: str | None = None):
        super().__init__(message)
        self.reason = reason
        self.finish_reason = finish_reason


class SessionNotFoundError(LookupError):
    """Raised when a study session id is unknown or was evicted."""


class SessionBusyError(Exception):
    """Raised when a session already has a request in flight."""
