"""Exceptions raised by the Bunny storage client and sync engines."""

from typing import Optional


class BunnyError(Exception):
    """Base class for all pybunny errors."""


class BunnyConfigError(BunnyError):
    """Raised when required settings are missing or invalid."""


class BunnyNotFoundError(BunnyError):
    """Raised when a remote path does not exist."""


class BunnyChecksumMismatchError(BunnyError):
    """Raised when a SHA-256 digest does not match the expected value."""

    def __init__(self, expected: str, actual: str, path: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.path = path
        message = f"Checksum mismatch: expected {expected}, received {actual}"
        if path:
            message = f"{message} (path '{path}')"
        super().__init__(message)


class BunnyTypeMismatchError(BunnyError):
    """Raised when a path is a file where a directory was expected, or vice versa."""


class BunnyOverwriteRequiredError(BunnyError):
    """Raised when an upload would replace different remote content."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Remote file '{path}' exists with different content; "
            "use overwrite to replace it"
        )


class BunnyInvalidArgumentError(BunnyError, ValueError):
    """Raised for invalid arguments, e.g. a directory without recursive."""


class BunnyUnsupportedPathError(BunnyError):
    """Raised when a local path is neither a regular file nor a directory."""


class BunnyLocalIOError(BunnyError):
    """Raised when reading or writing a local path fails."""


class BunnyTransportError(BunnyError):
    """Raised when the storage API answers with an unexpected status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class BunnyAuthenticationError(BunnyTransportError):
    """Raised when the access key is rejected."""


class BunnyRateLimitError(BunnyTransportError):
    """Raised when the API rate limit is exceeded."""


class BunnyNetworkError(BunnyTransportError):
    """Raised when the request could not be sent or the connection dropped."""


class BunnyInvalidResponseError(BunnyTransportError):
    """Raised when the API returns a payload that cannot be decoded."""
