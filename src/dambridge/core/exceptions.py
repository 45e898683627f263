"""Custom exceptions for the dambridge client.

Every error carries a numeric ``status`` (0 when no HTTP status applies)
and a human readable ``message``; ``to_dict()`` gives the stable
``{"status", "message"}`` shape callers can rely on.
"""

from typing import Any, Mapping, Optional


class DamBridgeError(Exception):
    """Base exception for the dambridge client."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.message = message
        self.status = status

    def to_dict(self) -> dict:
        """Return the error as a {status, message} mapping."""
        return {"status": self.status, "message": self.message}


class ConfigurationError(DamBridgeError):
    """Exception raised when the client is constructed with invalid options."""
    pass


class ValidationError(DamBridgeError):
    """Exception raised when a request parameter is missing or invalid.

    Raised before any network call is made.
    """

    def __init__(self, module: str, param: str):
        super().__init__(
            f"The {module} {param} is not valid or it was not specified properly",
            status=0,
        )
        self.module = module
        self.param = param


class AuthenticationError(DamBridgeError):
    """Exception raised when no usable access token is available."""
    pass


class InvalidTokenError(AuthenticationError):
    """Exception raised when a supplied OAuth2 token is malformed."""
    pass


class TransportError(DamBridgeError):
    """Exception raised on a non-2xx response or a network-level failure."""

    def __init__(
        self,
        message: str,
        status: int = 0,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(message, status=status)
        self.body = body
        self.headers = dict(headers or {})


class ChunkUploadError(DamBridgeError):
    """Exception raised when a chunk still fails after the retry ceiling."""

    def __init__(self, chunk_index: int, attempts: int, status: int = 0):
        super().__init__(f"Chunk {chunk_index} not uploaded", status=status)
        self.chunk_index = chunk_index
        self.attempts = attempts


class StreamError(DamBridgeError):
    """Exception raised when a streamed upload body fails mid-read."""
    pass


class UploadCancelledError(DamBridgeError):
    """Exception raised when an upload is cancelled between chunks."""
    pass


class UploadError(DamBridgeError):
    """Normalized failure of an upload after validation passed.

    The triggering exception is available as ``__cause__``.
    """

    def __init__(self, message: str, status: int = 0, filename: Optional[str] = None):
        super().__init__(message, status=status)
        self.filename = filename
