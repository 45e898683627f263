"""Async client for a digital asset management (DAM) portal API."""

from dambridge.client import DamClient
from dambridge.core.exceptions import (
    AuthenticationError,
    ChunkUploadError,
    ConfigurationError,
    DamBridgeError,
    InvalidTokenError,
    StreamError,
    TransportError,
    UploadCancelledError,
    UploadError,
    ValidationError,
)
from dambridge.models.token import OAuth2Token
from dambridge.models.upload import CHUNK_SIZE, UploadResult

__version__ = "0.1.0"

__all__ = [
    "DamClient",
    "OAuth2Token",
    "UploadResult",
    "CHUNK_SIZE",
    "DamBridgeError",
    "ConfigurationError",
    "ValidationError",
    "AuthenticationError",
    "InvalidTokenError",
    "TransportError",
    "ChunkUploadError",
    "StreamError",
    "UploadCancelledError",
    "UploadError",
]
