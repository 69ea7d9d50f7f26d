"""
Exception types raised by the rendition worker.

Only SourceCorruptError is fatal to an invocation. The auth errors surface
from add-manifest attempts and are absorbed by the manifest propagator; every
other failure degrades to a logged warning at its stage boundary.
"""

from typing import Any, Dict, Optional


class WorkerError(Exception):
    """Base exception for all worker errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SourceCorruptError(WorkerError):
    """Raised when the source asset is empty or otherwise unusable."""


class ConfigurationError(WorkerError):
    """Raised when sign parameters are incomplete or name an unknown tier."""


class TokenExchangeError(WorkerError):
    """Raised when the identity service refuses a token exchange."""

    def __init__(self, message: str, status: Optional[int] = None,
                 status_text: str = "", body: Any = None):
        super().__init__(message, {"status": status, "status_text": status_text, "body": body})
        self.status = status
        self.status_text = status_text
        self.body = body


class CredentialRejected(TokenExchangeError):
    """Raised when the identity service rejects the client secret."""


class NoResponseError(WorkerError):
    """Raised when the token exchange produced no HTTP response at all."""


class AuthAttachmentError(WorkerError):
    """Raised when an auth token could not be attached to a c2patool command."""


class SigningError(WorkerError):
    """Raised when the c2pa library or a signing backend fails."""
