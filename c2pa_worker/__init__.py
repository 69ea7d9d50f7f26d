"""
C2PA rendition worker.

Signs asset renditions with a C2PA manifest and optionally carries the source
asset's active manifest over to the rendition.
"""

from .config import RenditionInstructions, SignParams, WorkerConfig
from .errors import (
    AuthAttachmentError,
    ConfigurationError,
    CredentialRejected,
    NoResponseError,
    SigningError,
    SourceCorruptError,
    TokenExchangeError,
    WorkerError,
)
from .worker import Rendition, Source, WorkerResult, process

__version__ = "1.0.0"
