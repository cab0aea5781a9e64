"""Interface definitions for the scanner components.

All components implement these interfaces to enable loose coupling and testability.
"""

from src.interfaces.camera import (
    CameraBackend,
    CameraConstraints,
    CameraError,
    CameraStream,
    CameraUnavailable,
    Frame,
    MediaTrack,
    NoFrameAvailable,
)
from src.interfaces.text_service import (
    ErrorKind,
    InvalidCredentialError,
    NotConfiguredError,
    RateLimitError,
    TextService,
    TextServiceError,
)

__all__ = [
    "CameraBackend",
    "CameraConstraints",
    "CameraError",
    "CameraStream",
    "CameraUnavailable",
    "ErrorKind",
    "Frame",
    "InvalidCredentialError",
    "MediaTrack",
    "NoFrameAvailable",
    "NotConfiguredError",
    "RateLimitError",
    "TextService",
    "TextServiceError",
]
