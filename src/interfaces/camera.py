"""Camera capability interface for frame capture."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from PIL import Image

logger = logging.getLogger(__name__)


class CameraError(Exception):
    """Error raised when camera operations fail."""

    pass


class CameraUnavailable(CameraError):
    """Camera capability was denied, is absent, or is already in use."""

    pass


class NoFrameAvailable(CameraError):
    """No frame can be sampled: the session is inactive or nothing rendered yet."""

    pass


@dataclass(frozen=True)
class CameraConstraints:
    """Requested camera capability.

    Attributes:
        facing: Preferred camera, "environment" (rear) or "user" (front).
        ideal_width: Preferred frame width in pixels.
        ideal_height: Preferred frame height in pixels.
    """

    facing: str = "environment"
    ideal_width: int = 1920
    ideal_height: int = 1080


class Frame:
    """A still sampled from the live camera, JPEG encoded."""

    __slots__ = ("image", "raw_bytes", "timestamp", "width", "height")

    def __init__(
        self,
        image: Image.Image,
        raw_bytes: bytes,
        timestamp: datetime,
        width: int,
        height: int,
    ) -> None:
        """Initialize a frame.

        Args:
            image: PIL Image object.
            raw_bytes: JPEG-encoded image bytes.
            timestamp: When the frame was sampled.
            width: Image width in pixels.
            height: Image height in pixels.
        """
        self.image = image
        self.raw_bytes = raw_bytes
        self.timestamp = timestamp
        self.width = width
        self.height = height


class MediaTrack(Protocol):
    """A single hardware track held by a camera stream."""

    def stop(self) -> None:
        """Release the underlying hardware handle."""
        ...


class CameraStream(ABC):
    """A live camera stream acquired from a backend."""

    @property
    @abstractmethod
    def tracks(self) -> list[MediaTrack]:
        """Hardware tracks held by this stream."""
        ...

    @abstractmethod
    def read_frame(self) -> Image.Image | None:
        """Read the current frame.

        Returns:
            RGB PIL Image, or None if no frame has rendered yet.
        """
        ...


class CameraBackend(ABC):
    """Abstract camera capability provider.

    A backend hands out at most one live stream. Acquiring while a stream
    is still live raises CameraUnavailable; the stream counts as released
    once all of its tracks have been stopped through release().
    """

    def __init__(self) -> None:
        self._live_stream: CameraStream | None = None
        self._lock = threading.Lock()

    @property
    def in_use(self) -> bool:
        """Whether a stream is currently held."""
        return self._live_stream is not None

    def acquire(self, constraints: CameraConstraints) -> CameraStream:
        """Acquire the camera for the given constraints.

        Blocking; callers on an event loop should run it in a worker thread.

        Raises:
            CameraUnavailable: If the camera is denied, absent or held.
        """
        with self._lock:
            if self._live_stream is not None:
                raise CameraUnavailable("Camera is already held by another session")
            stream = self._open(constraints)
            self._live_stream = stream
        return stream

    def release(self, stream: CameraStream) -> None:
        """Stop every track of a stream and mark the camera free."""
        for track in stream.tracks:
            try:
                track.stop()
            except Exception as e:
                logger.warning(f"Failed to stop camera track {track!r}: {e}")
        with self._lock:
            if self._live_stream is stream:
                self._live_stream = None

    @abstractmethod
    def _open(self, constraints: CameraConstraints) -> CameraStream:
        """Open the device and return a live stream.

        Raises:
            CameraUnavailable: If no matching device can be opened.
        """
        ...
