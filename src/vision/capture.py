"""Capture session for the camera.

This module owns the camera capability lifecycle and samples single frames
from the live stream on demand.

Lifecycle: inactive -> active (start succeeds) -> inactive (stop, or exit of
the owning context). There are no intermediate states.

Example:
    >>> from src.vision.camera import OpenCVCameraBackend
    >>> from src.vision.capture import CaptureSession
    >>>
    >>> async with CaptureSession(OpenCVCameraBackend()) as session:
    ...     frame = session.capture_frame()
    ...     print(f"Captured {frame.width}x{frame.height}")
"""

from __future__ import annotations

import asyncio
import io
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from src.interfaces.camera import (
    CameraConstraints,
    CameraError,
    CameraUnavailable,
    Frame,
    NoFrameAvailable,
)

if TYPE_CHECKING:
    from types import TracebackType

    from src.interfaces.camera import CameraBackend, CameraStream

logger = logging.getLogger(__name__)


class CaptureSession:
    """Owns a camera stream and samples JPEG frames from it.

    Attributes:
        constraints: Camera constraints requested on start.
        jpeg_quality: JPEG quality used when encoding frames.
    """

    def __init__(
        self,
        backend: CameraBackend,
        constraints: CameraConstraints | None = None,
        jpeg_quality: int = 92,
    ) -> None:
        """Initialize the capture session.

        Args:
            backend: Camera backend providing the capability.
            constraints: Requested constraints. Rear camera at 1920x1080 if None.
            jpeg_quality: JPEG quality (1-95) for encoded frames.
        """
        self._backend = backend
        self.constraints = constraints or CameraConstraints()
        self.jpeg_quality = jpeg_quality
        self._stream: CameraStream | None = None
        self._start_lock = asyncio.Lock()
        self._generation = 0

    @property
    def is_active(self) -> bool:
        """Whether the session currently holds a camera stream."""
        return self._stream is not None

    async def start(self) -> None:
        """Acquire the camera.

        Acquisition runs in a worker thread so the event loop stays free.
        Starting an active session does nothing, and overlapping calls share
        a single acquisition. A stop() issued while acquisition is pending
        releases the stream as soon as it arrives.

        Raises:
            CameraUnavailable: If the camera is denied, absent or held elsewhere.
        """
        async with self._start_lock:
            if self._stream is not None:
                return

            generation = self._generation
            try:
                stream = await asyncio.to_thread(self._backend.acquire, self.constraints)
            except CameraUnavailable:
                raise
            except Exception as e:
                raise CameraUnavailable(f"Error accessing camera: {e}") from e

            if generation != self._generation:
                logger.info("Camera stopped while starting; releasing stream")
                self._backend.release(stream)
                return

            self._stream = stream
        logger.info(
            f"Camera started (facing={self.constraints.facing}, "
            f"ideal={self.constraints.ideal_width}x{self.constraints.ideal_height})"
        )

    def stop(self) -> None:
        """Release every hardware track and clear the frame source.

        Idempotent: safe to call when already stopped.
        """
        self._generation += 1
        stream, self._stream = self._stream, None
        if stream is None:
            return
        self._backend.release(stream)
        logger.info("Camera stopped")

    def capture_frame(self) -> Frame:
        """Sample the current frame and encode it as JPEG.

        Returns:
            Frame with the PIL image and its JPEG bytes.

        Raises:
            NoFrameAvailable: If the session is inactive, no frame has rendered,
                or the frame cannot be encoded.
        """
        if self._stream is None:
            raise NoFrameAvailable("Capture session is not active")

        try:
            timestamp = datetime.now()
            image = self._stream.read_frame()
        except CameraError:
            raise
        except Exception as e:
            raise NoFrameAvailable(f"Unexpected error reading frame: {e}") from e

        if image is None:
            raise NoFrameAvailable("No frame has rendered yet")

        if image.mode != "RGB":
            image = image.convert("RGB")

        buffer = io.BytesIO()
        try:
            image.save(buffer, format="JPEG", quality=self.jpeg_quality)
        except (OSError, ValueError) as e:
            raise NoFrameAvailable(f"Failed to encode frame: {e}") from e
        width, height = image.size

        logger.debug(f"Captured frame: {width}x{height} at {timestamp}")

        return Frame(
            image=image,
            raw_bytes=buffer.getvalue(),
            timestamp=timestamp,
            width=width,
            height=height,
        )

    def __enter__(self) -> CaptureSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    async def __aenter__(self) -> CaptureSession:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
