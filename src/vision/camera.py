"""OpenCV camera backend.

Rear-facing preference maps to device indices: the configured rear device
is tried first for facing="environment", the front device first for
facing="user". The other device is tried as a fallback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import cv2
from PIL import Image

from src.interfaces.camera import (
    CameraBackend,
    CameraConstraints,
    CameraStream,
    CameraUnavailable,
    MediaTrack,
)

logger = logging.getLogger(__name__)


class VideoTrack:
    """A video track backed by an open cv2.VideoCapture."""

    def __init__(self, capture: Any, device_index: int) -> None:
        self._capture = capture
        self.device_index = device_index
        self.ready_state = "live"

    @property
    def capture(self) -> Any:
        return self._capture

    def stop(self) -> None:
        """Release the device. Safe to call more than once."""
        if self.ready_state == "ended":
            return
        self._capture.release()
        self.ready_state = "ended"
        logger.debug(f"Released camera device {self.device_index}")

    def __repr__(self) -> str:
        return f"VideoTrack(device={self.device_index}, state={self.ready_state})"


class OpenCVCameraStream(CameraStream):
    """Live stream over a single OpenCV video track."""

    def __init__(self, track: VideoTrack) -> None:
        self._track = track

    @property
    def tracks(self) -> list[MediaTrack]:
        return [self._track]

    def read_frame(self) -> Image.Image | None:
        if self._track.ready_state != "live":
            return None
        ok, frame = self._track.capture.read()
        if not ok or frame is None:
            return None
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return Image.fromarray(rgb)


class OpenCVCameraBackend(CameraBackend):
    """Camera backend using cv2.VideoCapture devices.

    Example:
        >>> backend = OpenCVCameraBackend(rear_device_index=0, front_device_index=1)
        >>> stream = backend.acquire(CameraConstraints())
        >>> image = stream.read_frame()
        >>> backend.release(stream)
    """

    def __init__(
        self,
        rear_device_index: int = 0,
        front_device_index: int = 1,
        capture_factory: Callable[[int], Any] | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            rear_device_index: Device index of the rear-facing camera.
            front_device_index: Device index of the front-facing camera.
            capture_factory: Callable opening a device index. Defaults to
                cv2.VideoCapture.
        """
        super().__init__()
        self._rear_device_index = rear_device_index
        self._front_device_index = front_device_index
        self._capture_factory = capture_factory or cv2.VideoCapture

    def device_order(self, facing: str) -> list[int]:
        """Device indices to try, preferred first."""
        if facing == "user":
            order = [self._front_device_index, self._rear_device_index]
        else:
            order = [self._rear_device_index, self._front_device_index]
        return list(dict.fromkeys(order))

    def _open(self, constraints: CameraConstraints) -> CameraStream:
        for index in self.device_order(constraints.facing):
            try:
                capture = self._capture_factory(index)
            except Exception as e:
                logger.warning(f"Could not open camera device {index}: {e}")
                continue

            if not capture.isOpened():
                capture.release()
                logger.debug(f"Camera device {index} not available")
                continue

            capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)
            actual_w = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_h = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            logger.info(f"Opened camera device {index} at {actual_w}x{actual_h}")
            return OpenCVCameraStream(VideoTrack(capture, index))

        raise CameraUnavailable(
            f"No camera could be opened (tried devices {self.device_order(constraints.facing)})"
        )
