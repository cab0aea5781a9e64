"""Scan coordinator: the state machine driving text capture.

A scan samples the current camera frame, sends it to the text service for
extraction and appends the trimmed result to the transcript. After every
non-cancelled completion a cooldown window blocks new scans.

States: idle, scanning, cooling_down. Triggers while scanning or cooling
down are rejected, not queued.

Cancellation is advisory: cancel_scan() marks the live request and returns
to idle immediately. The network call keeps running and its outcome is
dropped at the next checkpoint after it resumes.

Example:
    >>> scan = ScanCoordinator(session, text_service)
    >>> await scan.trigger_scan()
    True
    >>> scan.transcript
    ('Question 1: what is 2 + 2?',)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING

from src.core.cooldown import CooldownWindow
from src.interfaces.camera import CameraError
from src.interfaces.text_service import TextServiceError
from src.models.scan import Operation, ScanRequest, UserError

if TYPE_CHECKING:
    from src.interfaces.text_service import TextService
    from src.vision.capture import CaptureSession

logger = logging.getLogger(__name__)


class ScanState(StrEnum):
    """Observable states of the scan coordinator."""

    IDLE = "idle"
    SCANNING = "scanning"
    COOLING_DOWN = "cooling_down"


class ScanCoordinator:
    """Coordinates frame capture, extraction and the transcript.

    Attributes:
        transcript: Extracted snippets in scan completion order.
        error: Latest user-facing scan error, if any.
        state: Current ScanState.
    """

    def __init__(
        self,
        capture_session: CaptureSession,
        text_service: TextService,
        cooldown_seconds: float = 5.0,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the scan coordinator.

        Args:
            capture_session: Session supplying camera frames.
            text_service: Service used for text extraction.
            cooldown_seconds: Lockout after each completed scan.
            on_change: Called after every observable state change.
        """
        self._capture_session = capture_session
        self._text_service = text_service
        self._on_change = on_change
        self._cooldown = CooldownWindow(
            duration_seconds=cooldown_seconds,
            name="scan cooldown",
            on_expire=self._notify,
        )

        self._transcript: list[str] = []
        self._error: UserError | None = None
        self._current: ScanRequest | None = None

    @property
    def transcript(self) -> tuple[str, ...]:
        return tuple(self._transcript)

    @property
    def error(self) -> UserError | None:
        return self._error

    @property
    def cooldown(self) -> CooldownWindow:
        return self._cooldown

    @property
    def is_scanning(self) -> bool:
        return self._current is not None

    @property
    def is_cooling_down(self) -> bool:
        return self._cooldown.active

    @property
    def state(self) -> ScanState:
        if self.is_scanning:
            return ScanState.SCANNING
        if self.is_cooling_down:
            return ScanState.COOLING_DOWN
        return ScanState.IDLE

    @property
    def can_scan(self) -> bool:
        """Whether trigger_scan() would start a new scan."""
        return (
            self._current is None
            and not self._cooldown.active
            and self._capture_session.is_active
        )

    async def trigger_scan(
        self, on_start: Callable[[ScanRequest], None] | None = None
    ) -> bool:
        """Capture a frame and extract its text.

        Args:
            on_start: Called with the request once the scan is under way, so
                the caller can tell later whether it was cancelled.

        Returns:
            True if a scan ran (including cancelled and failed scans), False if
            the trigger was rejected by a guard.
        """
        if not self.can_scan:
            logger.debug(f"Scan trigger ignored in state {self.state}")
            return False

        try:
            frame = self._capture_session.capture_frame()
        except CameraError as e:
            logger.warning(f"Scan skipped: {e}")
            return False

        request = ScanRequest(image_bytes=frame.raw_bytes)
        self._current = request
        self._error = None
        self._notify()
        if on_start is not None:
            on_start(request)
        logger.info(f"Scanning frame ({frame.width}x{frame.height}, {len(frame.raw_bytes)} bytes)")

        try:
            text = await self._text_service.extract_text(request.image_bytes)
        except TextServiceError as e:
            if request.cancelled:
                logger.info("Scan cancelled by user; discarding failure.")
            else:
                logger.error(f"Text extraction failed: {e}")
                self._error = UserError.from_service_error(e, Operation.EXTRACTION)
        else:
            if request.cancelled:
                logger.info("Scan cancelled by user; discarding result.")
            else:
                self._append(text)
        finally:
            if self._current is request:
                self._current = None
            if not request.cancelled:
                self._cooldown.start()
            self._notify()

        return True

    def cancel_scan(self) -> bool:
        """Cancel the live scan.

        Returns:
            True if a scan was cancelled, False if none was running.
        """
        request = self._current
        if request is None:
            return False
        request.cancelled = True
        self._current = None
        logger.info("Scan cancel requested")
        self._notify()
        return True

    def clear_transcript(self) -> None:
        """Empty the transcript and the held error.

        Scanning and cooldown progress are unaffected.
        """
        self._transcript.clear()
        self._error = None
        logger.debug("Transcript cleared")
        self._notify()

    def close(self) -> None:
        """Cancel any live scan and drop a pending cooldown."""
        self.cancel_scan()
        self._cooldown.close()

    def _append(self, text: str) -> None:
        cleaned = text.strip()
        if not cleaned:
            logger.info("No text found in frame")
            return
        self._transcript.append(cleaned)
        logger.info(f"Transcript now has {len(self._transcript)} snippet(s)")

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as e:
            logger.warning(f"Scan state callback error: {e}")
