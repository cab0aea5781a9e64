"""Runtime container composing the scanner components."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.core.answer import AnswerCoordinator
from src.core.scan import ScanCoordinator
from src.interfaces.camera import CameraUnavailable
from src.models.scan import UserError
from src.vision.camera import OpenCVCameraBackend
from src.vision.capture import CaptureSession
from src.vision.text_service import RemoteTextService

if TYPE_CHECKING:
    from src.config.loader import Config
    from src.interfaces.camera import CameraBackend
    from src.interfaces.text_service import TextService

logger = logging.getLogger(__name__)


@dataclass
class ScannerRuntime:
    """Runtime wrapper for an assembled scanning session.

    Owns the text service instance and hands it to both coordinators; there
    is no module-level client.
    """

    config: Config
    text_service: TextService
    capture_session: CaptureSession
    scan: ScanCoordinator
    answer: AnswerCoordinator
    camera_error: UserError | None = field(default=None)

    @property
    def camera_active(self) -> bool:
        return self.capture_session.is_active

    async def start_camera(self) -> bool:
        """Clear previous results and start the camera.

        Returns:
            True if the camera is active afterwards, False if it was unavailable
            or stopped while starting.
        """
        self.camera_error = None
        self.scan.clear_transcript()
        self.answer.clear()
        try:
            await self.capture_session.start()
        except CameraUnavailable as e:
            logger.error(f"Error accessing camera: {e}")
            self.camera_error = UserError.camera_unavailable()
            return False
        return self.capture_session.is_active

    def stop_camera(self) -> None:
        """Stop the camera, cancelling a live scan when configured to."""
        if self.config.scan.cancel_on_camera_stop and self.scan.cancel_scan():
            logger.info("Cancelled in-flight scan because the camera stopped")
        self.capture_session.stop()

    async def toggle_camera(self) -> bool:
        """Start the camera when inactive, stop it when active.

        Returns:
            Whether the camera is active afterwards.
        """
        if self.capture_session.is_active:
            self.stop_camera()
            return False
        return await self.start_camera()

    def clear(self) -> None:
        """Clear the transcript, the answer and held errors."""
        self.scan.clear_transcript()
        self.answer.clear()
        self.camera_error = None

    def shutdown(self) -> None:
        """Shutdown runtime resources."""
        self.scan.close()
        self.answer.close()
        self.capture_session.stop()


def build_text_service(config: Config) -> RemoteTextService:
    """Create an unconfigured remote text service from configuration."""
    return RemoteTextService(
        provider=config.llm.provider,
        model=config.llm.model,
        max_tokens=config.llm.max_tokens,
        retry_policy=config.llm.retry_policy(),
    )


def build_runtime(
    config: Config,
    api_key: str | None,
    backend: CameraBackend | None = None,
    text_service: TextService | None = None,
    on_change: Callable[[], None] | None = None,
) -> ScannerRuntime:
    """Assemble a runtime from configuration.

    Args:
        config: Loaded configuration.
        api_key: Provider API key. The service stays unconfigured if None.
        backend: Camera backend. Uses OpenCV devices from config if None.
        text_service: Text service. Builds a RemoteTextService if None.
        on_change: Called after every coordinator state change.

    Raises:
        InvalidCredentialError: If api_key is an empty string.
    """
    if text_service is None:
        text_service = build_text_service(config)
    if api_key is not None:
        text_service.configure(api_key)

    if backend is None:
        backend = OpenCVCameraBackend(
            rear_device_index=config.camera.rear_device_index,
            front_device_index=config.camera.front_device_index,
        )
    capture_session = CaptureSession(
        backend,
        constraints=config.camera.constraints(),
        jpeg_quality=config.camera.jpeg_quality,
    )

    scan = ScanCoordinator(
        capture_session,
        text_service,
        cooldown_seconds=config.scan.cooldown_seconds,
        on_change=on_change,
    )
    answer = AnswerCoordinator(
        text_service,
        transcript_provider=lambda: scan.transcript,
        cooldown_seconds=config.answer.cooldown_seconds,
        on_change=on_change,
    )

    return ScannerRuntime(
        config=config,
        text_service=text_service,
        capture_session=capture_session,
        scan=scan,
        answer=answer,
    )
