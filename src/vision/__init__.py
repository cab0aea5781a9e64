"""Vision package for camera capture and remote text extraction.

This package provides:
- CaptureSession: Camera lifecycle and JPEG frame sampling
- OpenCVCameraBackend: Camera capability backed by OpenCV devices
- RemoteTextService: Retrying client for text extraction and answering
- RetryPolicy / call_with_retry: Exponential backoff for rate-limited calls
"""

from src.vision.camera import OpenCVCameraBackend
from src.vision.capture import CaptureSession
from src.vision.retry import RetryPolicy, call_with_retry
from src.vision.text_service import RemoteTextService, classify_provider_error

__all__ = [
    "CaptureSession",
    "OpenCVCameraBackend",
    "RemoteTextService",
    "RetryPolicy",
    "call_with_retry",
    "classify_provider_error",
]
