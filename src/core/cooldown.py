"""Cooldown window used to rate limit scan and answer requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CooldownWindow:
    """A fixed-duration lockout started after a request completes.

    Once started, a window runs for its full duration: starting it again
    while active changes nothing. Each coordinator owns its own window.

    Must be started from a running event loop; expiry is scheduled with
    ``loop.call_later``.

    Example:
        >>> cooldown = CooldownWindow(duration_seconds=5.0)
        >>> cooldown.start()
        >>> cooldown.active
        True
        >>> await cooldown.wait()
    """

    def __init__(
        self,
        duration_seconds: float = 5.0,
        name: str = "cooldown",
        on_expire: Callable[[], None] | None = None,
    ) -> None:
        if duration_seconds < 0:
            raise ValueError(f"duration_seconds must be >= 0, got {duration_seconds}")
        self._duration = duration_seconds
        self._name = name
        self._on_expire = on_expire
        self._handle: asyncio.TimerHandle | None = None
        self._ends_at: float | None = None
        self._expired: asyncio.Event | None = None

    @property
    def duration_seconds(self) -> float:
        return self._duration

    @property
    def active(self) -> bool:
        """Whether the window is currently running."""
        return self._handle is not None

    @property
    def remaining_seconds(self) -> float:
        """Seconds left in the window, 0.0 when inactive."""
        if self._handle is None or self._ends_at is None:
            return 0.0
        return max(0.0, self._ends_at - asyncio.get_running_loop().time())

    def start(self) -> bool:
        """Start the window.

        Returns:
            True if the window was started, False if it was already active.
        """
        if self._handle is not None:
            return False

        loop = asyncio.get_running_loop()
        self._ends_at = loop.time() + self._duration
        self._expired = asyncio.Event()
        self._handle = loop.call_later(self._duration, self._expire)
        logger.debug(f"{self._name} started for {self._duration:.1f}s")
        return True

    async def wait(self) -> None:
        """Wait until the window is no longer active."""
        if self._handle is None or self._expired is None:
            return
        await self._expired.wait()

    def close(self) -> None:
        """Drop a pending window without firing callbacks. Used on teardown."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._ends_at = None
        if self._expired is not None:
            self._expired.set()

    def _expire(self) -> None:
        self._handle = None
        self._ends_at = None
        if self._expired is not None:
            self._expired.set()
        logger.debug(f"{self._name} ended")
        if self._on_expire is not None:
            try:
                self._on_expire()
            except Exception as e:
                logger.warning(f"{self._name} expiry callback error: {e}")
