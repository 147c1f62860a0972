"""Inactivity detection for the running timer."""

import logging
import platform
import subprocess
from typing import Callable, Optional

from timecard.core.timer import Timer

logger = logging.getLogger(__name__)

IDLE = "idle"
DISMISSED = "dismissed"


def get_system_idle_seconds() -> int:
    """Seconds since the last keyboard or mouse input, or 0 if unknown.

    Platform-specific implementation:
    - Linux X11: xprintidle
    - macOS: CGEventSourceSecondsSinceLastEventType (pyobjc)
    - Windows: GetLastInputInfo
    """
    system = platform.system()
    if system == "Linux":
        try:
            result = subprocess.run(["xprintidle"], capture_output=True, text=True, timeout=1)
            if result.returncode == 0:
                return int(result.stdout.strip()) // 1000
        except (FileNotFoundError, subprocess.TimeoutExpired, ValueError):
            pass
        return 0

    if system == "Darwin":
        try:
            from Quartz import (  # type: ignore[import-not-found]
                CGEventSourceSecondsSinceLastEventType,
                kCGEventSourceStateHIDSystemState,
            )
        except ImportError:
            return 0
        return int(CGEventSourceSecondsSinceLastEventType(kCGEventSourceStateHIDSystemState, 0))

    if system == "Windows":
        import ctypes

        class LASTINPUTINFO(ctypes.Structure):
            _fields_ = [("cbSize", ctypes.c_uint), ("dwTime", ctypes.c_uint)]

        info = LASTINPUTINFO()
        info.cbSize = ctypes.sizeof(info)
        if not ctypes.windll.user32.GetLastInputInfo(ctypes.byref(info)):  # type: ignore[attr-defined]
            return 0
        millis = ctypes.windll.kernel32.GetTickCount() - info.dwTime  # type: ignore[attr-defined]
        return int(millis // 1000)

    return 0


class IdleDetector:
    """Pause a running timer after a period without user activity.

    When the idle timeout elapses while the timer runs, the timer is stopped
    and the "still there?" prompt opens. The prompt closes itself after the
    prompt timeout, leaving the timer paused; only resume() restarts it.
    """

    def __init__(
        self,
        timer: Timer,
        idle_timeout: int = 180,
        prompt_timeout: int = 180,
        idle_source: Optional[Callable[[], int]] = None,
        on_idle: Optional[Callable[[], None]] = None,
        on_dismiss: Optional[Callable[[], None]] = None,
    ):
        """Initialize idle detector.

        Args:
            timer: Timer to pause
            idle_timeout: Seconds of inactivity before pausing
            prompt_timeout: Seconds before an unanswered prompt closes
            idle_source: Returns seconds since last OS input (e.g.
                get_system_idle_seconds). Activity is only tracked through
                record_activity() when None.
            on_idle: Called when the timer is paused for inactivity
            on_dismiss: Called when the prompt closes on its own
        """
        self.timer = timer
        self.idle_timeout = idle_timeout
        self.prompt_timeout = prompt_timeout
        self.idle_source = idle_source
        self.on_idle = on_idle
        self.on_dismiss = on_dismiss

        self.last_activity = timer.clock()
        self.prompt_opened_at: Optional[int] = None

    @property
    def prompt_open(self) -> bool:
        return self.prompt_opened_at is not None

    def record_activity(self) -> None:
        """Restart the inactivity countdown. An open prompt stays open."""
        self.last_activity = self.timer.clock()

    def poll(self) -> Optional[str]:
        """Advance the detector.

        Returns:
            IDLE if the timer was just paused, DISMISSED if the prompt just
            closed by timeout, otherwise None
        """
        now = self.timer.clock()

        if self.prompt_opened_at is not None:
            if now - self.prompt_opened_at >= self.prompt_timeout * 1000:
                self.prompt_opened_at = None
                logger.info("Inactivity prompt dismissed, timer stays paused")
                if self.on_dismiss:
                    self.on_dismiss()
                return DISMISSED
            return None

        if not self.timer.is_running:
            # the countdown only runs while timing
            self.last_activity = now
            return None

        if self.idle_source is not None:
            self.last_activity = max(self.last_activity, now - self.idle_source() * 1000)

        if now - self.last_activity >= self.idle_timeout * 1000:
            self.timer.stop()
            self.prompt_opened_at = now
            logger.info(f"No activity for {self.idle_timeout}s, timer paused")
            if self.on_idle:
                self.on_idle()
            return IDLE

        return None

    def resume(self) -> None:
        """Close the prompt and restart the timer."""
        self.prompt_opened_at = None
        self.timer.start()
        self.last_activity = self.timer.clock()
