"""
Progress-save scheduling.

The timer is active only while an episode is actually playing. It is
started for one episode id and cancelled on pause, episode switch, end
and error, so a save can never land under the wrong episode.
"""

import logging
import time
from typing import Callable, Optional

from .config import PROGRESS_SAVE_INTERVAL

logger = logging.getLogger(__name__)


class ProgressSaveTimer:
    """Tracks when the next periodic progress save is due."""

    def __init__(
        self,
        interval: float = PROGRESS_SAVE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            interval: Seconds of active playback between saves
            clock: Monotonic time source, injectable for tests
        """
        self.interval = interval
        self._clock = clock
        self._episode_id: Optional[str] = None
        self._last_save: Optional[float] = None

    @property
    def episode_id(self) -> Optional[str]:
        """Episode the running timer was started for."""
        return self._episode_id

    @property
    def is_active(self) -> bool:
        return self._episode_id is not None

    def start(self, episode_id: str) -> None:
        """Start (or restart) the timer for episode_id."""
        if self._episode_id != episode_id:
            logger.debug("Progress timer started for %s", episode_id)
        self._episode_id = episode_id
        self._last_save = self._clock()

    def cancel(self) -> None:
        """Stop the timer; nothing is due until the next start."""
        if self._episode_id is not None:
            logger.debug("Progress timer cancelled for %s", self._episode_id)
        self._episode_id = None
        self._last_save = None

    def is_due(self) -> bool:
        """True when the interval has elapsed since the last save."""
        if self._episode_id is None or self._last_save is None:
            return False
        return self._clock() - self._last_save >= self.interval

    def remaining(self) -> Optional[float]:
        """Seconds until the next save, or None when inactive."""
        if self._last_save is None:
            return None
        return max(0.0, self.interval - (self._clock() - self._last_save))

    def mark_saved(self) -> None:
        """Restart the interval after a save."""
        if self._episode_id is not None:
            self._last_save = self._clock()
