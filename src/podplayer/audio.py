"""
Audio output used by the session core.

The session owns exactly one output. ``FFplayOutput`` plays through an
external ``ffplay`` process; ``NullOutput`` keeps the transport bookkeeping
without producing sound (list-only runs and tests).
"""

import logging
import subprocess
import time
from enum import Enum
from typing import Callable, List, Optional, Protocol

from .errors import PlaybackError

logger = logging.getLogger(__name__)


class OutputStatus(Enum):
    """What the output is doing right now."""

    STOPPED = "stopped"
    PAUSED = "paused"
    PLAYING = "playing"
    ENDED = "ended"
    FAILED = "failed"


class AudioOutput(Protocol):
    """Single audio transport driven by the session core."""

    def load(self, url: str, start_at: float = 0.0) -> None:
        """Relinquish any current source and load url, paused at start_at."""
        ...  # pylint: disable=unnecessary-ellipsis

    def play(self) -> None:
        """Start or continue playback. Raises PlaybackError."""
        ...  # pylint: disable=unnecessary-ellipsis

    def pause(self) -> None:
        """Pause, keeping the position."""
        ...  # pylint: disable=unnecessary-ellipsis

    def stop(self) -> None:
        """Stop and unload the source."""
        ...  # pylint: disable=unnecessary-ellipsis

    def seek(self, seconds: float) -> None:
        """Move the playhead."""
        ...  # pylint: disable=unnecessary-ellipsis

    def set_volume(self, volume: float, muted: bool) -> None:
        """Apply volume in [0, 1] and mute state."""
        ...  # pylint: disable=unnecessary-ellipsis

    def position(self) -> float:
        """Current playhead in seconds."""
        ...  # pylint: disable=unnecessary-ellipsis

    def duration(self) -> Optional[float]:
        """Source duration once known, None before a source is loaded."""
        ...  # pylint: disable=unnecessary-ellipsis

    def poll(self) -> OutputStatus:
        """Report current status, detecting end of stream or failure."""
        ...  # pylint: disable=unnecessary-ellipsis

    @property
    def last_error(self) -> Optional[PlaybackError]:
        """Error behind the most recent FAILED status."""
        ...  # pylint: disable=unnecessary-ellipsis


class NullOutput:
    """Silent output that only tracks transport state."""

    def __init__(self) -> None:
        self.url: Optional[str] = None
        self.volume = 1.0
        self.muted = False
        self._position = 0.0
        self._status = OutputStatus.STOPPED

    def load(self, url: str, start_at: float = 0.0) -> None:
        self.url = url
        self._position = start_at
        self._status = OutputStatus.PAUSED

    def play(self) -> None:
        if not self.url:
            raise PlaybackError("No audio loaded", PlaybackError.LOAD)
        self._status = OutputStatus.PLAYING

    def pause(self) -> None:
        if self._status == OutputStatus.PLAYING:
            self._status = OutputStatus.PAUSED

    def stop(self) -> None:
        self.url = None
        self._position = 0.0
        self._status = OutputStatus.STOPPED

    def seek(self, seconds: float) -> None:
        self._position = seconds

    def set_volume(self, volume: float, muted: bool) -> None:
        self.volume = volume
        self.muted = muted

    def position(self) -> float:
        return self._position

    def duration(self) -> Optional[float]:
        return 0.0 if self.url else None

    def poll(self) -> OutputStatus:
        return self._status

    @property
    def last_error(self) -> Optional[PlaybackError]:
        return None


class FFplayOutput:
    """Plays audio through an ``ffplay`` subprocess.

    ffplay offers no control channel, so pausing stops the process and
    resuming starts a new one at the remembered offset. Position is
    estimated from a monotonic clock while the process runs.
    """

    def __init__(
        self,
        binary: str = "ffplay",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.binary = binary
        self._clock = clock
        self._process: Optional[subprocess.Popen] = None
        self._url: Optional[str] = None
        self._offset = 0.0
        self._started_at: Optional[float] = None
        self._volume = 1.0
        self._muted = False
        self._status = OutputStatus.STOPPED
        self._last_error: Optional[PlaybackError] = None

    @property
    def is_active(self) -> bool:
        """True while a player process exists."""
        return self._process is not None

    @property
    def last_error(self) -> Optional[PlaybackError]:
        return self._last_error

    def load(self, url: str, start_at: float = 0.0) -> None:
        """Relinquish the current process and remember the new source."""
        self._terminate()
        self._url = url
        self._offset = max(0.0, start_at)
        self._last_error = None
        self._status = OutputStatus.PAUSED
        logger.debug("Loaded %s at %.1fs", url, self._offset)

    def play(self) -> None:
        """Start the player process at the current offset."""
        if not self._url:
            raise PlaybackError("Episode has no audio URL", PlaybackError.LOAD)
        if self._status == OutputStatus.PLAYING and self._process is not None:
            return
        self._spawn()

    def pause(self) -> None:
        """Stop the process, keeping the estimated position."""
        if self._status != OutputStatus.PLAYING:
            return
        self._offset = self.position()
        self._terminate()
        self._status = OutputStatus.PAUSED

    def stop(self) -> None:
        """Stop playback and forget the source."""
        self._terminate()
        self._url = None
        self._offset = 0.0
        self._status = OutputStatus.STOPPED

    def seek(self, seconds: float) -> None:
        """Move the offset, restarting the process if playing."""
        self._offset = max(0.0, seconds)
        if self._status == OutputStatus.PLAYING:
            self._terminate()
            self._spawn()

    def set_volume(self, volume: float, muted: bool) -> None:
        """Store volume; a running process is restarted to apply it."""
        changed = (volume, muted) != (self._volume, self._muted)
        self._volume = volume
        self._muted = muted
        if changed and self._status == OutputStatus.PLAYING:
            self._offset = self.position()
            self._terminate()
            self._spawn()

    def position(self) -> float:
        """Estimated playhead in seconds."""
        if self._status == OutputStatus.PLAYING and self._started_at is not None:
            return self._offset + (self._clock() - self._started_at)
        return self._offset

    def duration(self) -> Optional[float]:
        """ffplay does not report duration; 0.0 means unknown."""
        return 0.0 if self._url else None

    def poll(self) -> OutputStatus:
        """Detect process exit: status 0 is end of stream, else failure."""
        if self._status != OutputStatus.PLAYING or self._process is None:
            return self._status

        return_code = self._process.poll()
        if return_code is None:
            return self._status

        self._offset = self.position()
        self._process = None
        self._started_at = None
        if return_code == 0:
            logger.info("Playback reached end of %s", self._url)
            self._status = OutputStatus.ENDED
        else:
            logger.error(
                "Audio player exited with status %d for %s",
                return_code,
                self._url,
            )
            self._last_error = PlaybackError(
                "Failed to load audio", PlaybackError.LOAD
            )
            self._status = OutputStatus.FAILED
        return self._status

    def _command(self) -> List[str]:
        level = 0 if self._muted else int(round(self._volume * 100))
        return [
            self.binary,
            "-nodisp",
            "-autoexit",
            "-loglevel",
            "error",
            "-ss",
            f"{self._offset:.2f}",
            "-volume",
            str(level),
            self._url or "",
        ]

    def _spawn(self) -> None:
        try:
            self._process = subprocess.Popen(  # pylint: disable=consider-using-with
                self._command(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            self._process = None
            self._status = OutputStatus.FAILED
            self._last_error = PlaybackError.from_exception(e)
            logger.error("Could not start %s: %s", self.binary, e)
            raise self._last_error from e
        self._started_at = self._clock()
        self._status = OutputStatus.PLAYING

    def _terminate(self) -> None:
        process = self._process
        self._process = None
        self._started_at = None
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            logger.warning("Audio player did not exit, killing it")
            process.kill()
