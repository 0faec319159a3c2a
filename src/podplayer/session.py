"""
Session state core: the playback state machine.

The session owns the current episode reference (by id), transport state,
playhead, volume and mute, per-episode resume progress and hidden episodes.
It reconciles this state with the persisted snapshot at startup and with
every freshly aggregated feed set, and it is the only owner of the audio
output.

States::

    IDLE -> LOADING -> READY_PAUSED <-> READY_PLAYING -> ENDED -> (next | IDLE)
                 \\________________________________/
                                 v
                              ERRORED

Startup restore happens in two phases. ``restore`` runs before any feed is
known and only restores scalar fields, keeping the saved episode id as a
pending token. ``reconcile`` runs after aggregation and resolves that token
against the new episodes; a miss leaves the session idle.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from .audio import AudioOutput, NullOutput, OutputStatus
from .config import DEFAULT_VOLUME, PROGRESS_SAVE_INTERVAL
from .errors import PlaybackError
from .models import Episode, Feed, Snapshot, TransportState
from .navigation import flatten_feeds, next_episode, previous_episode, sort_episodes
from .progress import ProgressSaveTimer
from .repository import SessionRepository
from .validators import (
    clamp_volume,
    is_playable,
    is_valid_episode_id,
    is_valid_progress_data,
    is_valid_time,
    is_valid_volume,
)


class SessionCore:  # pylint: disable=too-many-instance-attributes,too-many-public-methods
    """Owns playback session state and persists it after each mutation."""

    def __init__(
        self,
        repository: Optional[SessionRepository] = None,
        output: Optional[AudioOutput] = None,
        progress_interval: float = PROGRESS_SAVE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        auto_advance: bool = True,
    ):
        """
        Args:
            repository: Snapshot persistence; None keeps the session in memory
            output: Audio transport; defaults to a silent NullOutput
            progress_interval: Seconds of playback between progress saves
            clock: Monotonic time source for the progress timer
            auto_advance: Start the next episode when one ends
        """
        self.logger = logging.getLogger(__name__)
        self.repository = repository
        self.output: AudioOutput = output if output is not None else NullOutput()
        self.progress_timer = ProgressSaveTimer(progress_interval, clock)
        self.auto_advance = auto_advance

        self.current_episode_id: Optional[str] = None
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0
        self.volume = DEFAULT_VOLUME
        self.is_muted = False
        self.episode_progress: Dict[str, float] = {}
        self.hidden_episode_ids: Set[str] = set()
        self.state = TransportState.IDLE
        self.error: Optional[PlaybackError] = None

        self.pending_restore_id: Optional[str] = None
        self._pending_restore_time = 0.0

        self._episodes_by_id: Dict[str, Episode] = {}
        self._ordered: List[Episode] = []

    # Episode resolution

    @property
    def current_episode(self) -> Optional[Episode]:
        """The live Episode for current_episode_id from the latest feed set."""
        if self.current_episode_id is None:
            return None
        return self._episodes_by_id.get(self.current_episode_id)

    @property
    def episodes(self) -> List[Episode]:
        """All known episodes, newest first."""
        return list(self._ordered)

    def get_episode(self, episode_id: str) -> Optional[Episode]:
        """Resolve an episode id against the latest feed set."""
        return self._episodes_by_id.get(episode_id)

    # Selection and transport

    def select_episode(self, episode: Optional[Episode]) -> bool:
        """Make episode current and start loading it.

        Unplayable episodes are rejected without any state change. A saved
        resume offset for the episode is applied, otherwise playback starts
        at 0.
        """
        if episode is None or not is_playable(episode):
            self.logger.warning(
                "Invalid episode for playback: %s",
                getattr(episode, "id", None),
            )
            return False

        self._relinquish()

        if episode.id not in self._episodes_by_id:
            self._episodes_by_id[episode.id] = episode
            self._ordered = sort_episodes(self._ordered + [episode])

        episode.is_played = True
        self.current_episode_id = episode.id
        saved = self.episode_progress.get(episode.id)
        self.current_time = float(saved) if is_valid_time(saved) else 0.0
        self.duration = float(episode.duration_seconds)
        self.is_playing = True
        self.error = None

        self.logger.info(
            "Playing episode '%s' from %.1fs", episode.title, self.current_time
        )
        self._load_current()
        self._persist()
        return True

    def select_episode_by_id(self, episode_id: str) -> bool:
        """Select an episode by id from the latest feed set."""
        episode = self._episodes_by_id.get(episode_id)
        if episode is None:
            self.logger.warning("Unknown episode id: %s", episode_id)
            return False
        return self.select_episode(episode)

    def select_next(self) -> Optional[Episode]:
        """Select the next playable, non-hidden episode."""
        upcoming = next_episode(
            self._ordered, self.current_episode_id, self.hidden_episode_ids
        )
        if upcoming is not None and self.select_episode(upcoming):
            return upcoming
        return None

    def select_previous(self) -> Optional[Episode]:
        """Select the previous playable, non-hidden episode."""
        earlier = previous_episode(
            self._ordered, self.current_episode_id, self.hidden_episode_ids
        )
        if earlier is not None and self.select_episode(earlier):
            return earlier
        return None

    def on_metadata_loaded(self, duration: Optional[float] = None) -> None:
        """Audio metadata is known; move from LOADING to a ready state."""
        if self.state != TransportState.LOADING:
            self.logger.debug("Metadata ignored in state %s", self.state.value)
            return

        episode = self.current_episode
        if is_valid_time(duration) and duration:
            self.duration = float(duration)  # type: ignore[arg-type]
        elif episode is not None:
            self.duration = float(episode.duration_seconds)

        if self.is_playing:
            self._start_playback()
        else:
            self.state = TransportState.READY_PAUSED

    def pause(self) -> bool:
        """Stop playing and save progress for the current episode."""
        if not self.is_playing:
            return False

        self.is_playing = False
        self.progress_timer.cancel()
        if self.state == TransportState.READY_PLAYING:
            self.output.pause()
            self.state = TransportState.READY_PAUSED

        if self.current_episode_id is not None and self.current_time > 0:
            self._store_progress(self.current_episode_id, self.current_time)
        self._persist()
        return True

    def resume(self) -> bool:
        """Resume playback; only valid once the episode is ready and paused."""
        if self.state != TransportState.READY_PAUSED:
            self.logger.info("Cannot resume in state %s", self.state.value)
            return False

        self.is_playing = True
        return self._start_playback()

    def toggle_play(self) -> bool:
        """Pause when playing, otherwise resume. Returns is_playing."""
        if self.is_playing:
            self.pause()
        else:
            self.resume()
        return self.is_playing

    def seek(self, seconds: float) -> bool:
        """Move the playhead of a ready episode and record the new position."""
        if not is_valid_time(seconds):
            self.logger.warning("Invalid seek time: %r", seconds)
            return False
        if not self.state.is_ready or self.current_episode_id is None:
            self.logger.info("Cannot seek in state %s", self.state.value)
            return False

        target = float(seconds)
        if self.duration > 0:
            target = min(target, self.duration)

        self.output.seek(target)
        self.current_time = target
        self.record_progress(self.current_episode_id, target)
        self.progress_timer.mark_saved()
        return True

    def update_current_time(self, seconds: float) -> bool:
        """Set the playhead from a trusted numeric source."""
        if not is_valid_time(seconds):
            self.logger.debug("Invalid time value: %r", seconds)
            return False
        self.current_time = float(seconds)
        return True

    def record_progress(self, episode_id: str, seconds: float) -> bool:
        """Upsert the resume offset for episode_id and persist it."""
        if not is_valid_progress_data(episode_id, seconds):
            self.logger.warning(
                "Invalid progress data: %r at %r", episode_id, seconds
            )
            return False
        self._store_progress(episode_id, seconds)
        self._persist()
        return True

    def on_ended(self) -> Optional[Episode]:
        """Handle end of stream: reset progress, then advance or go idle.

        Returns the episode auto-advanced to, if any.
        """
        episode_id = self.current_episode_id
        if episode_id is None:
            return None

        self.progress_timer.cancel()
        self.is_playing = False
        self.state = TransportState.ENDED
        self.episode_progress[episode_id] = 0.0
        self.current_time = 0.0
        self.logger.info("Episode finished: %s", episode_id)

        if self.auto_advance:
            upcoming = self.select_next()
            if upcoming is not None:
                return upcoming

        self.reset()
        self._persist()
        return None

    def on_playback_error(
        self,
        episode_id: Optional[str],
        error: Union[str, BaseException, None] = None,
    ) -> bool:
        """Record a playback failure for episode_id.

        Errors reported for anything other than the current episode come
        from an aborted load and are ignored.
        """
        if episode_id is None or episode_id != self.current_episode_id:
            self.logger.debug("Ignoring error for stale episode %s", episode_id)
            return False
        if self.state == TransportState.IDLE:
            return False

        if isinstance(error, BaseException):
            playback_error = PlaybackError.from_exception(error, episode_id)
        else:
            playback_error = PlaybackError(
                error or "Failed to load audio", PlaybackError.LOAD, episode_id
            )
        self._fail(playback_error)
        return True

    def retry_playback(self) -> bool:
        """Reload the current episode after a playback error."""
        if self.state != TransportState.ERRORED:
            return False
        return self.select_episode(self.current_episode)

    def set_volume(self, volume: float) -> float:
        """Clamp volume into [0, 1] and apply it. Never rejects."""
        clamped = clamp_volume(volume)
        if not is_valid_volume(volume):
            self.logger.debug("Volume %r clamped to %.2f", volume, clamped)
        self.volume = clamped
        self.output.set_volume(self.volume, self.is_muted)
        return self.volume

    def toggle_mute(self) -> bool:
        """Flip mute; the numeric volume is kept for unmuting."""
        self.is_muted = not self.is_muted
        self.output.set_volume(self.volume, self.is_muted)
        return self.is_muted

    def hide_episode(self, episode_id: str) -> bool:
        """Hide an episode from default views and navigation."""
        if not is_valid_episode_id(episode_id):
            return False
        self.hidden_episode_ids.add(episode_id)
        self._persist()
        return True

    def show_episode(self, episode_id: str) -> bool:
        """Undo hide_episode."""
        if episode_id not in self.hidden_episode_ids:
            return False
        self.hidden_episode_ids.discard(episode_id)
        self._persist()
        return True

    def is_hidden(self, episode_id: str) -> bool:
        return episode_id in self.hidden_episode_ids

    def reset(self) -> None:
        """Unload the current episode and return to IDLE."""
        self.progress_timer.cancel()
        self.output.stop()
        self.current_episode_id = None
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0
        self.error = None
        self.state = TransportState.IDLE

    def tick(self) -> None:
        """One cooperative step, called periodically by the event loop."""
        if self.state == TransportState.LOADING:
            duration = self.output.duration()
            if duration is not None:
                self.on_metadata_loaded(duration)
            return

        if self.state != TransportState.READY_PLAYING:
            return

        status = self.output.poll()
        if status == OutputStatus.ENDED:
            self.on_ended()
            return
        if status == OutputStatus.FAILED:
            self.on_playback_error(
                self.current_episode_id,
                self.output.last_error or PlaybackError("Failed to play audio"),
            )
            return

        self.update_current_time(self.output.position())
        self.save_progress_if_due()

    def save_progress_if_due(self) -> bool:
        """Periodic progress save, keyed by the id current at fire time."""
        if not self.progress_timer.is_due():
            return False

        episode_id = self.current_episode_id
        if episode_id is None or episode_id != self.progress_timer.episode_id:
            self.progress_timer.cancel()
            return False

        if self.current_time > 0:
            self.record_progress(episode_id, self.current_time)
        self.progress_timer.mark_saved()
        return True

    # Persistence and reconciliation

    def snapshot(self) -> Snapshot:
        """Current durable state.

        While a restore is pending the saved episode is kept so an early
        save cannot erase it.
        """
        if self.current_episode_id is None and self.pending_restore_id:
            episode_id: Optional[str] = self.pending_restore_id
            current_time = self._pending_restore_time
        else:
            episode_id = self.current_episode_id
            current_time = self.current_time

        return Snapshot(
            current_episode_id=episode_id,
            current_time=current_time,
            episode_progress=dict(self.episode_progress),
            hidden_episode_ids=sorted(self.hidden_episode_ids),
        )

    def restore(self, snapshot: Optional[Snapshot] = None) -> bool:
        """Phase 1: overlay persisted scalar state before feeds are known.

        The saved episode id cannot be resolved yet, so it is kept as
        ``pending_restore_id`` for ``reconcile``.
        """
        if snapshot is None and self.repository is not None:
            snapshot = self.repository.load()
        if snapshot is None:
            self.logger.info("No saved session found")
            return False

        if is_valid_time(snapshot.current_time):
            self.current_time = float(snapshot.current_time)
        self.episode_progress = {
            episode_id: float(seconds)
            for episode_id, seconds in snapshot.episode_progress.items()
            if is_valid_progress_data(episode_id, seconds)
        }
        self.hidden_episode_ids = {
            episode_id
            for episode_id in snapshot.hidden_episode_ids
            if is_valid_episode_id(episode_id)
        }

        if is_valid_episode_id(snapshot.current_episode_id):
            self.pending_restore_id = snapshot.current_episode_id
            self._pending_restore_time = self.current_time
        else:
            self.pending_restore_id = None

        self.logger.info(
            "Restored session: %d progress entries, pending episode %s",
            len(self.episode_progress),
            self.pending_restore_id,
        )
        return True

    def reconcile(self, feeds: Iterable[Feed]) -> Optional[Episode]:
        """Phase 2: re-resolve episode identity against new feed data.

        Runs after every aggregation pass. The live current episode is
        looked up again by id; a pending restore token is resolved once and
        then discarded. Returns the resolved current episode.
        """
        ordered = sort_episodes(flatten_feeds(feeds))
        episodes_by_id: Dict[str, Episode] = {}
        for episode in ordered:
            episodes_by_id.setdefault(episode.id, episode)
            if episode.id in self.episode_progress:
                episode.is_played = True
        self._ordered = ordered
        self._episodes_by_id = episodes_by_id

        if self.current_episode_id is not None:
            live = episodes_by_id.get(self.current_episode_id)
            if live is None or not is_playable(live):
                self.logger.info(
                    "Current episode %s is gone after refresh",
                    self.current_episode_id,
                )
                self.reset()
                self._persist()
            else:
                live.is_played = True

        if self.pending_restore_id is not None:
            self._resolve_pending_restore(episodes_by_id)

        return self.current_episode

    def _resolve_pending_restore(self, episodes_by_id: Dict[str, Episode]) -> None:
        token = self.pending_restore_id
        restore_time = self._pending_restore_time
        self.pending_restore_id = None
        self._pending_restore_time = 0.0

        if self.current_episode_id is not None:
            self.logger.debug(
                "Episode selected before restore; dropping %s", token
            )
            return

        episode = episodes_by_id.get(token) if token else None
        if episode is None or not is_playable(episode):
            self.logger.info(
                "Saved episode %s not found in feeds; staying idle", token
            )
            self.current_time = 0.0
            self._persist()
            return

        episode.is_played = True
        self.current_episode_id = episode.id
        self.current_time = restore_time
        self.duration = float(episode.duration_seconds)
        self.is_playing = False
        self.error = None
        self.logger.info(
            "Restored episode '%s' at %.1fs", episode.title, restore_time
        )
        self._load_current()

    # Internals

    def _relinquish(self) -> None:
        """Release the output and save progress before switching episodes."""
        self.progress_timer.cancel()
        previous_id = self.current_episode_id
        if (
            previous_id is not None
            and self.state.is_ready
            and self.current_time > 0
        ):
            self._store_progress(previous_id, self.current_time)
        self.output.stop()

    def _load_current(self) -> None:
        episode = self.current_episode
        if episode is None:
            return
        self.state = TransportState.LOADING
        self.output.set_volume(self.volume, self.is_muted)
        try:
            self.output.load(episode.audio_url, self.current_time)
        except PlaybackError as e:
            self._fail(e)

    def _start_playback(self) -> bool:
        episode_id = self.current_episode_id
        if episode_id is None:
            return False
        try:
            self.output.play()
        except PlaybackError as e:
            self._fail(e)
            return False
        self.state = TransportState.READY_PLAYING
        self.progress_timer.start(episode_id)
        return True

    def _fail(self, error: PlaybackError) -> None:
        if error.episode_id is None:
            error.episode_id = self.current_episode_id
        self.logger.error(
            "Playback error (%s) for %s: %s",
            error.kind,
            self.current_episode_id,
            error.message,
        )
        self.progress_timer.cancel()
        self.error = error
        self.is_playing = False
        self.state = TransportState.ERRORED

    def _store_progress(self, episode_id: str, seconds: float) -> None:
        if is_valid_progress_data(episode_id, seconds):
            self.episode_progress[episode_id] = float(seconds)

    def _persist(self) -> None:
        if self.repository is None:
            return
        self.repository.save(self.snapshot())
