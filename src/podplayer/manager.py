"""
Main orchestration class: the command surface used by the front end.
"""

import logging
from typing import List, Optional

from .aggregator import FeedAggregator
from .models import Episode, Feed, TransportState
from .session import SessionCore
from .views import EpisodePager


class PlayerManager:
    """
    Wires the session core to feed aggregation and exposes the commands
    the presentation layer may issue. Holds no durable state of its own.
    """

    def __init__(
        self,
        session: SessionCore,
        aggregator: FeedAggregator,
        pager: Optional[EpisodePager] = None,
    ):
        """Initialize with dependencies."""
        self.logger = logging.getLogger(__name__)
        self.session = session
        self.aggregator = aggregator
        self.pager = pager or EpisodePager()
        self.started = False

    @property
    def feeds(self) -> List[Feed]:
        return self.aggregator.feeds

    async def start(self) -> List[Feed]:
        """Restore the saved session, load feeds, then reconcile.

        The saved episode is only resolved after aggregation has finished.
        """
        self.session.restore()
        feeds = await self.aggregator.load_all()
        self._reconcile(feeds)
        self.started = True
        return feeds

    async def retry_feed_load(self) -> List[Feed]:
        """Reload every feed and reconcile the session against the result."""
        feeds = await self.aggregator.retry()
        self._reconcile(feeds)
        return feeds

    def list_items(self) -> List[Episode]:
        """Episodes shown in the list view, newest first."""
        return self.pager.visible(
            self.session.episodes, self.session.hidden_episode_ids
        )

    def hidden_items(self) -> List[Episode]:
        """Hidden episodes, newest first."""
        return [
            episode
            for episode in self.session.episodes
            if self.session.is_hidden(episode.id)
        ]

    def page_items(self) -> List[Episode]:
        return self.pager.page_items(self.list_items())

    def episode_at(self, number: int) -> Optional[Episode]:
        """Episode by its 1-based number in the list view."""
        items = self.list_items()
        if 1 <= number <= len(items):
            return items[number - 1]
        return None

    def select_episode(self, episode_id: str) -> bool:
        return self.session.select_episode_by_id(episode_id)

    def play(self) -> bool:
        """Resume, retry after an error, or start the newest episode."""
        state = self.session.state
        if state == TransportState.ERRORED:
            return self.session.retry_playback()
        if state == TransportState.IDLE:
            return self.session.select_next() is not None
        return self.session.resume()

    def pause(self) -> bool:
        return self.session.pause()

    def seek(self, seconds: float) -> bool:
        return self.session.seek(seconds)

    def set_volume(self, volume: float) -> float:
        return self.session.set_volume(volume)

    def toggle_mute(self) -> bool:
        return self.session.toggle_mute()

    def hide_episode(self, episode_id: str) -> bool:
        hidden = self.session.hide_episode(episode_id)
        self.pager.clamp(len(self.list_items()))
        return hidden

    def show_episode(self, episode_id: str) -> bool:
        return self.session.show_episode(episode_id)

    def next_episode(self) -> Optional[Episode]:
        return self.session.select_next()

    def previous_episode(self) -> Optional[Episode]:
        return self.session.select_previous()

    def next_page(self) -> bool:
        return self.pager.next_page(len(self.list_items()))

    def previous_page(self) -> bool:
        return self.pager.previous_page()

    def tick(self) -> None:
        self.session.tick()

    def shutdown(self) -> None:
        """Save progress and release the audio output."""
        self.logger.info("Shutting down player")
        self.session.pause()
        self.session.output.stop()

    def _reconcile(self, feeds: List[Feed]) -> None:
        episode = self.session.reconcile(feeds)
        self.pager.clamp(len(self.list_items()))
        if episode is not None:
            self.logger.info("Current episode: %s", episode.title)
