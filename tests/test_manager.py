"""
Tests for PlayerManager orchestration.
"""

import unittest
from typing import Dict, List, Optional

from podplayer.aggregator import FeedAggregator
from podplayer.manager import PlayerManager
from podplayer.models import FeedSource, Snapshot, TransportState
from podplayer.views import EpisodePager

from tests.base import PodcastTestBase
from tests.utils import StubFetcher

SOURCES = [
    FeedSource("One", "http://one.test/rss"),
    FeedSource("Two", "http://two.test/rss"),
    FeedSource("Three", "http://three.test/rss"),
]


class ManagerTestBase(PodcastTestBase, unittest.IsolatedAsyncioTestCase):
    """Manager over a stub fetcher; episodes tie by date across feeds."""

    def setUp(self) -> None:
        super().setUp()
        self.fetcher = StubFetcher()
        self.manager = self.create_manager()

    def create_manager(self, per_page: int = 10) -> PlayerManager:
        aggregator = FeedAggregator(SOURCES, fetcher=self.fetcher)
        return PlayerManager(
            self.create_session(), aggregator, EpisodePager(per_page)
        )

    def ids(self, episodes) -> List[str]:
        return [episode.id for episode in episodes]


class TestStart(ManagerTestBase):
    """Startup sequencing."""

    async def test_lists_all_episodes_newest_first(self) -> None:
        """Test lists all episodes newest first."""
        await self.manager.start()

        self.assertTrue(self.manager.started)
        self.assertEqual(
            self.ids(self.manager.list_items()),
            ["one-1", "two-1", "three-1", "one-2", "two-2", "three-2"],
        )
        self.assertEqual(self.manager.session.state, TransportState.IDLE)

    async def test_restore_resolves_after_feeds_load(self) -> None:
        """Test restore resolves after feeds load."""
        self.repository.save(
            Snapshot(
                current_episode_id="two-2",
                current_time=42,
                episode_progress={"two-2": 42},
            )
        )
        seen: Dict[str, Optional[str]] = {}

        def observe(url: str) -> None:
            seen["pending"] = self.manager.session.pending_restore_id
            seen["current"] = self.manager.session.current_episode_id

        self.fetcher.on_call = observe

        await self.manager.start()

        self.assertEqual(seen, {"pending": "two-2", "current": None})
        session = self.manager.session
        self.assertEqual(session.current_episode_id, "two-2")
        self.assertEqual(session.current_time, 42.0)
        self.assertFalse(session.is_playing)
        self.assertEqual(self.output.loaded_urls, ["http://two.test/rss/two-2.mp3"])

    async def test_restore_target_in_failed_feed(self) -> None:
        """Test restore target in failed feed."""
        self.repository.save(
            Snapshot(current_episode_id="two-1", current_time=42)
        )
        self.fetcher.failing.add("http://two.test/rss")

        feeds = await self.manager.start()

        self.assertTrue(feeds[1].is_placeholder)
        self.assertEqual(self.manager.session.state, TransportState.IDLE)
        self.assertIsNone(self.manager.session.current_episode_id)
        self.assertEqual(len(self.manager.list_items()), 4)

    async def test_retry_feed_load_re_resolves(self) -> None:
        """Test retry feed load re-resolves the current episode."""
        self.fetcher.failing.add("http://two.test/rss")
        await self.manager.start()
        self.manager.select_episode("one-1")

        feeds = await self.manager.retry_feed_load()

        self.assertFalse(any(feed.is_placeholder for feed in feeds))
        self.assertEqual(len(self.manager.list_items()), 6)
        self.assertIs(
            self.manager.session.current_episode, feeds[0].episodes[0]
        )


class TestCommands(ManagerTestBase):
    """Commands routed to the session."""

    async def asyncSetUp(self) -> None:
        await self.manager.start()

    async def test_play_from_idle_starts_newest(self) -> None:
        """Test play from idle starts newest."""
        self.assertTrue(self.manager.play())

        self.assertEqual(self.manager.session.current_episode_id, "one-1")

    async def test_play_resumes_paused(self) -> None:
        """Test play resumes paused."""
        self.manager.select_episode("two-1")
        self.manager.tick()
        self.manager.pause()

        self.assertTrue(self.manager.play())

        self.assertEqual(
            self.manager.session.state, TransportState.READY_PLAYING
        )

    async def test_play_retries_after_error(self) -> None:
        """Test play retries after error."""
        self.manager.select_episode("two-1")
        self.manager.session.on_playback_error("two-1", "bad audio")

        self.assertTrue(self.manager.play())

        self.assertEqual(self.manager.session.state, TransportState.LOADING)

    async def test_next_and_previous(self) -> None:
        """Test next and previous."""
        self.manager.select_episode("two-1")

        upcoming = self.manager.next_episode()
        assert upcoming is not None
        self.assertEqual(upcoming.id, "three-1")

        earlier = self.manager.previous_episode()
        assert earlier is not None
        self.assertEqual(earlier.id, "two-1")

    async def test_hide_removes_from_list(self) -> None:
        """Test hide removes from list."""
        self.manager.hide_episode("one-1")

        self.assertNotIn("one-1", self.ids(self.manager.list_items()))
        self.manager.pager.show_hidden = True
        self.assertIn("one-1", self.ids(self.manager.list_items()))

    async def test_episode_at(self) -> None:
        """Test episode at."""
        episode = self.manager.episode_at(2)

        assert episode is not None
        self.assertEqual(episode.id, "two-1")
        self.assertIsNone(self.manager.episode_at(0))
        self.assertIsNone(self.manager.episode_at(7))

    async def test_shutdown_saves_progress(self) -> None:
        """Test shutdown saves progress."""
        self.manager.select_episode("one-1")
        self.manager.tick()
        self.manager.seek(30)

        self.manager.shutdown()

        self.assertEqual(self.output.active_sources, 0)
        data = self.read_session_file()
        self.assertEqual(data["currentEpisodeId"], "one-1")
        self.assertEqual(data["episodeProgress"]["one-1"], 30.0)


class TestPaging(ManagerTestBase):
    """Page cursor behaviour."""

    def setUp(self) -> None:
        super().setUp()
        self.manager = self.create_manager(per_page=2)

    async def asyncSetUp(self) -> None:
        await self.manager.start()

    async def test_pages(self) -> None:
        """Test pages."""
        self.assertEqual(self.ids(self.manager.page_items()), ["one-1", "two-1"])

        self.assertTrue(self.manager.next_page())
        self.assertTrue(self.manager.next_page())
        self.assertFalse(self.manager.next_page())
        self.assertEqual(self.ids(self.manager.page_items()), ["two-2", "three-2"])

        self.assertTrue(self.manager.previous_page())
        self.assertEqual(self.manager.pager.page, 2)

    async def test_previous_on_first_page(self) -> None:
        """Test previous on first page."""
        self.assertFalse(self.manager.previous_page())
        self.assertEqual(self.manager.pager.page, 1)

    async def test_hiding_clamps_page(self) -> None:
        """Test hiding clamps page."""
        self.manager.next_page()
        self.manager.next_page()

        self.manager.hide_episode("two-2")
        self.manager.hide_episode("three-2")

        self.assertEqual(self.manager.pager.page, 2)
        self.assertEqual(self.ids(self.manager.page_items()), ["three-1", "one-2"])


if __name__ == "__main__":
    unittest.main()
