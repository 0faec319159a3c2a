"""
Tests for concurrent feed aggregation.
"""

import unittest

from podplayer.aggregator import FeedAggregator
from podplayer.config import FAILED_FEED_DESCRIPTION
from podplayer.models import Feed, FeedSource

from tests.utils import StubFetcher

SOURCES = [
    FeedSource("One", "http://one.test/rss"),
    FeedSource("Two", "http://two.test/rss"),
    FeedSource("Three", "http://three.test/rss"),
]


class TestFeedAggregator(unittest.IsolatedAsyncioTestCase):
    """Test suite for FeedAggregator."""

    async def test_partial_failure_keeps_order(self) -> None:
        """Test partial failure keeps order."""
        fetcher = StubFetcher(failing=["http://two.test/rss"])
        aggregator = FeedAggregator(SOURCES, fetcher=fetcher)

        feeds = await aggregator.load_all()

        self.assertEqual(len(feeds), 3)
        self.assertEqual(
            [feed.url for feed in feeds], [source.url for source in SOURCES]
        )
        self.assertEqual(feeds[0].title, "One")
        self.assertEqual(len(feeds[0].episodes), 2)

        placeholder = feeds[1]
        self.assertTrue(placeholder.is_placeholder)
        self.assertEqual(placeholder.title, "Failed to load: http://two.test/rss")
        self.assertEqual(placeholder.description, FAILED_FEED_DESCRIPTION)
        self.assertEqual(placeholder.episodes, [])

        self.assertEqual(feeds[2].title, "Three")
        self.assertTrue(aggregator.has_errors)
        self.assertEqual(
            aggregator.errors, ["Failed to fetch RSS feed: HTTP 500"]
        )
        self.assertEqual(aggregator.episodes_count, 4)
        self.assertFalse(aggregator.is_loading)

    async def test_unexpected_exception_becomes_placeholder(self) -> None:
        """Test unexpected exception becomes placeholder."""
        def fetcher(url: str) -> Feed:
            raise RuntimeError("boom")

        aggregator = FeedAggregator(SOURCES[:1], fetcher=fetcher)

        feeds = await aggregator.load_all()

        self.assertEqual(len(feeds), 1)
        self.assertTrue(feeds[0].is_placeholder)
        self.assertEqual(aggregator.errors, ["Unexpected error: boom"])

    async def test_all_succeed(self) -> None:
        """Test all succeed."""
        aggregator = FeedAggregator(SOURCES, fetcher=StubFetcher(failing=[]))

        await aggregator.load_all()

        self.assertFalse(aggregator.has_errors)
        self.assertEqual(len(aggregator.all_episodes()), 6)

    async def test_explicit_urls(self) -> None:
        """Test explicit URLs."""
        fetcher = StubFetcher(failing=[])
        aggregator = FeedAggregator(SOURCES, fetcher=fetcher)

        feeds = await aggregator.load_all(["http://three.test/rss"])

        self.assertEqual(len(feeds), 1)
        self.assertEqual(fetcher.calls, ["http://three.test/rss"])

    async def test_retry_reuses_last_urls(self) -> None:
        """Test retry reuses last URLs."""
        fetcher = StubFetcher(failing=["http://two.test/rss"])
        aggregator = FeedAggregator(SOURCES, fetcher=fetcher)
        await aggregator.load_all()

        fetcher.failing.clear()
        feeds = await aggregator.retry()

        self.assertEqual(len(feeds), 3)
        self.assertFalse(aggregator.has_errors)
        self.assertEqual(len(fetcher.calls), 6)
        self.assertIs(aggregator.feeds, feeds)

    async def test_empty_sources(self) -> None:
        """Test empty sources."""
        aggregator = FeedAggregator([], fetcher=StubFetcher(failing=[]))

        self.assertEqual(await aggregator.load_all(), [])
        self.assertEqual(aggregator.all_episodes(), [])


if __name__ == "__main__":
    unittest.main()
