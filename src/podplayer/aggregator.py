"""
Concurrent loading of the configured feeds.

Each feed is fetched independently; the blocking fetcher runs in a worker
thread per feed and the batch is awaited as a whole. A failed feed becomes
an empty placeholder so partial success is still success.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from .config import FAILED_FEED_DESCRIPTION, PODCAST_FEEDS
from .downloader import fetch_feed
from .errors import FeedError
from .models import Episode, Feed, FeedSource
from .navigation import flatten_feeds, sort_episodes

FeedFetcher = Callable[[str], Feed]


class FeedAggregator:
    """Loads, merges and reloads the configured feeds."""

    def __init__(
        self,
        sources: Optional[Sequence[FeedSource]] = None,
        fetcher: FeedFetcher = fetch_feed,
        show_progress: bool = False,
    ):
        """
        Args:
            sources: Feeds to aggregate; defaults to PODCAST_FEEDS
            fetcher: Blocking url -> Feed callable raising on failure
            show_progress: Show a progress bar while feeds settle
        """
        self.logger = logging.getLogger(__name__)
        self.sources = list(PODCAST_FEEDS if sources is None else sources)
        self.fetcher = fetcher
        self.show_progress = show_progress
        self.feeds: List[Feed] = []
        self.is_loading = False
        self._last_urls: List[str] = [source.url for source in self.sources]

    @property
    def errors(self) -> List[str]:
        """Error messages of feeds that failed in the last pass."""
        return [feed.error for feed in self.feeds if feed.error]

    @property
    def has_errors(self) -> bool:
        return any(feed.is_placeholder for feed in self.feeds)

    @property
    def episodes_count(self) -> int:
        return sum(len(feed.episodes) for feed in self.feeds)

    def all_episodes(self) -> List[Episode]:
        """Every episode of every loaded feed, newest first."""
        return sort_episodes(flatten_feeds(self.feeds))

    async def load_all(self, urls: Optional[Sequence[str]] = None) -> List[Feed]:
        """Fetch every URL concurrently; one Feed per URL, in input order.

        Never raises for a single feed's failure.
        """
        if urls is not None:
            self._last_urls = list(urls)
        target_urls = list(self._last_urls)

        self.logger.info("Loading %d feeds", len(target_urls))
        self.is_loading = True
        try:
            with tqdm(
                total=len(target_urls),
                unit="feed",
                desc="Loading feeds",
                disable=not self.show_progress,
                leave=False,
            ) as progress_bar:
                results = await asyncio.gather(
                    *(self._load_one(url, progress_bar) for url in target_urls),
                    return_exceptions=True,
                )
        finally:
            self.is_loading = False

        feeds: List[Feed] = []
        for url, result in zip(target_urls, results):
            if isinstance(result, Feed):
                feeds.append(result)
            else:
                feeds.append(self._placeholder(url, result))

        self.feeds = feeds
        self.logger.info(
            "Loaded %d feeds (%d failed) with %d episodes",
            len(feeds),
            len(self.errors),
            self.episodes_count,
        )
        return feeds

    async def retry(self) -> List[Feed]:
        """Re-run the last aggregation."""
        self.logger.info("Retrying feed load")
        return await self.load_all()

    async def _load_one(self, url: str, progress_bar: tqdm) -> Feed:
        try:
            return await asyncio.to_thread(self.fetcher, url)
        finally:
            progress_bar.update(1)

    def _placeholder(self, url: str, error: BaseException) -> Feed:
        if isinstance(error, FeedError):
            message = error.message
        else:
            message = f"Unexpected error: {error}"
        self.logger.error("Failed to fetch feed %s: %s", url, message)
        return Feed.placeholder(url, message, FAILED_FEED_DESCRIPTION)
