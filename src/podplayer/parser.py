"""
RSS parsing and normalization into Feed and Episode records.
"""

import html
import logging
import re
from typing import Any, Optional

import feedparser

from .errors import FeedParseError
from .models import UNKNOWN_FEED_TITLE, UNTITLED_EPISODE, Episode, Feed
from .utils import make_episode_id, parse_duration_to_seconds, parse_published_date

_TAG_RE = re.compile(r"<[^>]+>")


def _plain_text(value: Any) -> str:
    """Strip markup from an HTML fragment."""
    if not value:
        return ""
    text = _TAG_RE.sub(" ", str(value))
    return " ".join(html.unescape(text).split())


def _image_href(image: Any) -> Optional[str]:
    """Extract an image URL from feedparser's image structures."""
    if isinstance(image, dict):
        return image.get("href") or image.get("url") or None
    if isinstance(image, str) and image:
        return image
    return None


def _audio_url(entry: Any) -> str:
    """First enclosure URL of an entry, or an empty string."""
    for enclosure in entry.get("enclosures") or []:
        if not isinstance(enclosure, dict):
            continue
        url = enclosure.get("href") or enclosure.get("url")
        if url:
            return str(url)
    return ""


class PodcastParser:
    """Turns RSS content into a normalized Feed."""

    def __init__(self) -> None:
        """Initialize parser."""
        self.logger = logging.getLogger(__name__)

    def from_content(self, feed_url: str, content: bytes) -> Feed:
        """Parse raw RSS bytes into a Feed.

        Raises FeedParseError only when the content is not a feed at all.
        """
        parsed = feedparser.parse(content)
        channel = parsed.get("feed") or {}
        entries = parsed.get("entries") or []

        if parsed.get("bozo") and not channel.get("title") and not entries:
            reason = parsed.get("bozo_exception") or "not a valid feed"
            self.logger.error("Failed to parse RSS from %s: %s", feed_url, reason)
            raise FeedParseError(feed_url, f"Failed to parse RSS feed: {reason}")

        return self.normalize(parsed, feed_url)

    def normalize(self, parsed: Any, source_url: str) -> Feed:
        """Convert a feedparser result into a Feed.

        A malformed item degrades to defaults; it never fails the feed.
        """
        channel = parsed.get("feed") or {}
        feed_title = channel.get("title") or UNKNOWN_FEED_TITLE
        feed_image = _image_href(channel.get("image"))

        episodes: list[Episode] = []
        for index, entry in enumerate(parsed.get("entries") or []):
            try:
                episode = self._normalize_entry(
                    entry, index, feed_title, source_url, feed_image
                )
            except Exception as e:  # pylint: disable=broad-except
                self.logger.warning(
                    "Malformed item %d in %s: %s", index, source_url, e
                )
                episode = Episode(
                    id=make_episode_id(feed_title, index),
                    title=UNTITLED_EPISODE,
                    description="",
                    audio_url="",
                    duration_seconds=0,
                    published_at=parse_published_date(None),
                    feed_title=feed_title,
                    feed_url=source_url,
                    image_url=feed_image,
                )
            episodes.append(episode)

        self.logger.info(
            "Parsed feed '%s' with %d episodes", feed_title, len(episodes)
        )

        return Feed(
            title=feed_title,
            url=source_url,
            description=_plain_text(
                channel.get("description") or channel.get("subtitle")
            ),
            image_url=feed_image,
            episodes=episodes,
        )

    def _normalize_entry(
        self,
        entry: Any,
        index: int,
        feed_title: str,
        feed_url: str,
        feed_image: Optional[str],
    ) -> Episode:
        """Build one Episode from a feedparser entry."""
        title = entry.get("title") or ""
        published = entry.get("published_parsed") or entry.get("published")

        return Episode(
            id=make_episode_id(
                feed_title,
                index,
                guid=entry.get("id"),
                link=entry.get("link"),
                title=title,
            ),
            title=title or UNTITLED_EPISODE,
            description=_plain_text(
                entry.get("summary") or entry.get("description")
            ),
            audio_url=_audio_url(entry),
            duration_seconds=parse_duration_to_seconds(
                entry.get("itunes_duration")
            ),
            published_at=parse_published_date(published),
            feed_title=feed_title,
            feed_url=feed_url,
            image_url=_image_href(entry.get("image")) or feed_image,
        )
