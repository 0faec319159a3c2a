"""
Feed fetching over HTTP.

Feeds are fetched either directly as RSS or through a JSON parse endpoint
that returns an already normalized feed body.
"""

import logging
from typing import Optional

import requests

from .config import REQUEST_TIMEOUT
from .errors import FeedFetchError, FeedParseError
from .models import Feed
from .parser import PodcastParser


def download_rss_from_url(
    rss_url: str, timeout: int = REQUEST_TIMEOUT
) -> bytes:
    """Download RSS content from URL.

    Raises FeedFetchError on network failure, non-2xx status or an empty
    body.
    """
    logger = logging.getLogger(__name__)
    logger.info("Downloading RSS from %s", rss_url)
    try:
        response = requests.get(rss_url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error("RSS download error: %s", e)
        raise FeedFetchError(rss_url, f"Failed to fetch feed: {e}") from e

    if not response.content:
        logger.error("Failed to download RSS content - response was empty")
        raise FeedFetchError(rss_url, "Feed response was empty")

    logger.info(
        "Successfully downloaded RSS content (%d bytes)",
        len(response.content),
    )
    return response.content


def download_feed_json(
    feed_url: str, parse_endpoint: str, timeout: int = REQUEST_TIMEOUT
) -> Feed:
    """Fetch a normalized feed body from a JSON parse endpoint."""
    logger = logging.getLogger(__name__)
    logger.info("Requesting %s via %s", feed_url, parse_endpoint)
    try:
        response = requests.get(
            parse_endpoint, params={"url": feed_url}, timeout=timeout
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error("Feed endpoint error for %s: %s", feed_url, e)
        raise FeedFetchError(feed_url, f"Failed to fetch feed: {e}") from e

    try:
        data = response.json()
    except ValueError as e:
        raise FeedParseError(feed_url, "Feed endpoint returned invalid JSON") from e

    if (
        not isinstance(data, dict)
        or not data.get("title")
        or not isinstance(data.get("episodes"), list)
    ):
        raise FeedParseError(feed_url, "Invalid feed structure received")

    return Feed.from_dict(data, feed_url)


def fetch_feed(
    feed_url: str,
    parse_endpoint: Optional[str] = None,
    timeout: int = REQUEST_TIMEOUT,
) -> Feed:
    """Fetch and normalize one feed.

    Raises FeedFetchError or FeedParseError; callers aggregating several
    feeds turn these into placeholder feeds.
    """
    if parse_endpoint:
        return download_feed_json(feed_url, parse_endpoint, timeout)

    content = download_rss_from_url(feed_url, timeout)
    return PodcastParser().from_content(feed_url, content)
