"""
Tests for episode ordering and next/previous navigation.
"""

import unittest
from datetime import timedelta

from podplayer.navigation import (
    flatten_feeds,
    next_episode,
    playable_sequence,
    previous_episode,
    sort_episodes,
)

from tests.utils import BASE_DATE, create_test_episode, create_test_feed


class TestNavigation(unittest.TestCase):
    """Test suite for navigation helpers."""

    def setUp(self) -> None:
        """Five episodes, newest first: e1..e5."""
        self.episodes = [
            create_test_episode(
                id=f"e{i}",
                audio_url=f"http://test.com/e{i}.mp3",
                published_at=BASE_DATE - timedelta(days=i),
            )
            for i in range(1, 6)
        ]

    def ids(self, episodes) -> list:
        return [episode.id for episode in episodes]

    def test_sort_is_date_descending_across_feeds(self) -> None:
        """Test sort is date descending across feeds."""
        feed_a = create_test_feed("A", "http://a", 2, prefix="a")
        feed_b = create_test_feed(
            "B", "http://b", 2, start=BASE_DATE + timedelta(hours=12), prefix="b"
        )

        ordered = sort_episodes(flatten_feeds([feed_a, feed_b]))

        self.assertEqual(self.ids(ordered), ["b1", "a1", "b2", "a2"])

    def test_next(self) -> None:
        """Test next."""
        upcoming = next_episode(self.episodes, "e2")

        assert upcoming is not None
        self.assertEqual(upcoming.id, "e3")

    def test_next_without_current_is_first(self) -> None:
        """Test next without current is first."""
        upcoming = next_episode(self.episodes, None)

        assert upcoming is not None
        self.assertEqual(upcoming.id, "e1")

    def test_next_skips_hidden_and_unplayable(self) -> None:
        """Test next skips hidden and unplayable."""
        self.episodes[2].audio_url = "   "

        upcoming = next_episode(self.episodes, "e2", hidden={"e4"})

        assert upcoming is not None
        self.assertEqual(upcoming.id, "e5")

    def test_next_at_end(self) -> None:
        """Test next at end."""
        self.assertIsNone(next_episode(self.episodes, "e5"))
        self.assertIsNone(next_episode(self.episodes, "e3", hidden={"e4", "e5"}))

    def test_previous(self) -> None:
        """Test previous."""
        self.episodes[1].audio_url = ""

        earlier = previous_episode(self.episodes, "e3")

        assert earlier is not None
        self.assertEqual(earlier.id, "e1")

    def test_previous_at_start_or_unknown(self) -> None:
        """Test previous at start or unknown."""
        self.assertIsNone(previous_episode(self.episodes, "e1"))
        self.assertIsNone(previous_episode(self.episodes, "missing"))
        self.assertIsNone(previous_episode(self.episodes, None))

    def test_playable_sequence(self) -> None:
        """Test playable sequence."""
        self.episodes[0].audio_url = ""

        result = playable_sequence(self.episodes, hidden={"e5"})

        self.assertEqual(self.ids(result), ["e2", "e3", "e4"])


if __name__ == "__main__":
    unittest.main()
