"""
Episode ordering and next/previous navigation across all feeds.

Navigation walks the date-descending union of every feed's episodes and
locates the current episode by id. Unplayable and hidden episodes stay in
the ordering (the list view still shows them) but are skipped.
"""

from datetime import datetime, timezone
from typing import AbstractSet, Iterable, List, Optional

from .models import Episode, Feed
from .validators import is_playable

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def flatten_feeds(feeds: Iterable[Feed]) -> List[Episode]:
    """All episodes of all feeds, in feed order."""
    return [episode for feed in feeds for episode in feed.episodes]


def sort_episodes(episodes: Iterable[Episode]) -> List[Episode]:
    """Newest first. Ties keep their original order."""
    return sorted(
        episodes,
        key=lambda episode: episode.published_at or _EPOCH,
        reverse=True,
    )


def is_navigable(
    episode: Episode, hidden: AbstractSet[str] = frozenset()
) -> bool:
    """An episode next/previous may land on."""
    return is_playable(episode) and episode.id not in hidden


def playable_sequence(
    episodes: Iterable[Episode], hidden: AbstractSet[str] = frozenset()
) -> List[Episode]:
    """Ordered episodes filtered to those navigation may land on."""
    return [episode for episode in episodes if is_navigable(episode, hidden)]


def _index_of(episodes: List[Episode], episode_id: Optional[str]) -> int:
    if not episode_id:
        return -1
    for index, episode in enumerate(episodes):
        if episode.id == episode_id:
            return index
    return -1


def next_episode(
    episodes: List[Episode],
    current_id: Optional[str],
    hidden: AbstractSet[str] = frozenset(),
) -> Optional[Episode]:
    """Next navigable episode after current_id in the given ordering.

    With no current episode (or one no longer in the ordering) this is the
    first navigable episode.
    """
    start = _index_of(episodes, current_id) + 1
    for episode in episodes[start:]:
        if is_navigable(episode, hidden):
            return episode
    return None


def previous_episode(
    episodes: List[Episode],
    current_id: Optional[str],
    hidden: AbstractSet[str] = frozenset(),
) -> Optional[Episode]:
    """Previous navigable episode before current_id in the given ordering."""
    index = _index_of(episodes, current_id)
    if index <= 0:
        return None
    for episode in reversed(episodes[:index]):
        if is_navigable(episode, hidden):
            return episode
    return None
