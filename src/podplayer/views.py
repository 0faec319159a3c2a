"""
Text rendering for the terminal front end.

Views read from the session core and the aggregator; the only state kept
here is the page cursor of the episode list.
"""

import math
from typing import AbstractSet, List, Optional, Sequence

from .config import DESCRIPTION_MAX_LENGTH, EPISODES_PER_PAGE
from .models import Episode, Feed, TransportState
from .session import SessionCore
from .utils import format_duration, truncate
from .validators import is_playable


class EpisodePager:
    """Pages through the date-ordered episode list."""

    def __init__(self, per_page: int = EPISODES_PER_PAGE):
        self.per_page = max(1, per_page)
        self.page = 1
        self.show_hidden = False

    def visible(
        self, episodes: Sequence[Episode], hidden: AbstractSet[str]
    ) -> List[Episode]:
        """Episodes the list shows: hidden ones only when show_hidden."""
        if self.show_hidden:
            return list(episodes)
        return [episode for episode in episodes if episode.id not in hidden]

    def total_pages(self, count: int) -> int:
        return max(1, math.ceil(count / self.per_page))

    def clamp(self, count: int) -> None:
        """Keep the cursor in range after the list changes."""
        self.page = min(max(1, self.page), self.total_pages(count))

    def next_page(self, count: int) -> bool:
        if self.page >= self.total_pages(count):
            return False
        self.page += 1
        return True

    def previous_page(self) -> bool:
        if self.page <= 1:
            return False
        self.page -= 1
        return True

    def page_items(self, items: Sequence[Episode]) -> List[Episode]:
        """Slice of items on the current page."""
        self.clamp(len(items))
        start = (self.page - 1) * self.per_page
        return list(items[start:start + self.per_page])

    def number_of(self, items: Sequence[Episode], episode_id: str) -> Optional[int]:
        """1-based position of an episode in items."""
        for number, episode in enumerate(items, 1):
            if episode.id == episode_id:
                return number
        return None


def render_episode_line(
    number: int,
    episode: Episode,
    session: SessionCore,
) -> str:
    """One list row: marker, number, date, title, duration and flags."""
    if episode.id == session.current_episode_id:
        marker = ">" if session.is_playing else "*"
    else:
        marker = " "

    flags = []
    if not is_playable(episode):
        flags.append("unavailable")
    if session.is_hidden(episode.id):
        flags.append("hidden")
    if episode.is_played:
        flags.append("played")
    progress = session.episode_progress.get(episode.id)
    if progress:
        flags.append(f"at {format_duration(progress)}")

    suffix = f" [{', '.join(flags)}]" if flags else ""
    return (
        f"{marker}{number:3d}. {episode.published_at:%Y-%m-%d} "
        f"{episode.feed_title}: {episode.title} "
        f"({format_duration(episode.duration_seconds)}){suffix}"
    )


def render_episode_list(
    items: Sequence[Episode],
    pager: EpisodePager,
    session: SessionCore,
) -> str:
    """The current page of items, with a page footer."""
    if not items:
        return "No episodes."

    page = pager.page_items(items)
    first_number = (pager.page - 1) * pager.per_page + 1
    lines = [
        render_episode_line(number, episode, session)
        for number, episode in enumerate(page, first_number)
    ]
    lines.append(
        f"Page {pager.page}/{pager.total_pages(len(items))} "
        f"({len(items)} episodes)"
    )
    return "\n".join(lines)


def render_episode_details(episode: Episode) -> str:
    description = truncate(episode.description, DESCRIPTION_MAX_LENGTH)
    return f"{episode.title}\n{episode.feed_title}\n{description}"


def render_status(session: SessionCore) -> str:
    """Now-playing line for the current transport state."""
    episode = session.current_episode
    volume = "muted" if session.is_muted else f"vol {int(session.volume * 100)}%"

    if episode is None:
        return f"Nothing playing ({volume})"

    position = (
        f"{format_duration(session.current_time)}"
        f"/{format_duration(session.duration)}"
    )
    state_labels = {
        TransportState.LOADING: "loading",
        TransportState.READY_PAUSED: "paused",
        TransportState.READY_PLAYING: "playing",
        TransportState.ENDED: "ended",
        TransportState.ERRORED: "error",
        TransportState.IDLE: "idle",
    }
    line = (
        f"[{state_labels[session.state]}] {episode.title} - "
        f"{episode.feed_title} {position} ({volume})"
    )
    if session.state == TransportState.ERRORED and session.error is not None:
        line += f"\n  {session.error.message}"
    return line


def render_feed_errors(feeds: Sequence[Feed]) -> Optional[str]:
    """Retry banner for feeds that failed to load, or None."""
    failed = [feed for feed in feeds if feed.is_placeholder]
    if not failed:
        return None
    lines = [f"{len(failed)} feed(s) failed to load (type 'retry'):"]
    lines.extend(f"  {feed.url}: {feed.error}" for feed in failed)
    return "\n".join(lines)
