"""
Command-line interface for the podcast player.
"""

import argparse
import asyncio
import contextlib
import logging
import sys
import threading
from typing import Optional, TextIO, Tuple

from .config import TICK_INTERVAL, VOLUME_STEP, get_data_directory
from .errors import InvalidInputError
from .factory import create_manager
from .manager import PlayerManager
from .models import Episode
from .views import (
    render_episode_details,
    render_episode_line,
    render_episode_list,
    render_feed_errors,
    render_status,
)

HELP_TEXT = """Commands:
  list                 show the current page of episodes
  n / p                next / previous page
  play [N|ID]          play episode N (or resume when no argument)
  pause                pause playback
  seek SECONDS         jump to a position
  vol 0..1 / + / -     set or step the volume
  mute                 toggle mute
  next / prev          play the next / previous episode
  hide N               hide episode N from the list
  show [N|ID]          list hidden episodes, or unhide the Nth one
  hidden               toggle listing hidden episodes (numbers then
                       count the full list)
  info N               show an episode's description
  retry                reload all feeds
  status               show what is playing
  quit                 save and exit"""


def parse_seconds(text: str) -> float:
    """Parse SECONDS or M:SS / H:MM:SS into seconds."""
    try:
        parts = [float(part) for part in text.split(":")]
    except ValueError as e:
        raise InvalidInputError(f"Not a time: {text!r}") from e
    if not parts or len(parts) > 3 or any(part < 0 for part in parts):
        raise InvalidInputError(f"Not a time: {text!r}")
    seconds = 0.0
    for part in parts:
        seconds = seconds * 60 + part
    return seconds


def parse_volume(text: str) -> float:
    """Parse a volume number. Out-of-range values are clamped later."""
    try:
        return float(text)
    except ValueError as e:
        raise InvalidInputError(f"Not a volume: {text!r}") from e


def resolve_episode(
    manager: PlayerManager, text: str, hidden_only: bool = False
) -> Episode:
    """Find an episode by list number or by id.

    With hidden_only, numbers count the hidden episodes unless hidden ones
    are already listed.
    """
    episode: Optional[Episode] = None
    if text.isdigit():
        number = int(text)
        if hidden_only and not manager.pager.show_hidden:
            items = manager.hidden_items()
            if 1 <= number <= len(items):
                episode = items[number - 1]
        else:
            episode = manager.episode_at(number)
    if episode is None:
        episode = manager.session.get_episode(text)
    if episode is None:
        raise InvalidInputError(f"No such episode: {text}")
    return episode


def _list(manager: PlayerManager) -> str:
    return render_episode_list(
        manager.list_items(), manager.pager, manager.session
    )


def _hidden_list(manager: PlayerManager) -> str:
    items = manager.hidden_items()
    if not items:
        return "No hidden episodes."
    return "\n".join(
        render_episode_line(number, episode, manager.session)
        for number, episode in enumerate(items, 1)
    )


async def handle_command(  # pylint: disable=too-many-return-statements,too-many-branches
    manager: PlayerManager, line: str
) -> Tuple[bool, str]:
    """Run one command line. Returns (keep_running, message)."""
    words = line.strip().split(maxsplit=1)
    if not words:
        return True, ""
    command = words[0].lower()
    argument = words[1].strip() if len(words) > 1 else ""
    session = manager.session

    if command in ("quit", "exit", "q"):
        return False, "Bye."
    if command in ("help", "?"):
        return True, HELP_TEXT
    if command in ("list", "ls"):
        return True, _list(manager)
    if command == "n":
        manager.next_page()
        return True, _list(manager)
    if command == "p":
        manager.previous_page()
        return True, _list(manager)
    if command == "play":
        if argument:
            manager.select_episode(resolve_episode(manager, argument).id)
        else:
            manager.play()
        return True, render_status(session)
    if command in ("pause", "stop"):
        manager.pause()
        return True, render_status(session)
    if command in ("resume", "r"):
        manager.play()
        return True, render_status(session)
    if command == "seek":
        if not manager.seek(parse_seconds(argument)):
            return True, "Nothing ready to seek."
        return True, render_status(session)
    if command in ("vol", "volume"):
        manager.set_volume(parse_volume(argument))
        return True, render_status(session)
    if command == "+":
        manager.set_volume(session.volume + VOLUME_STEP)
        return True, render_status(session)
    if command == "-":
        manager.set_volume(session.volume - VOLUME_STEP)
        return True, render_status(session)
    if command == "mute":
        manager.toggle_mute()
        return True, render_status(session)
    if command == "next":
        if manager.next_episode() is None:
            return True, "No next episode."
        return True, render_status(session)
    if command == "prev":
        if manager.previous_episode() is None:
            return True, "No previous episode."
        return True, render_status(session)
    if command == "hide":
        manager.hide_episode(resolve_episode(manager, argument).id)
        return True, _list(manager)
    if command == "show":
        if not argument:
            return True, _hidden_list(manager)
        episode = resolve_episode(manager, argument, hidden_only=True)
        if not manager.show_episode(episode.id):
            return True, f"Episode is not hidden: {episode.title}"
        return True, _list(manager)
    if command == "hidden":
        manager.pager.show_hidden = not manager.pager.show_hidden
        return True, _list(manager)
    if command == "info":
        return True, render_episode_details(resolve_episode(manager, argument))
    if command == "retry":
        feeds = await manager.retry_feed_load()
        banner = render_feed_errors(feeds)
        return True, banner or _list(manager)
    if command == "status":
        return True, render_status(session)

    raise InvalidInputError(f"Unknown command: {command} (type 'help')")


async def _tick_forever(manager: PlayerManager) -> None:
    while True:
        manager.tick()
        await asyncio.sleep(TICK_INTERVAL)


def _read_lines(
    stream: TextIO,
    loop: asyncio.AbstractEventLoop,
    lines: "asyncio.Queue[Optional[str]]",
) -> None:
    """Feed stream lines into the loop; None marks end of input."""
    while True:
        line = stream.readline()
        try:
            loop.call_soon_threadsafe(lines.put_nowait, line or None)
        except RuntimeError:
            return  # loop already closed
        if not line:
            return


def start_stdin_reader(
    stream: Optional[TextIO] = None,
) -> "asyncio.Queue[Optional[str]]":
    """Start a daemon thread queueing stdin lines for the running loop."""
    lines: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
    reader = threading.Thread(
        target=_read_lines,
        args=(stream or sys.stdin, asyncio.get_running_loop(), lines),
        name="stdin-reader",
        daemon=True,
    )
    reader.start()
    return lines


async def command_loop(manager: PlayerManager) -> None:
    """Read commands until quit while ticking the session in the background."""
    lines = start_stdin_reader()
    ticker = asyncio.create_task(_tick_forever(manager))
    try:
        while True:
            print("> ", end="", flush=True)
            line = await lines.get()
            if line is None:
                break
            try:
                keep_running, message = await handle_command(manager, line)
            except InvalidInputError as e:
                print(f"Error: {e}")
                continue
            if message:
                print(message)
            if not keep_running:
                break
    finally:
        ticker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await ticker
        manager.shutdown()


async def run(args: argparse.Namespace) -> None:
    """Load feeds, print the list and run the interactive loop."""
    data_dir = args.data_dir or get_data_directory()
    print(f"Using data directory: {data_dir}")

    manager = create_manager(
        data_dir,
        show_progress=not args.no_progress,
        audio=not args.list_only,
    )
    feeds = await manager.start()

    banner = render_feed_errors(feeds)
    if banner:
        print(banner, file=sys.stderr)
    print(_list(manager))

    if args.list_only:
        return

    print(render_status(manager.session))
    print("Type 'help' for commands.")
    await command_loop(manager)


def main() -> None:
    """CLI entry point for the podcast player."""
    parser = argparse.ArgumentParser(
        description="Play episodes from a fixed list of podcast feeds"
    )
    parser.add_argument(
        "--data-dir",
        help="Where the session is saved (default: $PODCAST_DATA_DIRECTORY "
        "or ./data)",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )
    parser.add_argument(
        "--list-only",
        action="store_true",
        help="List episodes without starting the player",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:  # pylint: disable=broad-except
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
