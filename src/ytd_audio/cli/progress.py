"""Rich-based progress display driven by yt-dlp output lines.

yt-dlp is run with ``--progress --newline``, so every update arrives as
its own line, e.g. ``[download]  42.0% of 3.10MiB at 1.00MiB/s ETA 00:02``.
The runner hands each line to a callback; this module turns those
lines into Rich progress bars.

Design
------
* :class:`RichProgressHook` manages one Rich Progress context.
* Calling the hook directly tracks a single download.
* :meth:`RichProgressHook.on_entry_line` keeps one task per playlist
  entry.
* Shutdown-safe: once the display is stopped, calls are ignored.
"""

from __future__ import annotations

from typing import Any

from ytd_audio.cli.console import get_rich_console
from ytd_audio.core.commands import parse_progress_line
from ytd_audio.exceptions import EnvironmentError

_DESTINATION_PREFIXES: tuple[str, ...] = (
    "[download] Destination:",
    "[ExtractAudio] Destination:",
)


class RichProgressHook:
    """Line-callback adapter for Rich.

    Usage::

        with RichProgressHook() as hook:
            await downloader.download_audio(url, on_line=hook)

    Or, for playlists::

        with RichProgressHook() as hook:
            await downloader.download_playlist(url, on_line=hook.on_entry_line)
    """

    def __init__(self) -> None:
        try:
            from rich.progress import (
                BarColumn,
                Progress,
                SpinnerColumn,
                TaskProgressColumn,
                TextColumn,
                TimeRemainingColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._task_ids: dict[str, Any] = {}
        self._started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichProgressHook:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Line callbacks
    # ------------------------------------------------------------------

    def __call__(self, line: str) -> None:
        """Runner line callback for a single download."""
        self._handle_line("download", line)

    def on_entry_line(self, url: str, line: str) -> None:
        """Playlist line callback: one progress task per entry URL."""
        self._handle_line(url, line)

    # ------------------------------------------------------------------
    # Internal handlers
    # ------------------------------------------------------------------

    def _handle_line(self, key: str, line: str) -> None:
        if not self._started:
            return

        task_id = self._task_for(key)
        destination = _destination(line)
        if destination is not None:
            self._progress.update(task_id, description=_shorten(destination))
            return

        percent = parse_progress_line(line)
        if percent is not None:
            self._progress.update(task_id, completed=min(percent, 100.0))

    def _task_for(self, key: str) -> Any:
        task_id = self._task_ids.get(key)
        if task_id is None:
            task_id = self._progress.add_task(_shorten(key), total=100.0)
            self._task_ids[key] = task_id
        return task_id


# ---------------------------------------------------------------------------
# Utility
# ---------------------------------------------------------------------------

def _destination(line: str) -> str | None:
    """Extract the output path from a yt-dlp ``Destination:`` line."""
    for prefix in _DESTINATION_PREFIXES:
        if line.startswith(prefix):
            return line[len(prefix):].strip() or None
    return None


def _shorten(name: str, width: int = 50) -> str:
    """Use the base filename for display, truncated to *width*."""
    display_name = name.rsplit("/", 1)[-1].rsplit("\\", 1)[-1] or name
    if len(display_name) > width:
        display_name = display_name[: width - 3] + "..."
    return display_name
