"""Interactive audio-format selection UI for the CLI layer.

This module is responsible for:

* Rendering a Rich table describing the audio formats yt-dlp can emit.
* Prompting the user to select one via questionary arrow keys.
* Returning the selected :class:`~ytd_audio.core.models.AudioFormat`.

All display-related logic lives here — no business logic, no
downloading.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ytd_audio.cli.console import console
from ytd_audio.core.models import AudioFormat
from ytd_audio.exceptions import EnvironmentError

_DESCRIPTIONS: dict[AudioFormat, tuple[str, str]] = {
    AudioFormat.MP3: ("lossy", "Plays everywhere"),
    AudioFormat.AAC: ("lossy", "Efficient, widely supported"),
    AudioFormat.M4A: ("lossy", "AAC in an MP4 container"),
    AudioFormat.OPUS: ("lossy", "Best quality per bit; YouTube's native audio"),
    AudioFormat.VORBIS: ("lossy", "Ogg Vorbis"),
    AudioFormat.FLAC: ("lossless", "Lossless wrapper, large files"),
    AudioFormat.WAV: ("uncompressed", "Raw PCM, largest files"),
    AudioFormat.BEST: ("as-is", "Keep the source codec, no re-encode"),
}


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for format rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


def _describe(fmt: AudioFormat) -> tuple[str, str]:
    return _DESCRIPTIONS.get(fmt, ("unknown", ""))


def _build_choice_label(index: int, fmt: AudioFormat) -> str:
    """Build the single-line label shown in the questionary selector.

    Format: ``"  1.  mp3      lossy         Plays everywhere"``
    """
    kind, note = _describe(fmt)
    return f"  {index + 1}.  {fmt.value:<8} {kind:<13} {note}"


def _display_format_table(url: str, formats: Sequence[AudioFormat]) -> None:
    """Print a Rich table summarising the available audio formats."""
    table_class = _import_rich_table()

    console.print()
    console.print(f"[bold cyan]URL:[/bold cyan]  {url}")
    console.print()

    table = table_class(
        title="Audio Formats",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Format", justify="left", min_width=8)
    table.add_column("Kind", justify="left", min_width=12)
    table.add_column("Notes", justify="left")

    for i, fmt in enumerate(formats, start=1):
        kind, note = _describe(fmt)
        table.add_row(str(i), fmt.value, kind, note)

    console.print(table)
    console.print()


def prompt_audio_format(
    url: str,
    formats: Sequence[AudioFormat] = tuple(AudioFormat),
) -> AudioFormat:
    """Display audio formats and prompt the user for a selection.

    Raises
    ------
    KeyboardInterrupt
        If the user presses Ctrl+C or Esc during selection.
    """
    questionary = _import_questionary()

    _display_format_table(url, formats)

    choices = [
        questionary.Choice(title=_build_choice_label(i, fmt), value=fmt.value)
        for i, fmt in enumerate(formats)
    ]

    selected: str | None = questionary.select(
        "Select audio format:",
        choices=choices,
        use_arrow_keys=True,
        use_shortcuts=False,
    ).ask()  # Returns None on Ctrl+C / Esc

    if selected is None:
        raise KeyboardInterrupt

    return AudioFormat(selected)
