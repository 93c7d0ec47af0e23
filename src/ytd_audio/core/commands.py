"""yt-dlp argument-string construction.

Every function here is a **pure** transformation — no I/O, no process
launching.  Paths and URLs are quoted with
:func:`~ytd_audio.utils.arguments.quote` so that the runner's argument
splitter recovers them intact, spaces included.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from os import PathLike

from ytd_audio.core.models import AudioFormat
from ytd_audio.utils.arguments import join_arguments, quote

OUTPUT_TEMPLATE: str = "%(title)s.%(ext)s"
"""yt-dlp output template, relative to the ``-P`` download directory."""

_PROGRESS_RE = re.compile(r"^\[download\]\s+(?P<percent>\d+(?:\.\d+)?)%")


def _leading(leading_args: Sequence[str]) -> str:
    return join_arguments(*(quote(arg) for arg in leading_args))


def build_audio_arguments(
    url: str,
    audio_format: AudioFormat,
    ffmpeg_location: str | PathLike[str],
    output_dir: str | PathLike[str],
    leading_args: Sequence[str] = (),
) -> str:
    """Arguments that extract *url*'s audio into *output_dir*.

    ``--newline`` makes yt-dlp emit one progress line per update
    instead of rewriting a single line with carriage returns.
    """
    return join_arguments(
        _leading(leading_args),
        "-x",
        f"--audio-format {audio_format.value}",
        f"-o {quote(OUTPUT_TEMPLATE)}",
        "--progress",
        "--newline",
        f"--ffmpeg-location {quote(str(ffmpeg_location))}",
        f"-P {quote(str(output_dir))}",
        quote(url),
    )


def build_playlist_arguments(url: str, leading_args: Sequence[str] = ()) -> str:
    """Arguments that print one entry URL per line without downloading."""
    return join_arguments(
        _leading(leading_args),
        "--flat-playlist",
        "--print url",
        quote(url),
    )


def build_version_arguments(leading_args: Sequence[str] = ()) -> str:
    return join_arguments(_leading(leading_args), "--version")


def parse_progress_line(line: str) -> float | None:
    """Return the percentage from a yt-dlp ``[download]`` line, if any.

    >>> parse_progress_line("[download]  42.5% of 3.10MiB at 1.00MiB/s ETA 00:02")
    42.5
    """
    match = _PROGRESS_RE.match(line.strip())
    if match is None:
        return None
    return float(match.group("percent"))
