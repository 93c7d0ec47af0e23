"""Infrastructure: PATH detection and platform install guidance.

This module locates ffmpeg or yt-dlp on the system PATH and provides
platform-specific installation guidance when one is missing.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No PATH modification.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from ytd_audio.exceptions import DependencyNotFoundError

FFMPEG = "ffmpeg"
YTDLP = "yt-dlp"


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Result of a PATH probe for one tool.

    Attributes
    ----------
    name : str
        Tool that was probed.
    found : bool
        Whether the tool was located on PATH.
    path : Path | None
        Absolute path to the binary, or ``None``.
    version_hint : str
        Human-readable status string (e.g. ``"found at …"`` or ``"not found"``).
    install_commands : tuple[str, ...]
        Suggested shell commands for installing the tool on the current
        platform.  Empty when the tool is already present.
    """

    name: str
    found: bool
    path: Path | None
    version_hint: str
    install_commands: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_tool(name: str) -> ToolStatus:
    """Probe the system PATH for *name*.

    Returns a :class:`ToolStatus` regardless of whether the tool is
    present — the caller decides whether to abort, download or warn.
    """
    result = shutil.which(name)

    if result is not None:
        resolved = Path(result).resolve()
        return ToolStatus(
            name=name,
            found=True,
            path=resolved,
            version_hint=f"found at {resolved}",
            install_commands=(),
        )

    return ToolStatus(
        name=name,
        found=False,
        path=None,
        version_hint="not found",
        install_commands=_platform_install_commands(name),
    )


def require_tool(name: str) -> Path:
    """Locate *name* on PATH or raise :class:`DependencyNotFoundError`."""
    status = detect_tool(name)
    if not status.found or status.path is None:
        hint_lines: list[str] = ["Run 'ytd-audio setup' to download it, or install it with one of:"]
        hint_lines.extend(f"  {cmd}" for cmd in status.install_commands)
        raise DependencyNotFoundError(
            f"{name} is not installed or not on PATH.",
            hint="\n".join(hint_lines),
        )
    return status.path


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _platform_install_commands(name: str) -> tuple[str, ...]:
    """Return install commands for *name* appropriate for the current OS."""
    if name == YTDLP:
        return _ytdlp_install_commands()
    return _ffmpeg_install_commands()


def _ffmpeg_install_commands() -> tuple[str, ...]:
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install Gyan.FFmpeg",
            "choco install ffmpeg",
        )
    if system == "linux":
        return (
            "sudo apt install ffmpeg",
            "sudo dnf install ffmpeg",
            "sudo pacman -S ffmpeg",
        )
    if system == "darwin":
        return ("brew install ffmpeg",)
    return ("Please install ffmpeg from https://ffmpeg.org/download.html",)


def _ytdlp_install_commands() -> tuple[str, ...]:
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install yt-dlp",
            "pip install yt-dlp",
        )
    if system == "darwin":
        return (
            "brew install yt-dlp",
            "pip install yt-dlp",
        )
    return ("pip install yt-dlp",)
