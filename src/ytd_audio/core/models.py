"""Domain models for ytd-audio.

All models are **frozen** dataclasses or enums — immutable value objects
with no behaviour beyond data access.  They carry zero I/O and zero
dependencies on external packages.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

LineCallback = Callable[[str], None]
"""Receives one decoded output line, without its trailing newline."""


# ---------------------------------------------------------------------------
# Process invocation / result
# ---------------------------------------------------------------------------

class ProcessStatus(enum.Enum):
    """Outcome of one external-process invocation."""

    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class ProcessInvocation:
    """One request to run an external executable."""

    executable: Path
    """Path to the program to launch."""

    arguments: str | None = None
    """Argument string, split with shell-like quoting rules."""

    on_line: LineCallback | None = None
    """Called for every line on stdout or stderr."""

    cancel_event: asyncio.Event | None = None
    """Setting this event abandons the invocation and kills the process."""


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Captured outcome of a single invocation.

    ``output`` carries stdout of a successful run; ``error`` carries
    stderr of a failed one.  The unused stream is always ``""``.
    """

    status: ProcessStatus
    output: str = ""
    error: str = ""
    exit_code: int | None = None
    """``None`` when the process never started or was killed unreaped."""

    exception: BaseException | None = field(default=None, compare=False)
    """Fault raised while starting or supervising the process, if any."""

    @property
    def succeeded(self) -> bool:
        return self.status is ProcessStatus.SUCCESS

    @property
    def cancelled(self) -> bool:
        return self.status is ProcessStatus.CANCELLED

    @classmethod
    def from_exit(
        cls,
        exit_code: int,
        stdout: str,
        stderr: str,
        exception: BaseException | None = None,
    ) -> ProcessResult:
        """Build a result whose status comes strictly from *exit_code*."""
        if exit_code == 0:
            return cls(
                status=ProcessStatus.SUCCESS,
                output=stdout,
                exit_code=exit_code,
                exception=exception,
            )
        return cls(
            status=ProcessStatus.ERROR,
            error=stderr,
            exit_code=exit_code,
            exception=exception,
        )

    @classmethod
    def fault(cls, exception: BaseException, stderr: str = "") -> ProcessResult:
        """Result for a process that could not be launched or supervised."""
        return cls(status=ProcessStatus.ERROR, error=stderr, exception=exception)

    @classmethod
    def cancelled_result(cls, exit_code: int | None = None, stderr: str = "") -> ProcessResult:
        """Result for an invocation abandoned by its cancel signal."""
        return cls(status=ProcessStatus.CANCELLED, error=stderr, exit_code=exit_code)


# ---------------------------------------------------------------------------
# Media / platform enums
# ---------------------------------------------------------------------------

class AudioFormat(str, enum.Enum):
    """Audio containers accepted by yt-dlp's ``--audio-format``."""

    MP3 = "mp3"
    AAC = "aac"
    BEST = "best"
    FLAC = "flac"
    M4A = "m4a"
    OPUS = "opus"
    VORBIS = "vorbis"
    WAV = "wav"


class Platform(enum.Enum):
    """Host platforms with published ffmpeg and yt-dlp builds."""

    WINDOWS_X64 = "windows-x64"
    LINUX_32 = "linux-32"
    LINUX_64 = "linux-64"
    LINUX_ARM64 = "linux-arm64"
    MACOS_X64 = "macos-x64"

    @property
    def is_windows(self) -> bool:
        return self is Platform.WINDOWS_X64


# ---------------------------------------------------------------------------
# Dependency resolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ResolvedTool:
    """A located external tool, ready to be handed to the runner."""

    name: str
    """Logical tool name (``"ffmpeg"`` or ``"yt-dlp"``)."""

    executable: Path
    """Program passed to the process runner."""

    leading_args: tuple[str, ...] = ()
    """Arguments that must precede every command (e.g. ``-m yt_dlp``)."""

    source: str = "explicit"
    """Where the tool was found: explicit, cache, path, module or download."""


# ---------------------------------------------------------------------------
# Playlist aggregation
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MultiDownloadResult:
    """Per-entry outcome of a playlist download."""

    url: str
    is_downloaded: bool
    message: str | None = None
    error_message: str | None = None
