"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from typing import Protocol

from ytd_audio.core.models import ResolvedTool


class DependencyResolver(Protocol):
    """Contract for locating the ffmpeg and yt-dlp executables.

    Any object that implements these coroutines satisfies this protocol
    structurally (no explicit inheritance required).
    """

    async def resolve_ffmpeg(self, *, refresh: bool = False) -> ResolvedTool:
        """Return a usable ffmpeg.

        Implementations must map all backend-specific exceptions to
        :class:`~ytd_audio.exceptions.YtdAudioError` subclasses.

        Raises
        ------
        DependencyNotFoundError
            When ffmpeg is missing and cannot be fetched.
        DependencyDownloadError
            When fetching ffmpeg fails.
        """
        ...  # pragma: no cover

    async def resolve_ytdlp(self, *, refresh: bool = False) -> ResolvedTool:
        """Return a usable yt-dlp; same error contract as :meth:`resolve_ffmpeg`."""
        ...  # pragma: no cover
