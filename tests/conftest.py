"""Shared pytest fixtures and configuration for the ytd-audio test suite.

Guidelines
----------
* No internet access in any test.
* Real child processes are the current Python interpreter running a
  tiny ``-c`` script, never ffmpeg or yt-dlp.
* Network downloads are mocked at the ``DependencyManager`` HTTP helpers.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from ytd_audio.core.models import ResolvedTool
from ytd_audio.utils.arguments import join_arguments, quote

PYTHON = Path(sys.executable)


def python_args(script: str, *extra: str) -> str:
    """Argument string that makes the interpreter run *script*."""
    return join_arguments("-c", quote(script), *(quote(arg) for arg in extra))


class FakeResolver:
    """In-memory :class:`DependencyResolver` returning fixed tools."""

    def __init__(
        self,
        ffmpeg: ResolvedTool | None = None,
        ytdlp: ResolvedTool | None = None,
    ) -> None:
        self.ffmpeg = ffmpeg or ResolvedTool("ffmpeg", Path("/opt/tools/ffmpeg"), source="cache")
        self.ytdlp = ytdlp or ResolvedTool("yt-dlp", Path("/opt/tools/yt-dlp"), source="cache")
        self.calls: list[tuple[str, bool]] = []

    async def resolve_ffmpeg(self, *, refresh: bool = False) -> ResolvedTool:
        self.calls.append(("ffmpeg", refresh))
        return self.ffmpeg

    async def resolve_ytdlp(self, *, refresh: bool = False) -> ResolvedTool:
        self.calls.append(("yt-dlp", refresh))
        return self.ytdlp


@pytest.fixture()
def fake_resolver() -> FakeResolver:
    return FakeResolver()
