"""High-level audio downloader built on the bounded process runner.

This is the central service consumed by the CLI layer.  It depends on
a :class:`~ytd_audio.core.protocols.DependencyResolver` injected at
construction time, so the core stays free of network and filesystem
lookups.

Guarantees
----------
* Only :class:`~ytd_audio.exceptions.YtdAudioError` subclasses escape.
* A failed or cancelled tool run becomes :class:`ToolExecutionError`
  or :class:`DownloadCancelledError`; the runner's
  :class:`~ytd_audio.core.models.ProcessResult` rides along.
* Playlist entries run concurrently, bounded by the runner's gate, and
  one entry's failure never aborts the others.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable

from ytd_audio.core.admission import AdmissionGate
from ytd_audio.core.commands import (
    build_audio_arguments,
    build_playlist_arguments,
    build_version_arguments,
)
from ytd_audio.core.config import DownloaderConfig
from ytd_audio.core.models import (
    AudioFormat,
    LineCallback,
    MultiDownloadResult,
    ProcessResult,
    ProcessStatus,
    ResolvedTool,
)
from ytd_audio.core.process_runner import ProcessRunner
from ytd_audio.core.protocols import DependencyResolver
from ytd_audio.exceptions import (
    DownloadCancelledError,
    InvalidURLError,
    PlaylistExtractionError,
    ToolExecutionError,
    YtdAudioError,
    append_ytdlp_upgrade_suggestion,
)

log = logging.getLogger(__name__)

EntryLineCallback = Callable[[str, str], None]
"""Receives ``(entry_url, line)`` during playlist downloads."""


def validate_url(url: str) -> str:
    """Return the stripped *url*; raise :class:`InvalidURLError` if unusable."""
    stripped = url.strip()
    if not stripped:
        raise InvalidURLError("URL must not be empty.")
    if not stripped.startswith(("http://", "https://")):
        raise InvalidURLError(
            f"Invalid URL: {stripped}",
            hint="URL must start with http:// or https://",
        )
    return stripped


class YoutubeDownloader:
    """Downloads YouTube audio by shelling out to yt-dlp and ffmpeg.

    Parameters
    ----------
    resolver:
        Any object satisfying the :class:`DependencyResolver` protocol.
    config:
        Download settings; defaults are used when omitted.
    runner:
        Process runner to use.  When omitted one is built with a gate
        sized from *config*.
    """

    def __init__(
        self,
        resolver: DependencyResolver,
        config: DownloaderConfig | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        self._config: DownloaderConfig = config if config is not None else DownloaderConfig()
        self._resolver: DependencyResolver = resolver
        self._runner: ProcessRunner = (
            runner
            if runner is not None
            else ProcessRunner(AdmissionGate(self._config.max_concurrent, self._config.gate_ceiling))
        )
        self._ffmpeg: ResolvedTool | None = None
        self._ytdlp: ResolvedTool | None = None

    @property
    def config(self) -> DownloaderConfig:
        return self._config

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    async def setup_dependencies(self, *, refresh: bool = False) -> tuple[ResolvedTool, ResolvedTool]:
        """Resolve (and if needed download) ffmpeg and yt-dlp.

        Returns
        -------
        tuple[ResolvedTool, ResolvedTool]
            ``(ffmpeg, yt-dlp)``.
        """
        self._ffmpeg, self._ytdlp = await asyncio.gather(
            self._resolver.resolve_ffmpeg(refresh=refresh),
            self._resolver.resolve_ytdlp(refresh=refresh),
        )
        log.debug("Using ffmpeg=%s yt-dlp=%s", self._ffmpeg, self._ytdlp)
        return self._ffmpeg, self._ytdlp

    async def _tools(self) -> tuple[ResolvedTool, ResolvedTool]:
        if self._ffmpeg is None or self._ytdlp is None:
            return await self.setup_dependencies()
        return self._ffmpeg, self._ytdlp

    async def tool_version(self, tool: str) -> str:
        """Return the first line of ``<tool> --version`` (``-version`` for ffmpeg)."""
        ffmpeg, ytdlp = await self._tools()
        if tool == ffmpeg.name:
            result = await self._runner.run_async(ffmpeg.executable, "-version")
        else:
            result = await self._runner.run_async(
                ytdlp.executable, build_version_arguments(ytdlp.leading_args),
            )
        self._raise_for_result(result, "--version", tool=tool)
        lines = result.output.strip().splitlines()
        return lines[0] if lines else "unknown"

    # ------------------------------------------------------------------
    # Single video
    # ------------------------------------------------------------------

    async def download_audio(
        self,
        url: str,
        audio_format: AudioFormat = AudioFormat.MP3,
        *,
        on_line: LineCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ProcessResult:
        """Download *url* and extract its audio into the download dir.

        Raises
        ------
        InvalidURLError
            If *url* is empty or not HTTP(S).
        ToolExecutionError
            If yt-dlp cannot start or exits non-zero.
        DownloadCancelledError
            If *cancel_event* fires first.
        """
        target = validate_url(url)
        ffmpeg, ytdlp = await self._tools()
        self._config.download_dir.mkdir(parents=True, exist_ok=True)

        arguments = build_audio_arguments(
            target,
            audio_format,
            ffmpeg.executable,
            self._config.download_dir,
            leading_args=ytdlp.leading_args,
        )
        log.info("Downloading %s as %s", target, audio_format.value)
        result = await self._runner.run_async(
            ytdlp.executable,
            arguments,
            on_line=on_line,
            cancel_event=cancel_event,
        )
        self._raise_for_result(result, target)
        return result

    # ------------------------------------------------------------------
    # Playlists
    # ------------------------------------------------------------------

    async def get_playlist_urls(
        self,
        url: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[str]:
        """List the entry URLs of a playlist without downloading them.

        Raises
        ------
        PlaylistExtractionError
            If yt-dlp fails or reports no entries.
        """
        target = validate_url(url)
        _, ytdlp = await self._tools()
        result = await self._runner.run_async(
            ytdlp.executable,
            build_playlist_arguments(target, ytdlp.leading_args),
            cancel_event=cancel_event,
        )
        if result.cancelled:
            raise DownloadCancelledError(f"Listing {target} was cancelled.")
        if not result.succeeded:
            raise PlaylistExtractionError(
                f"Could not list playlist entries: {_summarise(result)}",
                hint=append_ytdlp_upgrade_suggestion("Check that the URL points to a public playlist."),
            )

        entries = [
            line.strip()
            for line in result.output.splitlines()
            if line.strip().startswith(("http://", "https://"))
        ]
        if not entries:
            raise PlaylistExtractionError(
                f"No entries found in playlist: {target}",
                hint="The playlist may be empty or private.",
            )
        return entries

    async def download_playlist(
        self,
        url: str,
        audio_format: AudioFormat = AudioFormat.MP3,
        *,
        on_line: EntryLineCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[MultiDownloadResult]:
        """Download every entry of a playlist concurrently.

        Returns one :class:`MultiDownloadResult` per entry, in playlist
        order.
        """
        entries = await self.get_playlist_urls(url, cancel_event=cancel_event)
        log.info("Playlist %s has %d entries", url, len(entries))
        return list(
            await asyncio.gather(
                *(
                    self._download_entry(entry, audio_format, on_line, cancel_event)
                    for entry in entries
                )
            )
        )

    async def _download_entry(
        self,
        url: str,
        audio_format: AudioFormat,
        on_line: EntryLineCallback | None,
        cancel_event: asyncio.Event | None,
    ) -> MultiDownloadResult:
        line_callback: LineCallback | None = (
            functools.partial(on_line, url) if on_line is not None else None
        )
        try:
            await self.download_audio(
                url,
                audio_format,
                on_line=line_callback,
                cancel_event=cancel_event,
            )
        except YtdAudioError as exc:
            log.warning("Playlist entry %s failed: %s", url, exc)
            return MultiDownloadResult(url=url, is_downloaded=False, error_message=str(exc))
        return MultiDownloadResult(url=url, is_downloaded=True, message=f"Downloaded {url}")

    # ------------------------------------------------------------------
    # Result mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _raise_for_result(result: ProcessResult, target: str, *, tool: str = "yt-dlp") -> None:
        if result.status is ProcessStatus.SUCCESS:
            return
        if result.status is ProcessStatus.CANCELLED:
            raise DownloadCancelledError(f"Download of {target} was cancelled.")
        raise ToolExecutionError(
            f"{tool} failed for {target}: {_summarise(result)}",
            result=result,
            hint=append_ytdlp_upgrade_suggestion("Check the URL and your network connection."),
        )


def _summarise(result: ProcessResult) -> str:
    """Pick the most useful one-line description of a failed result."""
    for line in reversed(result.error.strip().splitlines()):
        if line.strip():
            return line.strip()
    if result.exception is not None:
        return str(result.exception)
    return f"exit code {result.exit_code}"
