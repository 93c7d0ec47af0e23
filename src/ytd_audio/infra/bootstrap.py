"""Infrastructure: locate or download the ffmpeg and yt-dlp executables.

:class:`DependencyManager` is the resolver the downloader depends on.
It guarantees a usable :class:`~ytd_audio.core.models.ResolvedTool` for
each tool, trying in order:

1. an explicitly configured path;
2. a file in the dependency cache directory whose name contains the
   tool name;
3. the system PATH;
4. (yt-dlp only) an installed ``yt_dlp`` module, run as
   ``python -m yt_dlp``;
5. a fresh download for the host platform.

All aiohttp, OS and zip errors are caught here and re-raised as
:class:`~ytd_audio.exceptions.DependencyDownloadError`.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import os
import stat
import sys
import zipfile
from pathlib import Path
from typing import Any

from ytd_audio.core.models import Platform, ResolvedTool
from ytd_audio.exceptions import (
    DependencyDownloadError,
    DependencyNotFoundError,
    EnvironmentError,
)
from ytd_audio.infra.ffbinaries import FfBinaryRelease
from ytd_audio.infra.platforms import detect_platform, ffmpeg_platform_key, ytdlp_executable_name
from ytd_audio.infra.tool_detector import FFMPEG, YTDLP, detect_tool

log = logging.getLogger(__name__)

FFBINARIES_VERSION_URL = "https://ffbinaries.com/api/v1/version"
YTDLP_RELEASES_URL = "https://github.com/yt-dlp/yt-dlp/releases"

_CHUNK_SIZE = 81920 * 4


def _import_aiohttp() -> Any:
    """Import aiohttp lazily; only dependency downloads need it."""
    try:
        import aiohttp
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "aiohttp is not installed. Install with: pip install aiohttp",
        ) from exc
    return aiohttp


def _import_aiofiles() -> Any:
    try:
        import aiofiles
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "aiofiles is not installed. Install with: pip install aiofiles",
        ) from exc
    return aiofiles


def make_executable(path: Path, platform: Platform) -> None:
    """Grant the current user execute permission on *path*.

    Windows decides executability by extension, so nothing is changed
    there.
    """
    if platform.is_windows:
        return
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR)


def ytdlp_release_url(version: str, executable_name: str) -> str:
    """GitHub asset URL of yt-dlp *version* (``"latest"`` or a tag)."""
    if version == "latest":
        return f"{YTDLP_RELEASES_URL}/latest/download/{executable_name}"
    return f"{YTDLP_RELEASES_URL}/download/{version}/{executable_name}"


class DependencyManager:
    """Resolves, caches and downloads the external tools.

    Parameters
    ----------
    dependency_dir:
        Cache directory for downloaded binaries.
    platform:
        Target platform; detected from the host when ``None``.
    allow_download:
        When ``False`` a missing tool raises
        :class:`DependencyNotFoundError` instead of being fetched.
    ffmpeg_path, ytdlp_path:
        Explicit executables that bypass every other lookup.
    """

    def __init__(
        self,
        dependency_dir: Path,
        platform: Platform | None = None,
        *,
        allow_download: bool = True,
        ffmpeg_path: Path | None = None,
        ytdlp_path: Path | None = None,
    ) -> None:
        self.dependency_dir = Path(dependency_dir)
        self._platform = platform
        self.allow_download = allow_download
        self._ffmpeg_path = ffmpeg_path
        self._ytdlp_path = ytdlp_path

    @property
    def platform(self) -> Platform:
        if self._platform is None:
            self._platform = detect_platform()
        return self._platform

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve_ffmpeg(self, *, refresh: bool = False) -> ResolvedTool:
        """Return a usable ffmpeg, downloading it if needed."""
        if self._ffmpeg_path is not None:
            return self._explicit(FFMPEG, self._ffmpeg_path)

        if not refresh:
            cached = self.find_cached(FFMPEG)
            if cached is not None:
                return ResolvedTool(FFMPEG, cached, source="cache")
            status = detect_tool(FFMPEG)
            if status.found and status.path is not None:
                return ResolvedTool(FFMPEG, status.path, source="path")

        self._ensure_download_allowed(FFMPEG)
        return ResolvedTool(FFMPEG, await self.download_ffmpeg(), source="download")

    async def resolve_ytdlp(self, *, refresh: bool = False) -> ResolvedTool:
        """Return a usable yt-dlp, downloading it if needed."""
        if self._ytdlp_path is not None:
            return self._explicit(YTDLP, self._ytdlp_path)

        if not refresh:
            cached = self.find_cached(YTDLP)
            if cached is not None:
                return ResolvedTool(YTDLP, cached, source="cache")
            status = detect_tool(YTDLP)
            if status.found and status.path is not None:
                return ResolvedTool(YTDLP, status.path, source="path")
            if importlib.util.find_spec("yt_dlp") is not None:
                return ResolvedTool(
                    YTDLP,
                    Path(sys.executable),
                    leading_args=("-m", "yt_dlp"),
                    source="module",
                )

        self._ensure_download_allowed(YTDLP)
        return ResolvedTool(YTDLP, await self.download_ytdlp(), source="download")

    async def resolve_all(self, *, refresh: bool = False) -> tuple[ResolvedTool, ResolvedTool]:
        """Resolve ``(ffmpeg, yt-dlp)``, fetching both concurrently."""
        ffmpeg, ytdlp = await asyncio.gather(
            self.resolve_ffmpeg(refresh=refresh),
            self.resolve_ytdlp(refresh=refresh),
        )
        return ffmpeg, ytdlp

    def explicit_path(self, name: str) -> Path | None:
        """Return the configured executable for *name*, if one was given."""
        return {FFMPEG: self._ffmpeg_path, YTDLP: self._ytdlp_path}.get(name)

    def find_cached(self, name: str) -> Path | None:
        """Return the first cached file whose name contains *name*."""
        if not self.dependency_dir.is_dir():
            return None
        for candidate in sorted(self.dependency_dir.iterdir()):
            if not candidate.is_file() or candidate.suffix in (".zip", ".part"):
                continue
            if name in candidate.name:
                return candidate
        return None

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    async def download_ffmpeg(self, version: str = "latest") -> Path:
        """Fetch the ffmpeg archive for this platform and unpack it.

        Raises
        ------
        DependencyDownloadError
            When the version is unknown, the platform has no build, or
            the transfer / extraction fails.
        """
        platform_key = ffmpeg_platform_key(self.platform)
        release = FfBinaryRelease.from_json(
            await self._fetch_json(f"{FFBINARIES_VERSION_URL}/{version}", tool=FFMPEG),
        )
        zip_url = release.ffmpeg_url(platform_key)
        log.info("Downloading ffmpeg %s for %s", release.version, platform_key)

        self.dependency_dir.mkdir(parents=True, exist_ok=True)
        archive = self.dependency_dir / "ffmpeg.zip.part"
        try:
            await self._stream_to_file(zip_url, archive, tool=FFMPEG)
            executable = await asyncio.to_thread(self._extract_ffmpeg, archive)
        finally:
            if archive.exists():
                archive.unlink()

        make_executable(executable, self.platform)
        log.info("ffmpeg installed at %s", executable)
        return executable

    async def download_ytdlp(self, version: str = "latest") -> Path:
        """Fetch the standalone yt-dlp executable for this platform."""
        executable_name = ytdlp_executable_name(self.platform)
        url = ytdlp_release_url(version, executable_name)
        log.info("Downloading yt-dlp %s (%s)", version, executable_name)

        self.dependency_dir.mkdir(parents=True, exist_ok=True)
        destination = self.dependency_dir / executable_name
        partial = destination.with_name(destination.name + ".part")
        try:
            await self._stream_to_file(url, partial, tool=YTDLP)
            os.replace(partial, destination)
        finally:
            if partial.exists():
                partial.unlink()

        make_executable(destination, self.platform)
        log.info("yt-dlp installed at %s", destination)
        return destination

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _fetch_json(self, url: str, *, tool: str) -> Any:
        aiohttp = _import_aiohttp()
        try:
            async with self._session(aiohttp) as session:
                async with session.get(url) as response:
                    return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise self._map_download_error(exc, tool) from exc

    async def _stream_to_file(self, url: str, destination: Path, *, tool: str) -> None:
        aiohttp = _import_aiohttp()
        aiofiles = _import_aiofiles()
        try:
            async with self._session(aiohttp) as session:
                async with session.get(url) as response:
                    async with aiofiles.open(destination, "wb") as fh:
                        async for chunk in response.content.iter_chunked(_CHUNK_SIZE):
                            await fh.write(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise self._map_download_error(exc, tool) from exc

    @staticmethod
    def _session(aiohttp: Any) -> Any:
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
        return aiohttp.ClientSession(timeout=timeout, raise_for_status=True)

    @staticmethod
    def _map_download_error(exc: BaseException, tool: str) -> DependencyDownloadError:
        """Translate a transport error into a domain exception."""
        if getattr(exc, "status", None) == 404:
            return DependencyDownloadError(
                f"Failed to download {tool}: Could not find the specified {tool} version.",
                hint="Check the requested version, or use 'latest'.",
            )
        return DependencyDownloadError(
            f"Failed to download {tool}: {exc}",
            hint="Check your network connection, or install the tool manually.",
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract_ffmpeg(self, archive: Path) -> Path:
        """Unpack *archive* into the cache dir and return the ffmpeg binary."""
        try:
            with zipfile.ZipFile(archive) as zf:
                members = [
                    name for name in zf.namelist()
                    if not name.endswith("/") and Path(name).name.startswith(FFMPEG)
                ]
                if not members:
                    raise DependencyDownloadError("The ffmpeg archive contains no ffmpeg binary.")
                zf.extractall(self.dependency_dir)
        except (zipfile.BadZipFile, OSError) as exc:
            raise DependencyDownloadError(f"Failed to unpack ffmpeg: {exc}") from exc
        return self.dependency_dir / members[0]

    def _ensure_download_allowed(self, name: str) -> None:
        if self.allow_download:
            return
        status = detect_tool(name)
        hint_lines = [f"Place {name} in {self.dependency_dir}, or install it with one of:"]
        hint_lines.extend(f"  {cmd}" for cmd in status.install_commands)
        raise DependencyNotFoundError(
            f"{name} was not found and downloads are disabled.",
            hint="\n".join(hint_lines),
        )

    @staticmethod
    def _explicit(name: str, path: Path) -> ResolvedTool:
        if not path.is_file():
            raise DependencyNotFoundError(
                f"Configured {name} path does not exist: {path}",
            )
        return ResolvedTool(name, path, source="explicit")
