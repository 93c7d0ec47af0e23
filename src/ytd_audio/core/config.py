"""Runtime configuration for the downloader.

Defaults live in module constants; :meth:`DownloaderConfig.from_env`
lets deployments override them through ``YTD_AUDIO_*`` environment
variables.  CLI flags are applied on top by the CLI layer.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ytd_audio.core.admission import DEFAULT_CEILING, DEFAULT_LIMIT
from ytd_audio.core.models import Platform

ENV_PREFIX = "YTD_AUDIO_"

DOWNLOAD_DIR_NAME = "downloads"
DEPENDENCY_DIR_NAME = "dependencies"


@dataclass(frozen=True, slots=True)
class DownloaderConfig:
    """Immutable settings shared by the downloader and its collaborators."""

    download_dir: Path = field(default_factory=lambda: Path.cwd() / DOWNLOAD_DIR_NAME)
    """Where extracted audio files are written."""

    dependency_dir: Path = field(default_factory=lambda: Path.cwd() / DEPENDENCY_DIR_NAME)
    """Cache directory for downloaded ffmpeg / yt-dlp binaries."""

    max_concurrent: int = DEFAULT_LIMIT
    """Admission-gate limit: external processes allowed to run at once."""

    gate_ceiling: int = DEFAULT_CEILING

    platform: Platform | None = None
    """Target platform for dependency downloads; detected when ``None``."""

    allow_download: bool = True
    """Fetch missing binaries from the network."""

    ffmpeg_path: Path | None = None
    ytdlp_path: Path | None = None

    def __post_init__(self) -> None:
        if self.max_concurrent <= 0:
            raise ValueError("max_concurrent must be positive")
        if self.gate_ceiling < self.max_concurrent:
            object.__setattr__(self, "gate_ceiling", self.max_concurrent)

    def with_overrides(self, **changes: Any) -> DownloaderConfig:
        """Return a copy with every non-``None`` value in *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DownloaderConfig:
        """Build a config from ``YTD_AUDIO_*`` environment variables.

        Recognised variables: ``DOWNLOAD_DIR``, ``DEPENDENCY_DIR``,
        ``MAX_CONCURRENT``, ``FFMPEG``, ``YTDLP`` and ``OFFLINE``
        (any non-empty value disables dependency downloads).
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name, "").strip()
            return value or None

        changes: dict[str, Any] = {}
        if (download_dir := get("DOWNLOAD_DIR")) is not None:
            changes["download_dir"] = Path(download_dir).expanduser()
        if (dependency_dir := get("DEPENDENCY_DIR")) is not None:
            changes["dependency_dir"] = Path(dependency_dir).expanduser()
        if (max_concurrent := get("MAX_CONCURRENT")) is not None:
            try:
                changes["max_concurrent"] = int(max_concurrent)
            except ValueError as exc:
                raise ValueError(
                    f"{ENV_PREFIX}MAX_CONCURRENT must be an integer, got {max_concurrent!r}",
                ) from exc
        if (ffmpeg := get("FFMPEG")) is not None:
            changes["ffmpeg_path"] = Path(ffmpeg).expanduser()
        if (ytdlp := get("YTDLP")) is not None:
            changes["ytdlp_path"] = Path(ytdlp).expanduser()
        if get("OFFLINE") is not None:
            changes["allow_download"] = False
        return cls(**changes)
