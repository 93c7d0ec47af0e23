"""Response model for the ffbinaries.com version API.

A ``GET https://ffbinaries.com/api/v1/version/<version>`` returns::

    {
      "version": "6.1",
      "permalink": "https://ffbinaries.com/api/v1/version/6.1",
      "bin": {
        "linux-64": {"ffmpeg": "https://.../ffmpeg-6.1-linux-64.zip",
                     "ffprobe": "https://.../ffprobe-6.1-linux-64.zip"},
        ...
      }
    }

Keys are matched case-insensitively.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ytd_audio.exceptions import DependencyDownloadError


@dataclass(frozen=True, slots=True)
class PlatformBinary:
    """Download URLs for one platform's ffmpeg and ffprobe archives."""

    ffmpeg: str
    ffprobe: str | None = None


@dataclass(frozen=True, slots=True)
class FfBinaryRelease:
    """One ffbinaries release."""

    version: str
    permalink: str
    bin: Mapping[str, PlatformBinary] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Any) -> FfBinaryRelease:
        """Parse a decoded JSON payload.

        Raises
        ------
        DependencyDownloadError
            When required fields are missing or malformed.
        """
        if not isinstance(payload, Mapping):
            raise DependencyDownloadError("ffbinaries returned an unexpected payload.")
        data = _lower_keys(payload)

        version = data.get("version")
        permalink = data.get("permalink")
        if not isinstance(version, str) or not isinstance(permalink, str):
            raise DependencyDownloadError(
                "ffbinaries response is missing 'version' or 'permalink'.",
            )

        binaries: dict[str, PlatformBinary] = {}
        raw_bin = data.get("bin") or {}
        if not isinstance(raw_bin, Mapping):
            raise DependencyDownloadError("ffbinaries 'bin' field is not an object.")
        for platform_key, raw in raw_bin.items():
            if not isinstance(raw, Mapping):
                continue
            entry = _lower_keys(raw)
            ffmpeg = entry.get("ffmpeg")
            if not isinstance(ffmpeg, str):
                continue
            ffprobe = entry.get("ffprobe")
            binaries[str(platform_key).lower()] = PlatformBinary(
                ffmpeg=ffmpeg,
                ffprobe=ffprobe if isinstance(ffprobe, str) else None,
            )

        return cls(version=version, permalink=permalink, bin=binaries)

    def ffmpeg_url(self, platform_key: str) -> str:
        """Archive URL of ffmpeg for *platform_key* (e.g. ``linux-64``)."""
        entry = self.bin.get(platform_key.lower())
        if entry is None:
            raise DependencyDownloadError(
                f"ffmpeg {self.version} has no build for {platform_key}.",
            )
        return entry.ffmpeg


def _lower_keys(mapping: Mapping[Any, Any]) -> dict[str, Any]:
    return {str(key).lower(): value for key, value in mapping.items()}
