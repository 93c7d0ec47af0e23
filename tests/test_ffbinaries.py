"""Tests for the ffbinaries API model (infra/ffbinaries.py)."""

from __future__ import annotations

import pytest

from ytd_audio.exceptions import DependencyDownloadError
from ytd_audio.infra.ffbinaries import FfBinaryRelease, PlatformBinary

_PAYLOAD = {
    "Version": "6.1",
    "Permalink": "https://ffbinaries.com/api/v1/version/6.1",
    "Bin": {
        "Linux-64": {
            "FFmpeg": "https://example.invalid/ffmpeg-6.1-linux-64.zip",
            "ffprobe": "https://example.invalid/ffprobe-6.1-linux-64.zip",
        },
        "osx-64": {"ffmpeg": "https://example.invalid/ffmpeg-6.1-osx-64.zip"},
        "broken": "not-an-object",
    },
}


class TestFromJson:
    def test_keys_matched_case_insensitively(self) -> None:
        release = FfBinaryRelease.from_json(_PAYLOAD)
        assert release.version == "6.1"
        assert release.bin["linux-64"] == PlatformBinary(
            ffmpeg="https://example.invalid/ffmpeg-6.1-linux-64.zip",
            ffprobe="https://example.invalid/ffprobe-6.1-linux-64.zip",
        )
        assert release.bin["osx-64"].ffprobe is None
        assert "broken" not in release.bin

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"permalink": "x"},
            {"version": "6.1", "permalink": "x", "bin": ["nope"]},
        ],
    )
    def test_malformed(self, payload: object) -> None:
        with pytest.raises(DependencyDownloadError):
            FfBinaryRelease.from_json(payload)


class TestFfmpegUrl:
    def test_found(self) -> None:
        release = FfBinaryRelease.from_json(_PAYLOAD)
        assert release.ffmpeg_url("LINUX-64").endswith("ffmpeg-6.1-linux-64.zip")

    def test_missing_platform(self) -> None:
        release = FfBinaryRelease.from_json(_PAYLOAD)
        with pytest.raises(DependencyDownloadError, match="no build for windows-64"):
            release.ffmpeg_url("windows-64")
