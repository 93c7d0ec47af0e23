"""Tests for platform detection and asset naming (infra/platforms.py)."""

from __future__ import annotations

import pytest

from ytd_audio.core.models import Platform
from ytd_audio.exceptions import UnsupportedPlatformError
from ytd_audio.infra.platforms import detect_platform, ffmpeg_platform_key, ytdlp_executable_name


class TestDetectPlatform:
    @pytest.mark.parametrize(
        ("system", "machine", "expected"),
        [
            ("Windows", "AMD64", Platform.WINDOWS_X64),
            ("Linux", "x86_64", Platform.LINUX_64),
            ("Linux", "i686", Platform.LINUX_32),
            ("Linux", "aarch64", Platform.LINUX_ARM64),
            ("Darwin", "x86_64", Platform.MACOS_X64),
            ("Darwin", "arm64", Platform.MACOS_X64),
        ],
    )
    def test_known(self, system: str, machine: str, expected: Platform) -> None:
        assert detect_platform(system, machine) is expected

    @pytest.mark.parametrize(
        ("system", "machine"),
        [("FreeBSD", "amd64"), ("Windows", "ARM64"), ("Linux", "riscv64")],
    )
    def test_unsupported(self, system: str, machine: str) -> None:
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            detect_platform(system, machine)
        assert exc_info.value.hint is not None


class TestAssetNames:
    @pytest.mark.parametrize(
        ("platform", "key", "exe"),
        [
            (Platform.WINDOWS_X64, "windows-64", "yt-dlp.exe"),
            (Platform.LINUX_32, "linux-32", "yt-dlp_linux"),
            (Platform.LINUX_64, "linux-64", "yt-dlp_linux"),
            (Platform.LINUX_ARM64, "linux-arm64", "yt-dlp_linux_aarch64"),
            (Platform.MACOS_X64, "osx-64", "yt-dlp_macos"),
        ],
    )
    def test_every_platform_mapped(self, platform: Platform, key: str, exe: str) -> None:
        assert ffmpeg_platform_key(platform) == key
        assert ytdlp_executable_name(platform) == exe
