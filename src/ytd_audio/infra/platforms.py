"""Infrastructure: host platform detection and per-platform asset names.

ffbinaries.com and the yt-dlp GitHub releases name their builds
differently; this module holds both lookup tables.
"""

from __future__ import annotations

import platform as _platform

from ytd_audio.core.models import Platform
from ytd_audio.exceptions import UnsupportedPlatformError

_FFMPEG_PLATFORM_KEYS: dict[Platform, str] = {
    Platform.WINDOWS_X64: "windows-64",
    Platform.LINUX_32: "linux-32",
    Platform.LINUX_64: "linux-64",
    Platform.LINUX_ARM64: "linux-arm64",
    Platform.MACOS_X64: "osx-64",
}

_YTDLP_EXECUTABLES: dict[Platform, str] = {
    Platform.WINDOWS_X64: "yt-dlp.exe",
    Platform.LINUX_32: "yt-dlp_linux",
    Platform.LINUX_64: "yt-dlp_linux",
    Platform.LINUX_ARM64: "yt-dlp_linux_aarch64",
    Platform.MACOS_X64: "yt-dlp_macos",
}

_X64_MACHINES = frozenset({"x86_64", "amd64", "x64"})
_X86_MACHINES = frozenset({"i386", "i486", "i586", "i686", "x86"})
_ARM64_MACHINES = frozenset({"aarch64", "arm64", "armv8l"})


def detect_platform(system: str | None = None, machine: str | None = None) -> Platform:
    """Map ``platform.system()`` / ``platform.machine()`` to a :class:`Platform`.

    macOS on Apple silicon maps to :attr:`Platform.MACOS_X64`: the
    published builds are universal or run under Rosetta.

    Raises
    ------
    UnsupportedPlatformError
        When no ffmpeg / yt-dlp build exists for the host.
    """
    system_name = (system if system is not None else _platform.system()).lower()
    machine_name = (machine if machine is not None else _platform.machine()).lower()

    if system_name == "windows" and machine_name in _X64_MACHINES:
        return Platform.WINDOWS_X64
    if system_name == "darwin":
        return Platform.MACOS_X64
    if system_name == "linux":
        if machine_name in _X64_MACHINES:
            return Platform.LINUX_64
        if machine_name in _X86_MACHINES:
            return Platform.LINUX_32
        if machine_name in _ARM64_MACHINES:
            return Platform.LINUX_ARM64

    raise UnsupportedPlatformError(
        f"No ffmpeg/yt-dlp builds are published for {system_name} ({machine_name}).",
        hint="Install both tools manually and pass their paths with --ffmpeg / --ytdlp.",
    )


def ffmpeg_platform_key(platform: Platform) -> str:
    """Key of *platform* in the ffbinaries ``bin`` mapping."""
    return _FFMPEG_PLATFORM_KEYS[platform]


def ytdlp_executable_name(platform: Platform) -> str:
    """File name of the standalone yt-dlp build for *platform*."""
    return _YTDLP_EXECUTABLES[platform]
