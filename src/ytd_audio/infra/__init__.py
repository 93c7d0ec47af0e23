"""Infrastructure layer — external system integration.

This layer wraps all interaction with the network, the operating
system, and the tool binaries on disk.  Every raw third-party exception
must be caught here and re-raised as a
:class:`~ytd_audio.exceptions.YtdAudioError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from ytd_audio.infra.bootstrap import DependencyManager
from ytd_audio.infra.ffbinaries import FfBinaryRelease, PlatformBinary
from ytd_audio.infra.platforms import detect_platform, ffmpeg_platform_key, ytdlp_executable_name
from ytd_audio.infra.tool_detector import ToolStatus, detect_tool, require_tool

__all__: list[str] = [
    "DependencyManager",
    "FfBinaryRelease",
    "PlatformBinary",
    "ToolStatus",
    "detect_platform",
    "detect_tool",
    "ffmpeg_platform_key",
    "require_tool",
    "ytdlp_executable_name",
]
