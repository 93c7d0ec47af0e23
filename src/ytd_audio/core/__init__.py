"""Core / service layer — process execution and download orchestration.

Rules
-----
* No ``print()`` calls; diagnostics go through :mod:`logging`.
* No network I/O; dependencies arrive through a
  :class:`~ytd_audio.core.protocols.DependencyResolver`.
* No imports from ``cli`` or ``infra``.
"""

from ytd_audio.core.admission import AdmissionGate
from ytd_audio.core.config import DownloaderConfig
from ytd_audio.core.downloader import YoutubeDownloader, validate_url
from ytd_audio.core.models import (
    AudioFormat,
    MultiDownloadResult,
    Platform,
    ProcessInvocation,
    ProcessResult,
    ProcessStatus,
    ResolvedTool,
)
from ytd_audio.core.process_runner import ProcessRunner
from ytd_audio.core.protocols import DependencyResolver

__all__: list[str] = [
    "AdmissionGate",
    "AudioFormat",
    "DependencyResolver",
    "DownloaderConfig",
    "MultiDownloadResult",
    "Platform",
    "ProcessInvocation",
    "ProcessResult",
    "ProcessRunner",
    "ProcessStatus",
    "ResolvedTool",
    "YoutubeDownloader",
    "validate_url",
]
