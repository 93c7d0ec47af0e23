"""Custom exception hierarchy for ytd-audio.

All exceptions that cross layer boundaries must inherit from
:class:`YtdAudioError`.  Raw third-party exceptions (aiohttp, OS and
zip errors) must NEVER propagate beyond the infrastructure layer — they
must be caught and re-raised as a typed subclass defined here.

The process runner itself never raises for process faults; it reports
them on a :class:`~ytd_audio.core.models.ProcessResult`.  The
high-level downloader is what turns a failed result into
:class:`ToolExecutionError`.

Hierarchy
---------
YtdAudioError
├── InvalidURLError
├── DependencyNotFoundError
├── DependencyDownloadError
├── UnsupportedPlatformError
├── ToolExecutionError
├── PlaylistExtractionError
├── DownloadCancelledError
├── AdmissionGateError
└── EnvironmentError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ytd_audio.core.models import ProcessResult


class YtdAudioError(Exception):
    """Base exception for all ytd-audio errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- URL validation --------------------------------------------------------

class InvalidURLError(YtdAudioError):
    """Raised when the provided URL fails validation."""


# --- Dependencies ----------------------------------------------------------

class DependencyNotFoundError(YtdAudioError):
    """Raised when a required executable cannot be located."""


class DependencyDownloadError(YtdAudioError):
    """Raised when fetching or unpacking a dependency binary fails."""


class UnsupportedPlatformError(YtdAudioError):
    """Raised when no dependency build exists for the host platform."""


# --- External tool execution -----------------------------------------------

class ToolExecutionError(YtdAudioError):
    """Raised when an external tool fails to start or exits non-zero."""

    def __init__(
        self,
        message: str,
        *,
        result: ProcessResult | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.result: ProcessResult | None = result
        """The failed invocation's result, when one was produced."""


class PlaylistExtractionError(YtdAudioError):
    """Raised when the entries of a playlist cannot be listed."""


class DownloadCancelledError(YtdAudioError):
    """Raised when the caller's cancel signal stopped a download."""


class AdmissionGateError(YtdAudioError):
    """Raised when the admission gate is released past its ceiling."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(YtdAudioError):
    """Raised when a required runtime dependency is not available."""


def append_ytdlp_upgrade_suggestion(hint: str) -> str:
    """Append yt-dlp upgrade guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also try updating yt-dlp:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    ytd-audio setup --refresh",
        )
    )
