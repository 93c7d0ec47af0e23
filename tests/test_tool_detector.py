"""Tests for PATH detection (infra/tool_detector.py).

All tests mock :func:`shutil.which` — no system dependency.

Coverage:
* ``detect_tool`` when the tool is found or missing.
* ``require_tool`` happy path and ``DependencyNotFoundError``.
* Platform-specific install commands for ffmpeg and yt-dlp.
* ``ToolStatus`` frozen dataclass.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from ytd_audio.exceptions import DependencyNotFoundError
from ytd_audio.infra.tool_detector import (
    FFMPEG,
    YTDLP,
    ToolStatus,
    _platform_install_commands,
    detect_tool,
    require_tool,
)


# ---------------------------------------------------------------------------
# detect_tool
# ---------------------------------------------------------------------------

class TestDetectTool:
    @patch("ytd_audio.infra.tool_detector.shutil.which")
    def test_found(self, mock_which: object) -> None:
        mock_which.return_value = "/usr/bin/ffmpeg"  # type: ignore[union-attr]
        status = detect_tool(FFMPEG)

        assert status.name == FFMPEG
        assert status.found is True
        assert isinstance(status.path, Path)
        assert status.version_hint.startswith("found at")
        assert status.install_commands == ()

    @patch("ytd_audio.infra.tool_detector.shutil.which")
    def test_not_found(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        status = detect_tool(YTDLP)

        assert status.found is False
        assert status.path is None
        assert status.version_hint == "not found"
        assert len(status.install_commands) > 0

    @patch("ytd_audio.infra.tool_detector.shutil.which")
    def test_probes_requested_name(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        detect_tool(YTDLP)
        mock_which.assert_called_once_with("yt-dlp")  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# require_tool
# ---------------------------------------------------------------------------

class TestRequireTool:
    @patch("ytd_audio.infra.tool_detector.shutil.which")
    def test_found_returns_path(self, mock_which: object) -> None:
        mock_which.return_value = "/usr/bin/yt-dlp"  # type: ignore[union-attr]
        assert isinstance(require_tool(YTDLP), Path)

    @patch("ytd_audio.infra.tool_detector.shutil.which")
    def test_missing_raises_with_setup_hint(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        with pytest.raises(DependencyNotFoundError, match="ffmpeg is not installed") as exc_info:
            require_tool(FFMPEG)
        assert exc_info.value.hint is not None
        assert "ytd-audio setup" in exc_info.value.hint


# ---------------------------------------------------------------------------
# Platform install commands
# ---------------------------------------------------------------------------

class TestPlatformInstallCommands:
    @patch("ytd_audio.infra.tool_detector.platform.system", return_value="Windows")
    def test_windows_ffmpeg(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands(FFMPEG)
        assert "winget install Gyan.FFmpeg" in cmds
        assert "choco install ffmpeg" in cmds

    @patch("ytd_audio.infra.tool_detector.platform.system", return_value="Linux")
    def test_linux_ffmpeg(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands(FFMPEG)
        assert any("apt" in c for c in cmds)
        assert any("dnf" in c for c in cmds)

    @patch("ytd_audio.infra.tool_detector.platform.system", return_value="Darwin")
    def test_darwin_ffmpeg(self, _mock_sys: object) -> None:
        assert _platform_install_commands(FFMPEG) == ("brew install ffmpeg",)

    @patch("ytd_audio.infra.tool_detector.platform.system", return_value="Linux")
    def test_ytdlp_uses_pip(self, _mock_sys: object) -> None:
        assert _platform_install_commands(YTDLP) == ("pip install yt-dlp",)

    @patch("ytd_audio.infra.tool_detector.platform.system", return_value="Darwin")
    def test_darwin_ytdlp(self, _mock_sys: object) -> None:
        assert "brew install yt-dlp" in _platform_install_commands(YTDLP)


# ---------------------------------------------------------------------------
# ToolStatus dataclass
# ---------------------------------------------------------------------------

class TestToolStatus:
    def test_frozen(self) -> None:
        status = ToolStatus(
            name=FFMPEG,
            found=True,
            path=Path("/usr/bin/ffmpeg"),
            version_hint="found",
            install_commands=(),
        )
        with pytest.raises(AttributeError):
            status.found = False  # type: ignore[misc]
