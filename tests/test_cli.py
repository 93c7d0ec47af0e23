"""Tests for CLI wiring and the error boundary (cli/app.py).

The downloader is replaced by a ``MagicMock`` whose coroutine methods
are ``AsyncMock`` objects; the progress display and the format prompt
are patched out.  No network, no terminal interaction.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ytd_audio.cli import exit_codes
from ytd_audio.cli.app import _build_config, _build_parser, cli, main
from ytd_audio.core.models import AudioFormat, MultiDownloadResult, ResolvedTool
from ytd_audio.exceptions import InvalidURLError, ToolExecutionError, YtdAudioError

_URL = "https://www.youtube.com/watch?v=abc123"
_PLAYLIST = "https://www.youtube.com/playlist?list=PL123"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("DOWNLOAD_DIR", "DEPENDENCY_DIR", "MAX_CONCURRENT", "FFMPEG", "YTDLP", "OFFLINE"):
        monkeypatch.delenv(f"YTD_AUDIO_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def downloader() -> MagicMock:
    mock = MagicMock()
    mock.download_audio = AsyncMock()
    mock.download_playlist = AsyncMock(return_value=[])
    mock.setup_dependencies = AsyncMock(
        return_value=(
            ResolvedTool("ffmpeg", Path("/deps/ffmpeg"), source="cache"),
            ResolvedTool("yt-dlp", Path("/deps/yt-dlp_linux"), source="download"),
        ),
    )
    with patch("ytd_audio.cli.app._create_downloader", return_value=mock):
        yield mock


@pytest.fixture()
def progress() -> MagicMock:
    with patch("ytd_audio.cli.progress.RichProgressHook") as hook_cls:
        hook = MagicMock()
        hook_cls.return_value.__enter__ = MagicMock(return_value=hook)
        hook_cls.return_value.__exit__ = MagicMock(return_value=False)
        yield hook


# ---------------------------------------------------------------------------
# Config layering
# ---------------------------------------------------------------------------

class TestBuildConfig:
    def _args(self, *argv: str) -> argparse.Namespace:
        return _build_parser().parse_args([_URL, *argv])

    def test_flags_override_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YTD_AUDIO_MAX_CONCURRENT", "2")
        monkeypatch.setenv("YTD_AUDIO_DOWNLOAD_DIR", "/env/music")

        config = _build_config(self._args("-j", "4", "--offline"))
        assert config.max_concurrent == 4
        assert config.download_dir == Path("/env/music")
        assert config.allow_download is False

    def test_output_and_tool_paths(self) -> None:
        config = _build_config(
            self._args("-o", "/music", "--ffmpeg", "/bin/ff", "--ytdlp", "/bin/yt"),
        )
        assert config.download_dir == Path("/music")
        assert config.ffmpeg_path == Path("/bin/ff")
        assert config.ytdlp_path == Path("/bin/yt")
        assert config.allow_download is True

    def test_non_positive_jobs(self) -> None:
        with pytest.raises(YtdAudioError, match="--jobs"):
            _build_config(self._args("-j", "0"))

    def test_bad_environment_is_domain_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YTD_AUDIO_MAX_CONCURRENT", "lots")
        with pytest.raises(YtdAudioError, match="MAX_CONCURRENT"):
            _build_config(self._args())

    def test_unknown_format_rejected_by_parser(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args([_URL, "-f", "midi"])


# ---------------------------------------------------------------------------
# Download routing
# ---------------------------------------------------------------------------

class TestDownloadCommand:
    def test_single_video_with_format_flag(
        self, downloader: MagicMock, progress: MagicMock,
    ) -> None:
        with patch("ytd_audio.cli.format_prompt.prompt_audio_format") as prompt:
            code = main([_URL, "-f", "flac"])

        assert code == exit_codes.SUCCESS
        prompt.assert_not_called()
        downloader.download_audio.assert_awaited_once_with(
            _URL, AudioFormat.FLAC, on_line=progress,
        )

    def test_prompts_when_format_omitted(
        self, downloader: MagicMock, progress: MagicMock,
    ) -> None:
        with patch(
            "ytd_audio.cli.format_prompt.prompt_audio_format", return_value=AudioFormat.OPUS,
        ) as prompt:
            main([_URL])

        prompt.assert_called_once_with(_URL)
        assert downloader.download_audio.await_args.args[1] is AudioFormat.OPUS

    def test_invalid_url_fails_before_prompt(self, downloader: MagicMock) -> None:
        with patch("ytd_audio.cli.format_prompt.prompt_audio_format") as prompt:
            with pytest.raises(InvalidURLError):
                main(["not-a-url"])

        prompt.assert_not_called()
        downloader.download_audio.assert_not_awaited()

    def test_playlist_url_detected(self, downloader: MagicMock, progress: MagicMock) -> None:
        downloader.download_playlist.return_value = [
            MultiDownloadResult("https://y/a", True, message="Downloaded https://y/a"),
        ]
        code = main([_PLAYLIST, "-f", "mp3"])

        assert code == exit_codes.SUCCESS
        downloader.download_playlist.assert_awaited_once_with(
            _PLAYLIST, AudioFormat.MP3, on_line=progress.on_entry_line,
        )
        downloader.download_audio.assert_not_awaited()

    def test_playlist_with_failures_is_general_error(
        self, downloader: MagicMock, progress: MagicMock,
    ) -> None:
        downloader.download_playlist.return_value = [
            MultiDownloadResult("https://y/a", True),
            MultiDownloadResult("https://y/b", False, error_message="removed"),
        ]
        code = main([_URL, "--playlist", "-f", "mp3"])

        assert code == exit_codes.GENERAL_ERROR


# ---------------------------------------------------------------------------
# Setup routing
# ---------------------------------------------------------------------------

class TestSetupCommand:
    def test_setup_resolves_dependencies(self, downloader: MagicMock) -> None:
        assert main(["setup"]) == exit_codes.SUCCESS
        downloader.setup_dependencies.assert_awaited_once_with(refresh=False)

    def test_refresh_flag(self, downloader: MagicMock) -> None:
        main(["setup", "--refresh"])
        downloader.setup_dependencies.assert_awaited_once_with(refresh=True)


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def _run_cli(self, argv: list[str], monkeypatch: pytest.MonkeyPatch) -> int:
        monkeypatch.setattr("sys.argv", ["ytd-audio", *argv])
        with pytest.raises(SystemExit) as exc_info:
            cli()
        return int(exc_info.value.code)

    def test_domain_error_is_general_error(
        self,
        downloader: MagicMock,
        progress: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        downloader.download_audio.side_effect = ToolExecutionError(
            "yt-dlp failed", hint="Check the URL.",
        )
        assert self._run_cli([_URL, "-f", "mp3"], monkeypatch) == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "yt-dlp failed" in err
        assert "Check the URL." in err

    def test_keyboard_interrupt(
        self, downloader: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        with patch(
            "ytd_audio.cli.format_prompt.prompt_audio_format", side_effect=KeyboardInterrupt,
        ):
            code = self._run_cli([_URL], monkeypatch)
        assert code == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(
        self, downloader: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        downloader.setup_dependencies.side_effect = RuntimeError("kaboom")
        assert self._run_cli(["setup"], monkeypatch) == exit_codes.UNEXPECTED_ERROR

    def test_success_exits_zero(self, downloader: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
        assert self._run_cli(["setup"], monkeypatch) == exit_codes.SUCCESS
