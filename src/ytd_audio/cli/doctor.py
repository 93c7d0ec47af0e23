"""``ytd-audio doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies ytd-audio's requirements:
where ffmpeg and yt-dlp would be taken from, and whether the host
platform has downloadable builds.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  Nothing is downloaded or
executed here.
"""

from __future__ import annotations

import importlib.util
import platform
import sys

from ytd_audio.cli import exit_codes
from ytd_audio.cli.console import console
from ytd_audio.core.config import DownloaderConfig
from ytd_audio.exceptions import UnsupportedPlatformError
from ytd_audio.infra.bootstrap import DependencyManager
from ytd_audio.infra.platforms import detect_platform
from ytd_audio.infra.tool_detector import FFMPEG, YTDLP, detect_tool
from ytd_audio.version import __version__

_OK = "[green]OK[/green]"
_WARN = "[yellow]WARN[/yellow]"
_FAIL = "[red]FAIL[/red]"


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = _OK if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _tool_check(name: str, manager: DependencyManager) -> tuple[str, str, str]:
    """Return (label, value, status) for where *name* would be resolved from."""
    explicit = manager.explicit_path(name)
    if explicit is not None:
        if explicit.is_file():
            return name, f"explicit: {explicit}", _OK
        return name, f"explicit: {explicit} (missing)", _FAIL

    cached = manager.find_cached(name)
    if cached is not None:
        return name, f"cached: {cached}", _OK

    status_obj = detect_tool(name)
    if status_obj.found:
        path_str = str(status_obj.path) if status_obj.path else "found"
        return name, f"PATH: {path_str}", _OK

    if name == YTDLP and importlib.util.find_spec("yt_dlp") is not None:
        return name, f"python module {_ytdlp_module_version()}", _OK

    if manager.allow_download:
        return name, "missing (run 'ytd-audio setup')", _WARN
    return name, "missing (downloads disabled)", _FAIL


def _ytdlp_module_version() -> str:
    try:
        from yt_dlp.version import __version__ as ydl_ver
    except ImportError:
        return "unknown"
    return ydl_ver


def _platform_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the dependency-build platform row."""
    try:
        detected = detect_platform()
    except UnsupportedPlatformError:
        return "Builds", "no prebuilt ffmpeg/yt-dlp", _WARN
    return "Builds", detected.value, _OK


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    release = platform.release()
    machine = platform.machine()
    value = f"{system_display} {release} ({machine})"
    return "OS", value, _OK


def _ytdaudio_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the ytd-audio version row."""
    return "ytd-audio", __version__, _OK


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    for word in ("FAIL", "WARN", "OK"):
        if word in status:
            return word
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\nytd-audio doctor", file=sys.stderr)
    print("=" * 72, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<48} {'Status':<8}", file=sys.stderr)
    print("-" * 72, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<48} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def collect_checks(config: DownloaderConfig | None = None) -> list[tuple[str, str, str]]:
    """Run every diagnostic and return ``(label, value, status)`` rows."""
    config = config if config is not None else DownloaderConfig.from_env()
    manager = DependencyManager(
        config.dependency_dir,
        config.platform,
        allow_download=config.allow_download,
        ffmpeg_path=config.ffmpeg_path,
        ytdlp_path=config.ytdlp_path,
    )
    return [
        _ytdaudio_version_check(),
        _python_version_check(),
        _tool_check(FFMPEG, manager),
        _tool_check(YTDLP, manager),
        _platform_check(),
        _os_check(),
    ]


def run_doctor(config: DownloaderConfig | None = None) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check fails,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    checks = collect_checks(config)
    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="ytd-audio doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)

        for label, value, status in checks:
            table.add_row(label, value, status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    if has_failure:
        if rich_available:
            console.print("[bold red]Some checks failed.[/bold red]")
        else:
            print("Some checks failed.", file=sys.stderr)
        return exit_codes.GENERAL_ERROR

    if rich_available:
        console.print("[bold green]All checks passed.[/bold green]")
    else:
        print("All checks passed.", file=sys.stderr)
    return exit_codes.SUCCESS
