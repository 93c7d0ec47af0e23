"""CLI application entry point and command routing for ytd-audio.

This module is the **sole error boundary** for the entire application.
It catches :class:`~ytd_audio.exceptions.YtdAudioError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core
  downloader and the infrastructure dependency manager.
* This module is the only place that starts an event loop and the only
  place that translates between the domain world and the OS process
  exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from ytd_audio.cli import exit_codes
from ytd_audio.cli.console import configure_logging, console
from ytd_audio.core.config import DownloaderConfig
from ytd_audio.core.models import AudioFormat, MultiDownloadResult
from ytd_audio.exceptions import YtdAudioError
from ytd_audio.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    The CLI supports:
    * ``ytd-audio <url>``          — download one video's audio
    * ``ytd-audio <url> --playlist`` — download every playlist entry
    * ``ytd-audio setup``          — fetch ffmpeg and yt-dlp
    * ``ytd-audio doctor``         — environment diagnostics
    * ``ytd-audio --version``
    """
    parser = argparse.ArgumentParser(
        prog="ytd-audio",
        description="Download YouTube audio with yt-dlp and ffmpeg.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="YouTube URL to download, 'setup' to fetch tools, or 'doctor' to run diagnostics.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=[fmt.value for fmt in AudioFormat],
        default=None,
        help="Audio format to extract. Prompts interactively when omitted.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Directory for downloaded audio (default: ./downloads).",
    )
    parser.add_argument(
        "--playlist",
        action="store_true",
        help="Treat the URL as a playlist and download every entry.",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Maximum concurrent yt-dlp processes (default: 5).",
    )
    parser.add_argument(
        "--dependency-dir",
        type=Path,
        default=None,
        help="Cache directory for ffmpeg / yt-dlp (default: ./dependencies).",
    )
    parser.add_argument("--ffmpeg", type=Path, default=None, help="Use this ffmpeg binary.")
    parser.add_argument("--ytdlp", type=Path, default=None, help="Use this yt-dlp binary.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never download missing tools.",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="With 'setup': re-download tools even when cached.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging.",
    )
    return parser


def _build_config(args: argparse.Namespace) -> DownloaderConfig:
    """Layer CLI flags over ``YTD_AUDIO_*`` environment settings."""
    if args.jobs is not None and args.jobs <= 0:
        raise YtdAudioError("--jobs must be a positive integer.")
    try:
        env_config = DownloaderConfig.from_env()
    except ValueError as exc:
        raise YtdAudioError(str(exc), hint="Fix or unset the YTD_AUDIO_* variable.") from exc
    return env_config.with_overrides(
        download_dir=args.output,
        dependency_dir=args.dependency_dir,
        max_concurrent=args.jobs,
        ffmpeg_path=args.ffmpeg,
        ytdlp_path=args.ytdlp,
        allow_download=False if args.offline else None,
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _create_downloader(config: DownloaderConfig):  # noqa: ANN202
    """Wire the infra resolver into the core downloader."""
    from ytd_audio.core.downloader import YoutubeDownloader
    from ytd_audio.infra.bootstrap import DependencyManager

    resolver = DependencyManager(
        config.dependency_dir,
        config.platform,
        allow_download=config.allow_download,
        ffmpeg_path=config.ffmpeg_path,
        ytdlp_path=config.ytdlp_path,
    )
    return YoutubeDownloader(resolver, config)


def _handle_download(url: str, args: argparse.Namespace, config: DownloaderConfig) -> int:
    """Dispatch a single-video or playlist audio download.

    Flow:
    1. Validate the URL.
    2. Pick the audio format (flag or interactive prompt).
    3. Resolve dependencies, then run yt-dlp with Rich progress.
    """
    from ytd_audio.cli.format_prompt import prompt_audio_format
    from ytd_audio.cli.progress import RichProgressHook
    from ytd_audio.core.downloader import validate_url

    target = validate_url(url)
    audio_format = (
        AudioFormat(args.format) if args.format else prompt_audio_format(target)
    )
    downloader = _create_downloader(config)
    is_playlist = args.playlist or "/playlist?" in target

    console.print(f"\n[bold]Resolving ffmpeg and yt-dlp…[/bold]  {config.dependency_dir}\n")

    if is_playlist:
        with RichProgressHook() as hook:
            results = asyncio.run(
                downloader.download_playlist(target, audio_format, on_line=hook.on_entry_line),
            )
        return _report_playlist(results)

    with RichProgressHook() as hook:
        asyncio.run(downloader.download_audio(target, audio_format, on_line=hook))

    console.print(f"\n[bold green]Download complete.[/bold green]  {config.download_dir}")
    return exit_codes.SUCCESS


def _report_playlist(results: list[MultiDownloadResult]) -> int:
    """Print per-entry playlist outcomes; non-zero exit if any failed."""
    failed = [result for result in results if not result.is_downloaded]
    console.print(
        f"\n[bold]{len(results) - len(failed)}/{len(results)} entries downloaded.[/bold]"
    )
    for result in failed:
        console.print(f"  [red]✗[/red] {result.url}: {result.error_message}")
    return exit_codes.GENERAL_ERROR if failed else exit_codes.SUCCESS


def _handle_setup(config: DownloaderConfig, refresh: bool) -> int:
    """Resolve (and if needed download) both tools, then report them."""
    downloader = _create_downloader(config)
    tools = asyncio.run(downloader.setup_dependencies(refresh=refresh))
    for tool in tools:
        console.print(f"[bold]{tool.name}[/bold]  {tool.executable}  [dim]({tool.source})[/dim]")
    return exit_codes.SUCCESS


def _handle_doctor(config: DownloaderConfig) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from ytd_audio.cli.doctor import run_doctor

    return run_doctor(config)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the ytd-audio CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.target is None:
        parser.print_help()
        return exit_codes.SUCCESS

    configure_logging(args.verbose)
    config = _build_config(args)
    command = args.target.lower()

    if command == "doctor":
        return _handle_doctor(config)
    if command == "setup":
        return _handle_setup(config, args.refresh)

    return _handle_download(args.target, args, config)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except YtdAudioError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
