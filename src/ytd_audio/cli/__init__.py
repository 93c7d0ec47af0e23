"""CLI layer — argument parsing, prompts, progress display, and the error boundary.

Commands: download a URL (single video or playlist), ``setup`` to
fetch ffmpeg / yt-dlp, and ``doctor`` for diagnostics.  This package
may import from ``core``, ``infra``, and ``utils``; nothing imports
from ``cli``.
"""
