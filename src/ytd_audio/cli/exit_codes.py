"""Exit-code constants used by the CLI layer.

Every exit path of ``ytd-audio`` returns one of these values, so
scripts wrapping the tool can tell a failed download from an
interrupted one.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Command completed; for playlists, every entry downloaded."""

GENERAL_ERROR: int = 1
"""A YtdAudioError was caught, a doctor check failed, or a playlist
entry could not be downloaded.  A user-facing message was displayed."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""
