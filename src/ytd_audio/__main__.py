"""Support ``python -m ytd_audio``; identical to the ``ytd-audio`` script."""

from __future__ import annotations

from ytd_audio.cli.app import cli

if __name__ == "__main__":
    cli()
