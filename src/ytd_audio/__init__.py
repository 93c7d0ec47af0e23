"""ytd-audio — YouTube audio downloader driven by the yt-dlp and ffmpeg executables.

The package bootstraps both tools, then shells out to them through a
bounded asynchronous process runner.
"""

from ytd_audio.version import __version__

__all__: list[str] = ["__version__"]
