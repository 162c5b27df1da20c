"""
Media Tool Layer.

The boundary to yt-dlp, which performs the actual download and remuxing.
"""

from .ytdlp import (
    FormatChoice,
    build_ytdlp_args,
    is_supported_url,
    resolve_executable,
    run_ytdlp,
)

__all__ = [
    "FormatChoice",
    "build_ytdlp_args",
    "is_supported_url",
    "resolve_executable",
    "run_ytdlp",
]
