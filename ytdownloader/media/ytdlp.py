"""
Builds the yt-dlp command line and runs it as a child process.
"""

import asyncio
import logging
import re
import shutil
from enum import Enum
from pathlib import Path

from ytdownloader.exceptions import MediaToolError

log = logging.getLogger(__name__)


class FormatChoice(str, Enum):
    """Output choices offered to the user."""

    VIDEO_AUDIO = "v+a"
    AUDIO = "audio"


FORMAT_SELECTORS = {
    FormatChoice.VIDEO_AUDIO: "bestvideo[ext=mp4][vcodec^=avc1]+bestaudio[ext=m4a]/best[ext=mp4]",
    FormatChoice.AUDIO: "bestaudio[ext=m4a]",
}

OUTPUT_TEMPLATE = "%(title)s.%(ext)s"


def build_ytdlp_args(
    url: str,
    choice: FormatChoice,
    download_dir: Path,
    cookie_file: Path | None = None,
    ffmpeg_location: Path | None = None,
) -> list[str]:
    """Returns the yt-dlp argument list (without the executable)."""
    args = ["--no-mtime", "--restrict-filenames"]
    if cookie_file is not None:
        args += ["--cookies", str(cookie_file)]
    args += ["-f", FORMAT_SELECTORS[choice]]
    if choice is FormatChoice.VIDEO_AUDIO:
        args += ["--merge-output-format", "mp4", "--remux-video", "mp4"]
    if ffmpeg_location is not None:
        args += ["--ffmpeg-location", str(ffmpeg_location)]
    args += ["-o", str(Path(download_dir) / OUTPUT_TEMPLATE), url]
    return args


def resolve_executable(name_or_path: str) -> str:
    """
    Resolves yt-dlp from an explicit path or from PATH.

    Raises:
        MediaToolError: If it cannot be found.
    """
    candidate = Path(name_or_path).expanduser()
    if candidate.is_file():
        return str(candidate)
    found = shutil.which(name_or_path)
    if not found:
        raise MediaToolError(f"'{name_or_path}' was not found. Install yt-dlp or set ytdlp_path.")
    return found


async def run_ytdlp(executable: str, args: list[str]) -> int:
    """
    Runs yt-dlp with inherited stdio and returns its exit code.

    Raises:
        MediaToolError: If the process cannot be started.
    """
    log.info(f"[Download] Running: {Path(executable).name} {' '.join(args)}")
    try:
        process = await asyncio.create_subprocess_exec(executable, *args)
    except OSError as e:
        raise MediaToolError(f"Failed to start {executable}: {e}") from e
    return await process.wait()


_SUPPORTED_URL = re.compile(r"^https?://(www\.)?youtube\.com")


def is_supported_url(url: str) -> bool:
    """Returns True for youtube.com URLs, the only site the login flow targets."""
    return bool(_SUPPORTED_URL.match(url.strip()))
