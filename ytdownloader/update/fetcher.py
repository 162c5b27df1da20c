"""
Streams a remote file to disk, following redirects by hand so the number of
hops stays bounded, and removes any partial output when the download fails.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import urljoin

import aiofiles
import aiohttp

from ytdownloader.exceptions import (
    DownloadError,
    DownloadTransportError,
    TooManyRedirectsError,
)

log = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 10


@dataclass(frozen=True)
class ProgressEvent:
    """Delivered each time a chunk of a sized download reaches the disk."""

    bytes_written: int
    expected_byte_count: int
    chunk_size: int

    @property
    def fraction(self) -> float:
        if self.expected_byte_count <= 0:
            return 0.0
        return min(self.bytes_written / self.expected_byte_count, 1.0)


class ProgressSink(Protocol):
    """Anything that wants to observe download progress."""

    def on_progress(self, event: ProgressEvent) -> None: ...


@dataclass
class DownloadTask:
    """State of a single installer download."""

    source_url: str
    destination_path: Path
    expected_byte_count: int | None = None
    bytes_written: int = 0
    redirects_followed: int = 0

    def record_chunk(self, size: int) -> ProgressEvent | None:
        """
        Accounts for ``size`` more bytes on disk.

        Returns a progress event when the total size is known, None otherwise.
        """
        self.bytes_written += size
        if self.expected_byte_count is None:
            return None
        return ProgressEvent(
            bytes_written=self.bytes_written,
            expected_byte_count=self.expected_byte_count,
            chunk_size=size,
        )


def _remove_partial(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class InstallerFetcher:
    """Downloads release assets with bounded redirect following."""

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        progress: ProgressSink | None = None,
    ):
        self._session = session
        self.max_redirects = max_redirects
        self.progress = progress

    async def fetch(self, source_url: str, destination_path: str | Path) -> DownloadTask:
        """
        Downloads ``source_url`` into ``destination_path``.

        Returns:
            The completed DownloadTask.

        Raises:
            DownloadError: On a non-2xx terminal response.
            TooManyRedirectsError: When the redirect chain exceeds the limit.
            DownloadTransportError: On connection or timeout failures.

        Whatever the failure, the destination path does not exist afterwards.
        """
        task = DownloadTask(source_url=source_url, destination_path=Path(destination_path))
        try:
            if self._session is not None:
                await self._follow(self._session, task)
            else:
                timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    await self._follow(session, task)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await asyncio.to_thread(_remove_partial, task.destination_path)
            raise DownloadTransportError(f"Installer download failed: {e}") from e
        except BaseException:
            await asyncio.to_thread(_remove_partial, task.destination_path)
            raise

        log.debug(
            f"Downloaded {task.bytes_written} bytes to '{task.destination_path}' "
            f"after {task.redirects_followed} redirect(s)."
        )
        return task

    async def _follow(self, session: aiohttp.ClientSession, task: DownloadTask) -> None:
        url = task.source_url
        while True:
            async with session.get(url, allow_redirects=False) as response:
                location = response.headers.get("Location")
                if 300 <= response.status < 400 and location:
                    if task.redirects_followed >= self.max_redirects:
                        raise TooManyRedirectsError(response.status, task.redirects_followed)
                    url = urljoin(url, location)
                    task.redirects_followed += 1
                    log.debug(f"Following redirect {task.redirects_followed} to {url}")
                    continue

                if not 200 <= response.status < 300:
                    raise DownloadError(response.status)

                if response.content_length is not None:
                    task.expected_byte_count = response.content_length
                await self._stream_to_disk(response, task)
                return

    async def _stream_to_disk(
        self, response: aiohttp.ClientResponse, task: DownloadTask
    ) -> None:
        async with aiofiles.open(task.destination_path, "wb") as f:
            async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                await f.write(chunk)
                event = task.record_chunk(len(chunk))
                if event is not None and self.progress is not None:
                    self.progress.on_progress(event)
