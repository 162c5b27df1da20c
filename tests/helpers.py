from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from ytdownloader.auth.browser import DialogEvent
from ytdownloader.update.fetcher import DownloadTask, ProgressEvent
from ytdownloader.update.release import ReleaseDescriptor


class FakeBrowserDriver:
    """
    In-memory BrowserDriver.

    ``missing`` selectors time out in wait_for_element. ``present`` selectors
    answer True in has_element on every page, ``page_elements`` only on the
    given URL. ``landings`` maps a URL to the URLs the page ends up on for
    successive navigations. ``submits`` maps a call key such as
    "press:input[type=\"password\"]:Enter" to the URL that action navigates to,
    and ``dialogs`` maps a call key to a dialog that blocks the call until it
    is dismissed.
    """

    def __init__(
        self,
        missing: set[str] | None = None,
        present: set[str] | None = None,
        page_elements: dict[str, set[str]] | None = None,
        submits: dict[str, str] | None = None,
        landings: dict[str, list[str]] | None = None,
        dialogs: dict[str, DialogEvent] | None = None,
        cookies: list[dict[str, Any]] | None = None,
        start_error: Exception | None = None,
        cookie_error: Exception | None = None,
    ) -> None:
        self.events: asyncio.Queue[DialogEvent] = asyncio.Queue()
        self.missing = missing or set()
        self.present = present or set()
        self.page_elements = page_elements or {}
        self.submits = submits or {}
        self.landings = {url: list(urls) for url, urls in (landings or {}).items()}
        self.dialogs = dialogs or {}
        self.cookies = cookies or []
        self.start_error = start_error
        self.cookie_error = cookie_error
        self.calls: list[tuple[str, ...]] = []
        self.dismissed: list[DialogEvent] = []
        self.closed = False
        self._url = "about:blank"

    def _submit(self, key: str) -> None:
        if key in self.submits:
            self._url = self.submits[key]

    async def _maybe_block_on_dialog(self, key: str) -> None:
        event = self.dialogs.pop(key, None)
        if event is None:
            return
        event.handle = asyncio.Event()
        await self.events.put(event)
        await event.handle.wait()

    async def start(self) -> None:
        self.calls.append(("start",))
        if self.start_error is not None:
            raise self.start_error

    async def navigate(self, url: str, timeout: float) -> None:
        self.calls.append(("navigate", url))
        queued = self.landings.get(url)
        self._url = queued.pop(0) if queued else url
        await self._maybe_block_on_dialog(f"navigate:{url}")

    async def wait_for_element(self, selector: str, timeout: float) -> None:
        self.calls.append(("wait_for_element", selector, str(timeout)))
        if selector in self.missing:
            raise TimeoutError(f"Timed out waiting for {selector}")

    async def has_element(self, selector: str) -> bool:
        self.calls.append(("has_element", selector))
        return selector in self.present or selector in self.page_elements.get(self._url, set())

    async def type(self, selector: str, text: str) -> None:
        self.calls.append(("type", selector, text))

    async def click(self, selector: str) -> None:
        self.calls.append(("click", selector))
        self._submit(f"click:{selector}")
        await self._maybe_block_on_dialog(f"click:{selector}")

    async def press(self, selector: str, key: str) -> None:
        self.calls.append(("press", selector, key))
        self._submit(f"press:{selector}:{key}")

    async def wait_for_navigation(self, away_from: str, timeout: float) -> None:
        self.calls.append(("wait_for_navigation", away_from))
        if self._url == away_from:
            raise TimeoutError(f"Still on {away_from}")

    async def current_url(self) -> str:
        return self._url

    async def dismiss_dialog(self, event: DialogEvent) -> None:
        self.dismissed.append(event)
        if event.handle is not None:
            event.handle.set()

    async def read_cookies(self) -> list[dict[str, Any]]:
        self.calls.append(("read_cookies",))
        if self.cookie_error is not None:
            raise self.cookie_error
        return list(self.cookies)

    async def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True

    def called(self, name: str, *args: str) -> bool:
        return any(call[0] == name and call[1 : 1 + len(args)] == args for call in self.calls)

    def count(self, name: str, *args: str) -> int:
        return sum(1 for call in self.calls if call[0] == name and call[1 : 1 + len(args)] == args)


class StaticReleaseClient:
    def __init__(self, release: ReleaseDescriptor | None = None, error: Exception | None = None):
        self.url = "https://updates.example/latest"
        self.release = release
        self.error = error
        self.calls = 0

    async def fetch_latest(self) -> ReleaseDescriptor:
        self.calls += 1
        if self.error is not None:
            raise self.error
        assert self.release is not None
        return self.release


class RecordingFetcher:
    def __init__(self, payload: bytes = b"installer", error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.fetched: list[tuple[str, Path]] = []

    async def fetch(self, source_url: str, destination_path: str | Path) -> DownloadTask:
        destination = Path(destination_path)
        self.fetched.append((source_url, destination))
        if self.error is not None:
            raise self.error
        destination.write_bytes(self.payload)
        return DownloadTask(
            source_url=source_url,
            destination_path=destination,
            expected_byte_count=len(self.payload),
            bytes_written=len(self.payload),
        )


class RecordingLauncher:
    def __init__(self) -> None:
        self.launched: list[Path] = []

    def launch(self, installer_path: str | Path) -> None:
        self.launched.append(Path(installer_path))
        raise SystemExit(0)


class RecordingProgressSink:
    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def on_progress(self, event: ProgressEvent) -> None:
        self.events.append(event)


__all__ = [
    "FakeBrowserDriver",
    "RecordingFetcher",
    "RecordingLauncher",
    "RecordingProgressSink",
    "StaticReleaseClient",
]
