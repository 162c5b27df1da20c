from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from aiohttp import test_utils, web

from helpers import RecordingProgressSink
from ytdownloader.exceptions import (
    DownloadError,
    DownloadTransportError,
    TooManyRedirectsError,
)
from ytdownloader.update.fetcher import DownloadTask, InstallerFetcher

PAYLOAD = bytes(range(256)) * 1200  # ~300 KB, several chunks


def _redirect_app() -> web.Application:
    async def chain(request: web.Request) -> web.Response:
        remaining = int(request.match_info["remaining"])
        if remaining == 0:
            return web.Response(body=PAYLOAD, content_type="application/octet-stream")
        return web.Response(status=302, headers={"Location": f"/chain/{remaining - 1}"})

    async def loop(request: web.Request) -> web.Response:
        return web.Response(status=301, headers={"Location": "/loop"})

    async def missing(request: web.Request) -> web.Response:
        return web.Response(status=404, text="not found")

    app = web.Application()
    app.router.add_get("/chain/{remaining}", chain)
    app.router.add_get("/loop", loop)
    app.router.add_get("/missing", missing)
    return app


async def _fetch(path: str, destination: Path, **kwargs) -> DownloadTask:
    async with test_utils.TestServer(_redirect_app()) as server:
        fetcher = InstallerFetcher(**kwargs)
        return await fetcher.fetch(str(server.make_url(path)), destination)


@pytest.mark.parametrize("hops", [0, 1, 4])
def test_fetch_follows_redirect_chain(tmp_path: Path, hops: int) -> None:
    destination = tmp_path / "setup.exe"

    task = asyncio.run(_fetch(f"/chain/{hops}", destination))

    assert destination.read_bytes() == PAYLOAD
    assert task.redirects_followed == hops
    assert task.bytes_written == len(PAYLOAD)
    assert task.expected_byte_count == len(PAYLOAD)


def test_fetch_terminal_error_status_leaves_no_file(tmp_path: Path) -> None:
    destination = tmp_path / "setup.exe"
    destination.write_bytes(b"stale")

    with pytest.raises(DownloadError) as excinfo:
        asyncio.run(_fetch("/missing", destination))

    assert excinfo.value.status == 404
    assert not destination.exists()


def test_fetch_gives_up_after_max_redirects(tmp_path: Path) -> None:
    destination = tmp_path / "setup.exe"

    with pytest.raises(TooManyRedirectsError) as excinfo:
        asyncio.run(_fetch("/loop", destination, max_redirects=3))

    assert excinfo.value.hops == 3
    assert excinfo.value.status == 301
    assert not destination.exists()


def test_fetch_reports_progress_per_chunk(tmp_path: Path) -> None:
    sink = RecordingProgressSink()

    asyncio.run(_fetch("/chain/1", tmp_path / "setup.exe", progress=sink))

    assert sink.events
    written = [event.bytes_written for event in sink.events]
    assert written == sorted(written)
    assert sum(event.chunk_size for event in sink.events) == len(PAYLOAD)
    assert sink.events[-1].bytes_written == len(PAYLOAD)
    assert sink.events[-1].fraction == 1.0
    assert all(event.expected_byte_count == len(PAYLOAD) for event in sink.events)


def test_fetch_removes_partial_file_when_interrupted(tmp_path: Path) -> None:
    destination = tmp_path / "setup.exe"

    class ExplodingSink:
        def on_progress(self, event) -> None:
            assert destination.exists()
            raise RuntimeError("sink failed")

    with pytest.raises(RuntimeError):
        asyncio.run(_fetch("/chain/0", destination, progress=ExplodingSink()))

    assert not destination.exists()


def test_fetch_connection_failure_is_transport_error(tmp_path: Path) -> None:
    destination = tmp_path / "setup.exe"
    fetcher = InstallerFetcher()

    with pytest.raises(DownloadTransportError):
        asyncio.run(fetcher.fetch("http://127.0.0.1:9/setup.exe", destination))

    assert not destination.exists()


def test_record_chunk_without_known_size_emits_nothing(tmp_path: Path) -> None:
    task = DownloadTask(source_url="u", destination_path=tmp_path / "f")

    assert task.record_chunk(10) is None
    assert task.bytes_written == 10

    task.expected_byte_count = 40
    event = task.record_chunk(10)

    assert event is not None
    assert event.fraction == 0.5
