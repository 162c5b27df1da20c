"""
Runs the self-update preamble: query, compare, download, hand off.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

from ytdownloader.exceptions import UpdateError, UpdateQueryError
from ytdownloader.utils.formatting import format_size
from ytdownloader.utils.structured_logger import UpdateLogger

from .fetcher import DownloadTask, InstallerFetcher
from .launcher import UpdateLauncher
from .release import ReleaseAsset, ReleaseClient, ReleaseDescriptor
from .versioning import VersionGate

log = logging.getLogger(__name__)


class UpdateOutcome(Enum):
    """Results of an update check that did not hand off to an installer."""

    SKIPPED = "skipped"  # Release endpoint unreachable or unreadable
    UP_TO_DATE = "up_to_date"


class UpdateService:
    """Coordinates VersionGate, ReleaseClient, InstallerFetcher and UpdateLauncher."""

    def __init__(
        self,
        gate: VersionGate,
        client: ReleaseClient,
        fetcher: InstallerFetcher,
        launcher: UpdateLauncher,
        staging_dir: Path,
        installer_suffixes: Iterable[str] = (".exe",),
        events: UpdateLogger | None = None,
        before_launch: Callable[[], None] | None = None,
    ):
        self._gate = gate
        self._client = client
        self._fetcher = fetcher
        self._launcher = launcher
        self.staging_dir = Path(staging_dir)
        self.installer_suffixes = tuple(installer_suffixes)
        self._events = events
        self._before_launch = before_launch

    async def get_latest_release(self) -> ReleaseDescriptor:
        """Queries the release endpoint. Raises UpdateQueryError on failure."""
        if self._events:
            self._events.check_started(self._gate.current_version, self._client.url)
        release = await self._client.fetch_latest()
        log.info(f"[Update] Latest release: v{release.version}")
        return release

    def is_update(self, release: ReleaseDescriptor) -> bool:
        return self._gate.update_available(release.version)

    async def download_installer(self, asset: ReleaseAsset) -> DownloadTask:
        """Downloads ``asset`` into the staging directory."""
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        destination = self.staging_dir / Path(asset.name).name
        log.info("[Update] Downloading installer…")
        try:
            task = await self._fetcher.fetch(asset.download_url, destination)
        except UpdateError as e:
            if self._events:
                self._events.download_failed(asset.download_url, str(e))
            raise

        log.info(f"[Update] Downloaded {asset.name} ({format_size(task.bytes_written)}).")
        if self._events:
            self._events.download_completed(
                asset.download_url, task.bytes_written, task.redirects_followed
            )
        return task

    async def check_for_updates(self) -> UpdateOutcome:
        """
        Runs the whole update pipeline.

        Returns an UpdateOutcome when no installer was launched. When a newer
        release is found and its installer starts, the process terminates and
        this coroutine never returns.

        ``before_launch`` runs just before the hand-off so live terminal output
        can be shut down first.

        Raises:
            NoInstallerAssetError: If the newer release has no installer.
            DownloadError, DownloadTransportError: If the download fails.
            LaunchError: If the installer cannot be started.
        """
        log.info("[Update] Checking for updates…")
        try:
            release = await self.get_latest_release()
        except UpdateQueryError as e:
            log.warning(f"[Update] Update check failed: {e}")
            if self._events:
                self._events.check_skipped(str(e))
            return UpdateOutcome.SKIPPED

        if not self.is_update(release):
            log.info("[Update] Already on latest version.")
            if self._events:
                self._events.up_to_date(self._gate.current_version, release.version)
            return UpdateOutcome.UP_TO_DATE

        log.info(f"[Update] New version v{release.version} available!")
        asset = release.installer_asset(self.installer_suffixes)
        if self._events:
            self._events.update_available(
                self._gate.current_version, release.version, asset.name
            )

        task = await self.download_installer(asset)
        if self._events:
            self._events.installer_launching(str(task.destination_path), release.version)
        if self._before_launch:
            self._before_launch()
        self._launcher.launch(task.destination_path)
