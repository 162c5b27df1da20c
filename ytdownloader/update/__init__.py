"""
Self-Update Layer.

This package checks the release endpoint for a newer build, downloads its
installer and hands execution over to it.
"""

from .fetcher import DownloadTask, InstallerFetcher, ProgressEvent, ProgressSink
from .launcher import UpdateLauncher
from .release import ReleaseAsset, ReleaseClient, ReleaseDescriptor
from .service import UpdateOutcome, UpdateService
from .versioning import VersionGate, VersionTriple, is_newer

__all__ = [
    "DownloadTask",
    "InstallerFetcher",
    "ProgressEvent",
    "ProgressSink",
    "ReleaseAsset",
    "ReleaseClient",
    "ReleaseDescriptor",
    "UpdateLauncher",
    "UpdateOutcome",
    "UpdateService",
    "VersionGate",
    "VersionTriple",
    "is_newer",
]
