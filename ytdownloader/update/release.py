"""
Queries the remote release descriptor and picks the installer asset from it.
"""

import asyncio
import logging
from typing import Any, Iterable

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from ytdownloader.exceptions import NoInstallerAssetError, UpdateQueryError

log = logging.getLogger(__name__)

_REQUEST_HEADERS = {
    "User-Agent": "YTDownloader-Updater",
    "Accept": "application/vnd.github.v3+json",
}


class ReleaseAsset(BaseModel):
    """A named downloadable file attached to a published release."""

    name: str
    download_url: str = Field(alias="browser_download_url")

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True


class ReleaseDescriptor(BaseModel):
    """The parts of a release query response the updater relies on."""

    tag_version: str = Field(alias="tag_name")
    assets: list[ReleaseAsset] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        str_strip_whitespace = True

    @classmethod
    def from_payload(cls, payload: Any) -> "ReleaseDescriptor":
        """
        Builds a descriptor from a decoded JSON document.

        Raises:
            UpdateQueryError: If required fields are missing or malformed.
        """
        if not isinstance(payload, dict):
            raise UpdateQueryError("Release response is not a JSON object.")
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise UpdateQueryError(f"Malformed release response: {e}") from e

    @property
    def version(self) -> str:
        """The tag with a single leading 'v' removed, e.g. 'v1.8.0' -> '1.8.0'."""
        return self.tag_version[1:] if self.tag_version.startswith("v") else self.tag_version

    def installer_asset(self, suffixes: Iterable[str] = (".exe",)) -> ReleaseAsset:
        """
        Returns the first asset whose name ends with one of ``suffixes``.

        Raises:
            NoInstallerAssetError: If no asset matches.
        """
        lowered = tuple(s.lower() for s in suffixes)
        for asset in self.assets:
            if asset.name.lower().endswith(lowered):
                return asset
        raise NoInstallerAssetError(
            f"Release v{self.version} has no installer asset "
            f"(looked for: {', '.join(lowered) or 'nothing'})."
        )


class ReleaseClient:
    """Fetches the latest release descriptor from the update endpoint."""

    def __init__(
        self,
        url: str,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 15,
    ):
        self.url = url
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout, connect=10)

    async def fetch_latest(self) -> ReleaseDescriptor:
        """
        Fetches and parses the release descriptor.

        Raises:
            UpdateQueryError: On any network, HTTP status or parsing failure.
        """
        log.debug(f"Querying release endpoint {self.url}")
        try:
            if self._session is not None:
                payload = await self._get_json(self._session)
            else:
                async with aiohttp.ClientSession(timeout=self._timeout) as session:
                    payload = await self._get_json(session)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpdateQueryError(f"Could not reach release endpoint: {e}") from e
        except ValueError as e:
            raise UpdateQueryError(f"Release response is not valid JSON: {e}") from e

        return ReleaseDescriptor.from_payload(payload)

    async def _get_json(self, session: aiohttp.ClientSession) -> Any:
        async with session.get(self.url, headers=_REQUEST_HEADERS) as response:
            if response.status != 200:
                raise UpdateQueryError(f"HTTP {response.status}")
            return await response.json(content_type=None)
