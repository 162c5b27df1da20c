"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ytdownloader.auth.flow import LoginFlowState


class YTDownloaderError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(YTDownloaderError):
    """Raised for issues related to configuration loading or validation."""


class UpdateError(YTDownloaderError):
    """Base class for failures in the self-update pipeline."""


class UpdateQueryError(UpdateError):
    """Raised when the release descriptor cannot be fetched or parsed."""


class NoInstallerAssetError(UpdateError):
    """Raised when a release carries no asset that looks like an installer."""


class DownloadError(UpdateError):
    """Raised when the installer download ends with a non-success HTTP status."""

    def __init__(self, status: int, message: str | None = None):
        self.status = status
        super().__init__(message or f"Installer download failed with HTTP {status}")


class TooManyRedirectsError(DownloadError):
    """Raised when a download follows more redirects than allowed."""

    def __init__(self, status: int, hops: int):
        self.hops = hops
        super().__init__(status, f"Gave up after following {hops} redirects")


class DownloadTransportError(UpdateError):
    """Raised when the connection fails while downloading the installer."""


class LaunchError(UpdateError):
    """Raised when the downloaded installer cannot be started."""


class AuthError(YTDownloaderError):
    """
    Raised when the browser login flow fails.

    The ``stage`` attribute holds the login state that was being attempted.
    """

    def __init__(self, stage: "LoginFlowState", message: str):
        self.stage = stage
        super().__init__(f"Login failed at stage '{stage.value}': {message}")


class LoginFlowError(YTDownloaderError):
    """Raised on an illegal login state transition."""


class ExportIOError(YTDownloaderError):
    """Raised when the cookie file cannot be written."""


class MediaToolError(YTDownloaderError):
    """Raised when the external media tool cannot be started."""


class BrowserError(YTDownloaderError):
    """Raised when the automated browser fails for a reason other than a timeout."""
