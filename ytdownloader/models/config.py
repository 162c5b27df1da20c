"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from ytdownloader import __version__
from ytdownloader.auth.authenticator import Credentials, LoginTimeouts
from ytdownloader.auth.stealth import DEFAULT_USER_AGENT
from ytdownloader.exceptions import ConfigurationError

DEFAULT_UPDATE_URL = (
    "https://api.github.com/repos/NotJoeyBlack/NotJoeyBlack-YTDownloader/releases/latest"
)


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Self-update
    current_version: str = __version__
    update_url: str = DEFAULT_UPDATE_URL
    installer_suffixes: list[str] = Field(default_factory=lambda: [".exe"])
    max_redirects: int = 10
    staging_dir: str = Field(default_factory=tempfile.gettempdir)
    check_updates: bool = True

    # Browser login
    email: str = ""
    password: SecretStr = SecretStr("")
    headless: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    navigation_timeout: float = 60
    element_timeout: float = 30
    banner_timeout: float = 5
    settle_delay: float = 2

    # Media tool
    ytdlp_path: str = "yt-dlp"
    ffmpeg_location: str = ""
    download_dir: str = "~/Downloads"

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("installer_suffixes")
    @classmethod
    def validate_suffixes(cls, v: list[str]) -> list[str]:
        """Normalizes suffixes to lowercase with a leading dot."""
        cleaned = [s.strip().lower() for s in v if s.strip()]
        suffixes = [s if s.startswith(".") else f".{s}" for s in cleaned]
        if not suffixes:
            raise ValueError("At least one installer suffix is required.")
        return suffixes

    @field_validator("max_redirects")
    @classmethod
    def validate_redirects(cls, v: int) -> int:
        if v < 1 or v > 50:
            raise ValueError("max_redirects must be between 1 and 50.")
        return v

    @field_validator("navigation_timeout", "element_timeout", "banner_timeout")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be positive.")
        return v

    @field_validator("settle_delay")
    @classmethod
    def validate_settle(cls, v: float) -> float:
        if v < 0:
            raise ValueError("settle_delay cannot be negative.")
        return v

    @model_validator(mode="after")
    def validate_update_url(self) -> "AppConfig":
        if self.check_updates and not self.update_url.startswith(("https://", "http://")):
            raise ValueError(f"update_url must be an http(s) URL, got: {self.update_url!r}")
        return self

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password.get_secret_value())

    def credentials(self) -> Credentials:
        """
        Returns the login credentials.

        Raises:
            ConfigurationError: If email or password is not configured.
        """
        if not self.has_credentials:
            raise ConfigurationError(
                "Login credentials are not configured. Set them with 'ytdownloader init' "
                "or the YTDOWNLOADER_EMAIL / YTDOWNLOADER_PASSWORD environment variables."
            )
        return Credentials(email=self.email, password=self.password)

    def login_timeouts(self) -> LoginTimeouts:
        return LoginTimeouts(
            navigation=self.navigation_timeout,
            element=self.element_timeout,
            banner=self.banner_timeout,
            settle=self.settle_delay,
        )

    @property
    def staging_path(self) -> Path:
        return Path(self.staging_dir).expanduser()

    @property
    def download_path(self) -> Path:
        return Path(self.download_dir).expanduser()

    @property
    def ffmpeg_path(self) -> Path | None:
        return Path(self.ffmpeg_location).expanduser() if self.ffmpeg_location else None

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "current_version"}
        return {key for key in cls.model_fields if key not in internal_fields}
