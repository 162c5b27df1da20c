"""
Serializes browser cookies into the Netscape cookie-jar format read by yt-dlp.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from ytdownloader.exceptions import ExportIOError

log = logging.getLogger(__name__)

NETSCAPE_HEADER = "# Netscape HTTP Cookie File"
GENERATOR_COMMENT = "# Generated by ytdownloader"


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


@dataclass(frozen=True)
class SessionCookie:
    """A single cookie as captured from the automated browser session."""

    domain: str
    host_only: bool
    path: str
    secure: bool
    expires_at: int  # Epoch seconds, 0 for session cookies
    name: str
    value: str

    @classmethod
    def from_browser(cls, raw: Mapping[str, Any]) -> "SessionCookie":
        """
        Builds a cookie from a browser cookie record (name, value, domain,
        path, expires, secure). Fractional expiry seconds are truncated and
        non-positive expiries mean a session cookie.
        """
        domain = raw.get("domain", "")
        expires = raw.get("expires") or 0
        return cls(
            domain=domain,
            host_only=not domain.startswith("."),
            path=raw.get("path") or "/",
            secure=bool(raw.get("secure", False)),
            expires_at=int(expires) if expires > 0 else 0,
            name=raw.get("name", ""),
            value=raw.get("value", ""),
        )

    def to_netscape_line(self) -> str:
        # The second column is "include subdomains", the inverse of host-only.
        return "\t".join(
            [
                self.domain,
                _flag(not self.host_only),
                self.path,
                _flag(self.secure),
                str(self.expires_at),
                self.name,
                self.value,
            ]
        )


class CookieExporter:
    """Writes cookie sets as Netscape cookie-jar files."""

    def __init__(self, generator_comment: str = GENERATOR_COMMENT):
        self.generator_comment = generator_comment

    def render(self, cookies: Iterable[SessionCookie]) -> str:
        lines = [NETSCAPE_HEADER, self.generator_comment]
        lines.extend(cookie.to_netscape_line() for cookie in cookies)
        return "\n".join(lines) + "\n"

    def export(self, cookies: Iterable[SessionCookie], destination_path: str | Path) -> Path:
        """
        Writes ``cookies`` in input order to ``destination_path``.

        Returns:
            The path that was written.

        Raises:
            ExportIOError: If the file cannot be written.
        """
        path = Path(destination_path)
        content = self.render(cookies)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
        except OSError as e:
            raise ExportIOError(f"Failed to write cookie file '{path}': {e}") from e

        log.info(f"[Auth] Cookies saved to {path}")
        return path
