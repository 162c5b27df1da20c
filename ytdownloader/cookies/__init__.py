"""
Cookie Layer.

Models captured browser cookies and writes them out for external tools.
"""

from .exporter import CookieExporter, SessionCookie

__all__ = ["CookieExporter", "SessionCookie"]
