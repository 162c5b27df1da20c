"""
ytdownloader: a self-updating YouTube download helper that can sign in
through a browser and export the session as a cookie file for yt-dlp.
"""

__version__ = "1.6.0"
