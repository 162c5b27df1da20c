"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ytdownloader.auth.flow import LoginFlowState
from ytdownloader.exceptions import AuthError
from ytdownloader.models.config import AppConfig
from ytdownloader.utils.formatting import mask_secret

_AUTH_STAGE_HINTS = {
    LoginFlowState.START: "• The sign-in page did not show an email field in time.",
    LoginFlowState.EMAIL_ENTERED: (
        "• The password field never appeared. The account may require a "
        "verification step that cannot be scripted."
    ),
    LoginFlowState.HOMEPAGE_CONFIRMED: (
        "• YouTube did not show a signed-in session. Check the password."
    ),
    LoginFlowState.TARGET_PAGE_CONFIRMED: (
        "• The video page kept redirecting. Check that the URL is correct."
    ),
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Run `ytdownloader init --force` to write a fresh configuration.",
            "• Run `ytdownloader show-config` to inspect the effective settings.",
        ],
        "AuthError": [
            "• Run `ytdownloader login <URL>` without --headless to watch the browser.",
            "• Verify the account credentials in the configuration file.",
        ],
        "BrowserError": [
            "• Make sure the browser is installed: `playwright install chromium`.",
        ],
        "UpdateQueryError": [
            "• Check your internet connection.",
            "• The release server might be temporarily unavailable.",
        ],
        "NoInstallerAssetError": [
            "• The latest release has no installer for this platform yet.",
            "• Adjust `installer_suffixes` in the configuration if needed.",
        ],
        "DownloadError": [
            "• The installer download was rejected by the server.",
            "• Please try again in a few minutes.",
        ],
        "TooManyRedirectsError": [
            "• The download URL redirects in a loop.",
            "• Raise `max_redirects` only if the host is known to chain redirects.",
        ],
        "DownloadTransportError": [
            "• A network connection issue occurred during the download.",
            "• Check your internet connection and try again.",
        ],
        "LaunchError": [
            "• The installer could not be started. Run it manually from the temp folder.",
        ],
        "ExportIOError": [
            "• Check that the cookie file location is writable.",
        ],
        "MediaToolError": [
            "• Install yt-dlp or point `ytdlp_path` at the executable.",
        ],
    }

    suggestions = list(
        suggestions_map.get(error_type, ["• Run the command with -vv for detailed logs."])
    )
    if isinstance(error, AuthError) and error.stage in _AUTH_STAGE_HINTS:
        suggestions.insert(0, _AUTH_STAGE_HINTS[error.stage])

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config: AppConfig):
    """Displays the effective configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key in sorted(AppConfig.get_ini_keys()):
        value = getattr(config, key)
        if key == "password":
            value = "********" if value.get_secret_value() else "(not set)"
        elif key == "email":
            value = mask_secret(value)
        elif isinstance(value, list):
            value = ", ".join(value)
        content += f"{key} = {escape(str(value))}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
            expand=False,
        )
    )
