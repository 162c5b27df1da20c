"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Callable

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm, Prompt

from ytdownloader import __version__
from ytdownloader.auth import PlaywrightDriver, SessionAuthenticator
from ytdownloader.cookies import CookieExporter
from ytdownloader.exceptions import LaunchError, UpdateError
from ytdownloader.media import (
    FormatChoice,
    build_ytdlp_args,
    is_supported_url,
    resolve_executable,
    run_ytdlp,
)
from ytdownloader.models.config import AppConfig
from ytdownloader.storage.config_manager import ConfigManager
from ytdownloader.update import (
    InstallerFetcher,
    ReleaseClient,
    UpdateLauncher,
    UpdateOutcome,
    UpdateService,
    VersionGate,
    is_newer,
)
from ytdownloader.utils.formatting import format_duration
from ytdownloader.utils.structured_logger import (
    AuthLogger,
    UpdateLogger,
    create_structured_logger,
)

from .formatters import print_config
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("ytdownloader")

app = typer.Typer(
    name="ytdownloader",
    help=(
        "Download YouTube videos with yt-dlp, signing in through a browser for"
        " age-restricted videos. Run without a command for the interactive flow."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

COOKIE_FILE_NAME = "yt_cookies.txt"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "ytdownloader"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(cli_options: dict | None = None) -> AppConfig:
    options = {k: v for k, v in (cli_options or {}).items() if v is not None}
    return ConfigManager(CONFIG_FILE).load_config(options)


def _event_loggers(ctx: typer.Context) -> tuple[UpdateLogger | None, AuthLogger | None]:
    obj = ctx.obj or {}
    return obj.get("update_events"), obj.get("auth_events")


def build_update_service(
    config: AppConfig,
    progress: ProgressManager | None = None,
    events: UpdateLogger | None = None,
    before_launch: Callable[[], None] | None = None,
) -> UpdateService:
    return UpdateService(
        gate=VersionGate(config.current_version),
        client=ReleaseClient(config.update_url),
        fetcher=InstallerFetcher(max_redirects=config.max_redirects, progress=progress),
        launcher=UpdateLauncher(),
        staging_dir=config.staging_path,
        installer_suffixes=config.installer_suffixes,
        events=events,
        before_launch=before_launch,
    )


def build_authenticator(
    config: AppConfig, events: AuthLogger | None = None
) -> SessionAuthenticator:
    return SessionAuthenticator(
        driver_factory=lambda: PlaywrightDriver(
            headless=config.headless, user_agent=config.user_agent
        ),
        credentials=config.credentials(),
        timeouts=config.login_timeouts(),
        events=events,
    )


async def run_update_preamble(
    config: AppConfig, events: UpdateLogger | None = None
) -> UpdateOutcome:
    """Runs the update pipeline; returns only if no installer was launched."""
    async with ProgressManager(console) as progress:
        service = build_update_service(
            config, progress, events, before_launch=progress.stop
        )
        return await service.check_for_updates()


async def login_and_export(
    config: AppConfig,
    url: str,
    output: Path | None = None,
    events: AuthLogger | None = None,
) -> Path:
    """Signs in, visits ``url`` and writes the session cookies; returns the file path."""
    authenticator = build_authenticator(config, events)
    cookies = await authenticator.authenticate(url)
    destination = output or config.staging_path / COOKIE_FILE_NAME
    return CookieExporter().export(cookies, destination)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    log_dir: Path | None = typer.Option(
        None,
        "--log-dir",
        help="Also write structured JSON event logs into this directory.",
    ),
):
    """YouTube Downloader CLI"""
    if version:
        console.print(f"[bold]ytdownloader[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("ytdownloader").setLevel(log_level)

    base, update_events, auth_events = create_structured_logger(
        log_dir=log_dir, enable_json=log_dir is not None
    )
    base.enable_console = verbose >= 2
    base.set_session_context(version=__version__)
    ctx.obj = {"update_events": update_events, "auth_events": auth_events}
    ctx.call_on_close(base.close)

    if ctx.invoked_subcommand is None:
        run_command(ctx, url=None, audio_only=None, use_login=None, skip_update=False)


@app.command()
def init(
    email: str = typer.Argument(..., help="Email of the account used for logins."),
    password: str = typer.Option(
        ..., prompt=True, hide_input=True, help="Password of that account."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration without asking."
    ),
):
    """Write a configuration file with login credentials."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_new_config({"email": email, "password": password})
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command(name="show-config")
def show_config():
    """Display the effective configuration (secrets hidden)."""
    print_config(CONFIG_FILE, _load_config())


@app.command()
def update(
    ctx: typer.Context,
    check_only: bool = typer.Option(
        False, "--check-only", help="Only report whether a newer release exists."
    ),
):
    """Check for a newer release and install it."""
    config = _load_config()
    update_events, _ = _event_loggers(ctx)

    if check_only:

        async def _check():
            service = build_update_service(config, events=update_events)
            return await service.get_latest_release()

        release = asyncio.run(_check())
        if is_newer(release.version, config.current_version):
            console.print(
                f"[green]⬆️  New version v{release.version} available "
                f"(current: v{config.current_version}).[/green]"
            )
        else:
            console.print(f"[green]✓ v{config.current_version} is the latest version.[/green]")
        return

    outcome = asyncio.run(run_update_preamble(config, update_events))
    if outcome is UpdateOutcome.SKIPPED:
        raise typer.Exit(code=1)


@app.command()
def login(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="YouTube video URL to confirm access to."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Where to write the Netscape cookie file."
    ),
    headless: bool | None = typer.Option(
        None, "--headless/--no-headless", help="Run the browser without a window."
    ),
):
    """Sign in through a browser and export the session cookies."""
    config = _load_config({"headless": headless})
    _, auth_events = _event_loggers(ctx)
    cookie_file = asyncio.run(login_and_export(config, url, output, auth_events))
    console.print(f"[green]✓ Cookie file written to[/green] {cookie_file}")


@app.command(name="run")
def run_command(
    ctx: typer.Context,
    url: str | None = typer.Option(None, "--url", help="Video URL (prompted if omitted)."),
    audio_only: bool | None = typer.Option(
        None, "--audio-only/--video", help="Download audio only (prompted if omitted)."
    ),
    use_login: bool | None = typer.Option(
        None, "--login/--no-login", help="Sign in first (prompted if omitted)."
    ),
    skip_update: bool = typer.Option(
        False, "--skip-update", help="Do not check for a newer release first."
    ),
):
    """Interactive flow: update check, prompts, optional login, then yt-dlp."""
    config = _load_config()
    update_events, auth_events = _event_loggers(ctx)

    if config.check_updates and not skip_update:
        try:
            asyncio.run(run_update_preamble(config, update_events))
        except LaunchError:
            raise
        except UpdateError as e:
            log.warning(f"[Update] Update check failed: {e}")

    executable = resolve_executable(config.ytdlp_path)

    while not url or not is_supported_url(url):
        if url:
            console.print("[red]✗ Invalid URL[/red]")
        url = Prompt.ask("YouTube video URL").strip()
    if audio_only is None:
        choice = FormatChoice(
            Prompt.ask(
                "Format ([cyan]v+a[/cyan] = Video+Audio MP4, [cyan]audio[/cyan] = Audio only)",
                choices=[c.value for c in FormatChoice],
                default=FormatChoice.VIDEO_AUDIO.value,
            )
        )
    else:
        choice = FormatChoice.AUDIO if audio_only else FormatChoice.VIDEO_AUDIO
    if use_login is None:
        use_login = Confirm.ask(
            "Login with Google to access age-restricted videos?", default=False
        )

    async def _run_async() -> int:
        cookie_file = None
        if use_login:
            cookie_file = await login_and_export(config, url, events=auth_events)

        download_dir = config.download_path
        download_dir.mkdir(parents=True, exist_ok=True)
        args = build_ytdlp_args(
            url,
            choice,
            download_dir,
            cookie_file=cookie_file,
            ffmpeg_location=config.ffmpeg_path,
        )
        return await run_ytdlp(executable, args)

    start_time = time.monotonic()
    exit_code = asyncio.run(_run_async())
    elapsed = time.monotonic() - start_time

    if exit_code == 0:
        console.print(
            f"\n[bold green]✅ Download complete![/bold green] "
            f"[dim]({format_duration(elapsed)}, saved to {config.download_path})[/dim]"
        )
    else:
        console.print(f"\n[bold red]❌ yt-dlp exited with code {exit_code}[/bold red]")
        raise typer.Exit(code=exit_code)
