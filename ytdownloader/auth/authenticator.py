"""
Signs in to the identity provider through an automated browser and captures
the resulting session cookies.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, SecretStr

from ytdownloader.cookies.exporter import SessionCookie
from ytdownloader.exceptions import AuthError, BrowserError
from ytdownloader.utils.structured_logger import AuthLogger

from .browser import BrowserDriver, DialogEvent
from .flow import LoginFlow, LoginFlowState

log = logging.getLogger(__name__)

T = TypeVar("T")


class Credentials(BaseModel):
    """The service account used for the login."""

    email: str
    password: SecretStr

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True


class LoginSelectors(BaseModel):
    """Pages and element selectors of the identity provider and the target site."""

    sign_in_url: str = "https://accounts.google.com/signin/v2/identifier"
    email_input: str = 'input[type="email"]'
    email_next: str = "#identifierNext"
    password_input: str = 'input[type="password"]'
    stay_signed_in: str = "#save-credential-defaults"
    passkey_dismiss: str = 'button:has-text("Not now"), button:has-text("Skip")'
    landing_url: str = "https://www.youtube.com/"
    authenticated_marker: str = "button#avatar-btn"


class LoginTimeouts(BaseModel):
    """Bounded waits of the login flow, in seconds."""

    navigation: float = 60
    element: float = 30
    banner: float = 5
    settle: float = 2


def _normalized_host(netloc: str) -> str:
    host = netloc.lower().split(":")[0]
    for prefix in ("www.", "m."):
        if host.startswith(prefix):
            return host[len(prefix):]
    return host


def is_same_resource(current_url: str, target_url: str) -> bool:
    """
    Returns True if ``current_url`` still points at ``target_url``: same host
    (ignoring www./m.), same path, and every target query parameter present
    with the same value.
    """
    current, target = urlsplit(current_url), urlsplit(target_url)
    if _normalized_host(current.netloc) != _normalized_host(target.netloc):
        return False
    if current.path.rstrip("/") != target.path.rstrip("/"):
        return False
    current_query = parse_qs(current.query)
    return all(
        current_query.get(key) == values for key, values in parse_qs(target.query).items()
    )


class _LoginRun:
    """One pass through the login flow over a started browser session."""

    def __init__(
        self,
        driver: BrowserDriver,
        credentials: Credentials,
        selectors: LoginSelectors,
        timeouts: LoginTimeouts,
        events: AuthLogger | None,
    ):
        self.driver = driver
        self.credentials = credentials
        self.selectors = selectors
        self.timeouts = timeouts
        self.events = events
        self.flow = LoginFlow()
        self.dismissed_dialogs: list[DialogEvent] = []
        self.submitted_from = ""

    async def _handle_event(self, event: DialogEvent) -> None:
        log.debug(f"[Auth] Dismissing {event.kind} dialog: {event.message!r}")
        await self.driver.dismiss_dialog(event)
        self.dismissed_dialogs.append(event)
        if self.events:
            self.events.dialog_dismissed(event.kind, event.message)

    async def drain_events(self) -> None:
        while not self.driver.events.empty():
            await self._handle_event(self.driver.events.get_nowait())

    async def step(self, operation: Awaitable[T]) -> T:
        """
        Awaits a driver operation while answering any page dialogs delivered
        in the meantime, so a dialog cannot stall the operation.
        """
        pending = asyncio.ensure_future(operation)
        next_event: asyncio.Future | None = None
        try:
            while not pending.done():
                next_event = asyncio.ensure_future(self.driver.events.get())
                await asyncio.wait(
                    {pending, next_event}, return_when=asyncio.FIRST_COMPLETED
                )
                if next_event.done():
                    await self._handle_event(next_event.result())
            return pending.result()
        finally:
            for future in (pending, next_event):
                if future is not None and not future.done():
                    future.cancel()

    # Stage entry actions, in flow order.

    async def enter_email(self) -> None:
        await self.step(self.driver.navigate(self.selectors.sign_in_url, self.timeouts.navigation))
        await self.step(
            self.driver.wait_for_element(self.selectors.email_input, self.timeouts.element)
        )
        await self.step(self.driver.type(self.selectors.email_input, self.credentials.email))
        await self.step(self.driver.click(self.selectors.email_next))

    async def enter_password(self) -> None:
        await self.step(
            self.driver.wait_for_element(self.selectors.password_input, self.timeouts.element)
        )
        await self.step(
            self.driver.type(
                self.selectors.password_input, self.credentials.password.get_secret_value()
            )
        )
        self.submitted_from = await self.step(self.driver.current_url())
        await self.step(self.driver.press(self.selectors.password_input, "Enter"))

    async def settle_after_password(self) -> None:
        await self.step(
            self.driver.wait_for_navigation(self.submitted_from, self.timeouts.navigation)
        )

    async def handle_consent(self) -> None:
        if not await self.step(self.driver.has_element(self.selectors.stay_signed_in)):
            log.debug("[Auth] No 'stay signed in' prompt shown.")
            return
        consent_page = await self.step(self.driver.current_url())
        await self.step(self.driver.click(self.selectors.stay_signed_in))
        await self.step(self.driver.wait_for_navigation(consent_page, self.timeouts.navigation))

    async def handle_passkey_banner(self) -> None:
        try:
            await self.step(
                self.driver.wait_for_element(
                    self.selectors.passkey_dismiss, self.timeouts.banner
                )
            )
        except TimeoutError:
            log.debug("[Auth] No passkey banner shown.")
            return
        await self.step(self.driver.click(self.selectors.passkey_dismiss))

    async def confirm_homepage(self) -> None:
        await self.step(self.driver.navigate(self.selectors.landing_url, self.timeouts.navigation))
        await self.step(
            self.driver.wait_for_element(
                self.selectors.authenticated_marker, self.timeouts.element
            )
        )

    async def confirm_target(self, target_url: str) -> None:
        log.info(f"[Auth] Navigating to video URL to confirm age: {target_url}")
        while True:
            await self.step(self.driver.navigate(target_url, self.timeouts.navigation))
            landed = await self.driver.current_url()
            if is_same_resource(landed, target_url):
                break
            if not self.flow.can_retry_target:
                raise BrowserError(f"Ended up on {landed} instead of the target page.")
            log.warning(f"[Auth] Landed on {landed} instead of the video, retrying once.")
            if self.events:
                self.events.target_retry(target_url, landed)
            self.flow.retry_target()
        await asyncio.sleep(self.timeouts.settle)

    async def capture_cookies(self) -> list[SessionCookie]:
        raw_cookies = await self.step(self.driver.read_cookies())
        return [SessionCookie.from_browser(raw) for raw in raw_cookies]


class SessionAuthenticator:
    """
    Drives the login flow against the identity provider and returns the
    cookie set of the signed-in session.
    """

    def __init__(
        self,
        driver_factory: Callable[[], BrowserDriver],
        credentials: Credentials,
        selectors: LoginSelectors | None = None,
        timeouts: LoginTimeouts | None = None,
        events: AuthLogger | None = None,
    ):
        """
        Initializes the authenticator.

        Args:
            driver_factory: Creates an unstarted browser driver per login.
            credentials: The account to sign in with.
            selectors: Identity provider pages and selectors.
            timeouts: Bounded wait durations.
            events: Optional structured event logger.
        """
        self._driver_factory = driver_factory
        self._credentials = credentials
        self.selectors = selectors or LoginSelectors()
        self.timeouts = timeouts or LoginTimeouts()
        self._events = events
        self.last_flow: LoginFlow | None = None
        self.last_dismissed_dialogs: list[DialogEvent] = []

    async def authenticate(self, target_url: str) -> list[SessionCookie]:
        """
        Signs in and returns the session cookies after visiting ``target_url``.

        Raises:
            AuthError: With ``stage`` set to the step that failed.
        """
        log.info("[Auth] Using configured credentials to log in...")
        started = time.monotonic()
        driver = self._driver_factory()
        run = _LoginRun(driver, self._credentials, self.selectors, self.timeouts, self._events)
        self.last_flow = run.flow
        self.last_dismissed_dialogs = run.dismissed_dialogs

        stages: list[Callable[[], Awaitable[None]]] = [
            run.enter_email,
            run.enter_password,
            run.settle_after_password,
            run.handle_consent,
            run.handle_passkey_banner,
            run.confirm_homepage,
        ]

        try:
            try:
                await driver.start()
                for stage in stages:
                    self._stage_entered(run.flow.state)
                    await stage()
                    run.flow.advance()
                self._stage_entered(run.flow.state)
                await run.confirm_target(target_url)
                cookies = await run.capture_cookies()
                run.flow.advance()
                await run.drain_events()
            except (TimeoutError, asyncio.TimeoutError, BrowserError) as e:
                raise self._fail(run.flow, str(e)) from e
        finally:
            await driver.close()

        if self._events:
            self._events.cookies_captured(len(cookies), time.monotonic() - started)
        log.info(f"[Auth] Captured {len(cookies)} cookies.")
        return cookies

    def _stage_entered(self, stage: LoginFlowState) -> None:
        log.debug(f"[Auth] Stage: {stage.value}")
        if self._events:
            self._events.stage_entered(stage.value)

    def _fail(self, flow: LoginFlow, message: str) -> AuthError:
        stage = flow.fail()
        if self._events:
            self._events.stage_failed(stage.value, message)
        return AuthError(stage, message)
