"""
Browser automation surface used by the login flow, and its Playwright
implementation.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Protocol

from playwright.async_api import Browser, BrowserContext, Dialog, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ytdownloader.exceptions import BrowserError

from .stealth import (
    AUTOMATION_LAUNCH_ARGS,
    DEFAULT_USER_AGENT,
    build_countermeasures_script,
)

log = logging.getLogger(__name__)


@dataclass
class DialogEvent:
    """A native page dialog (alert, confirm, prompt, beforeunload) awaiting an answer."""

    kind: str
    message: str
    handle: Any = field(default=None, repr=False)


class BrowserDriver(Protocol):
    """
    Capabilities the login flow needs from a browser.

    Timeouts are in seconds; exceeding one raises the builtin TimeoutError.
    Page dialogs are delivered as DialogEvent messages on ``events``.
    """

    events: "asyncio.Queue[DialogEvent]"

    async def start(self) -> None: ...

    async def navigate(self, url: str, timeout: float) -> None: ...

    async def wait_for_element(self, selector: str, timeout: float) -> None: ...

    async def has_element(self, selector: str) -> bool: ...

    async def type(self, selector: str, text: str) -> None: ...

    async def click(self, selector: str) -> None: ...

    async def press(self, selector: str, key: str) -> None: ...

    async def wait_for_navigation(self, away_from: str, timeout: float) -> None: ...

    async def current_url(self) -> str: ...

    async def dismiss_dialog(self, event: DialogEvent) -> None: ...

    async def read_cookies(self) -> list[dict[str, Any]]: ...

    async def close(self) -> None: ...


@asynccontextmanager
async def _playwright_errors(action: str) -> AsyncIterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise TimeoutError(f"Timed out while trying to {action}") from e
    except PlaywrightError as e:
        raise BrowserError(f"Browser failed to {action}: {e.message}") from e


class PlaywrightDriver:
    """A Chromium session driven through Playwright's async API."""

    def __init__(
        self,
        headless: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        locale: str = "en-US",
        typing_delay_ms: int = 50,
    ):
        self.headless = headless
        self.user_agent = user_agent
        self.locale = locale
        self.typing_delay_ms = typing_delay_ms
        self.events: asyncio.Queue[DialogEvent] = asyncio.Queue()

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserError("Browser session has not been started.")
        return self._page

    async def start(self) -> None:
        """Launches Chromium and installs the stealth and passkey countermeasures."""
        async with _playwright_errors("launch the browser"):
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=list(AUTOMATION_LAUNCH_ARGS)
            )
            self._context = await self._browser.new_context(
                user_agent=self.user_agent, locale=self.locale, no_viewport=True
            )
            await self._context.add_init_script(build_countermeasures_script())
            self._page = await self._context.new_page()
        self._page.on("dialog", self._on_dialog)
        log.debug(f"Browser started (headless={self.headless})")

    def _on_dialog(self, dialog: Dialog) -> None:
        self.events.put_nowait(DialogEvent(dialog.type, dialog.message, dialog))

    async def navigate(self, url: str, timeout: float) -> None:
        async with _playwright_errors(f"open {url}"):
            await self.page.goto(url, wait_until="load", timeout=timeout * 1000)

    async def wait_for_element(self, selector: str, timeout: float) -> None:
        async with _playwright_errors(f"find '{selector}'"):
            await self.page.locator(selector).first.wait_for(
                state="visible", timeout=timeout * 1000
            )

    async def has_element(self, selector: str) -> bool:
        async with _playwright_errors(f"look up '{selector}'"):
            return await self.page.query_selector(selector) is not None

    async def type(self, selector: str, text: str) -> None:
        async with _playwright_errors(f"type into '{selector}'"):
            field_locator = self.page.locator(selector).first
            await field_locator.fill("")
            await field_locator.press_sequentially(text, delay=self.typing_delay_ms)

    async def click(self, selector: str) -> None:
        async with _playwright_errors(f"click '{selector}'"):
            await self.page.locator(selector).first.click()

    async def press(self, selector: str, key: str) -> None:
        async with _playwright_errors(f"press {key} in '{selector}'"):
            await self.page.locator(selector).first.press(key)

    async def wait_for_navigation(self, away_from: str, timeout: float) -> None:
        """
        Waits until the page has left ``away_from`` and the new page is network
        idle. Returns as soon as both hold, even if the navigation committed
        before this call.
        """
        async with _playwright_errors("wait for the next page"):
            await self.page.wait_for_url(
                lambda url: url != away_from, wait_until="commit", timeout=timeout * 1000
            )
            await self.page.wait_for_load_state("networkidle", timeout=timeout * 1000)

    async def current_url(self) -> str:
        return self.page.url

    async def dismiss_dialog(self, event: DialogEvent) -> None:
        if event.handle is not None:
            async with _playwright_errors(f"dismiss a {event.kind} dialog"):
                await event.handle.dismiss()

    async def read_cookies(self) -> list[dict[str, Any]]:
        if self._context is None:
            raise BrowserError("Browser session has not been started.")
        async with _playwright_errors("read cookies"):
            return [dict(cookie) for cookie in await self._context.cookies()]

    async def close(self) -> None:
        """Closes the browser and the Playwright connection; safe to call twice."""
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        except PlaywrightError as e:
            log.debug(f"Error while closing browser: {e}")
        finally:
            self._context = None
            self._browser = None
            self._page = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
