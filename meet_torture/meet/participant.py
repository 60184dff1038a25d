# meet_torture/meet/participant.py
from __future__ import annotations

"""Conference participants
-------------------------
A Participant is one isolated browser context joined to a room. Each one is
the session handle the waits and UI helpers operate on.
"""

from typing import Iterable, Optional
from urllib.parse import quote

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, Error as PlaywrightError

from meet_torture.core.session import execute_script
from meet_torture.utils.config import BrowserType, Settings, get_settings
from meet_torture.utils.logger import get_logger, log_with_context
from meet_torture.utils.timing import retry

# Appended to every room URL so the client is scriptable and quiet.
DEFAULT_URL_FRAGMENTS = (
    "config.requireDisplayName=false",
    "config.debug=true",
    "config.disableAEC=true",
    "config.disableNS=true",
    "config.callStatsID=false",
    "config.alwaysVisibleToolbar=true",
)


class ParticipantError(RuntimeError):
    pass


def launch_browser(playwright: Playwright, settings: Optional[Settings] = None) -> Browser:
    s = settings or get_settings()
    browser_type = playwright.firefox if s.BROWSER_TYPE == BrowserType.firefox else playwright.chromium
    return browser_type.launch(**s.playwright_launch_kwargs())


def build_room_url(base_url: str, room: str, fragments: Iterable[str] = ()) -> str:
    parts = list(DEFAULT_URL_FRAGMENTS) + [f for f in fragments if f]
    return f"{base_url.rstrip('/')}/{quote(room)}#{'&'.join(parts)}"


class Participant:
    """One browser context in the conference."""

    def __init__(self, name: str, browser: Browser, settings: Optional[Settings] = None):
        self.name = name
        self.browser = browser
        self.settings = settings or get_settings()
        self.log = log_with_context(get_logger(__name__), participant=name)
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    def __repr__(self) -> str:
        return f"Participant({self.name!r}, joined={self.is_joined})"

    @property
    def is_joined(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise ParticipantError(f"{self.name} has not joined a conference")
        return self._page

    @property
    def endpoint_id(self) -> str:
        return execute_script(self.page, "APP.conference.getMyUserId()")

    def join(self, room: str, fragments: Iterable[str] = ()) -> Page:
        """Open a fresh context and load the room. Leaves any previous one first."""
        if self._page is not None:
            self.hang_up()

        s = self.settings
        if not s.MEET_BASE_URL:
            raise ParticipantError("MEET_BASE_URL is not configured")
        url = build_room_url(s.MEET_BASE_URL, room, fragments)

        self._context = self.browser.new_context(**s.playwright_context_kwargs())
        self._context.set_default_timeout(s.DEFAULT_WAIT_TIMEOUT)
        page = self._context.new_page()

        self.log.info(f"Joining {url}")
        retry(
            page.goto,
            url,
            wait_until="domcontentloaded",
            timeout=s.PAGE_LOAD_TIMEOUT,
            exceptions=(PlaywrightError,),
            tries=max(1, s.MAX_RETRIES),
            initial_delay_ms=s.RETRY_DELAY,
        )
        self._page = page
        return page

    def hang_up(self) -> None:
        """Leave the conference by tearing down the browser context."""
        if self._context is None:
            return
        self.log.info("Hanging up")
        context, self._context, self._page = self._context, None, None
        context.close()
