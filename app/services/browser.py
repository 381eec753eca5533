"""Single-slot pool around the Playwright browser runtime."""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, ExitStack, contextmanager
from typing import Any, Callable, Iterator

from loguru import logger
from playwright.sync_api import sync_playwright

from app.core.config import Settings
from scraper.errors import BrowserUnavailableError

BrowserLauncher = Callable[[], AbstractContextManager[Any]]


def chromium_launcher(settings: Settings) -> BrowserLauncher:
    """Return a launcher that starts Playwright and a Chromium instance."""

    @contextmanager
    def _launch() -> Iterator[Any]:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(
                headless=settings.browser_headless,
                args=list(settings.browser_args),
            )
            try:
                yield browser
            finally:
                browser.close()

    return _launch


class BrowserSession:
    """Scoped handle on a launched browser; pages are opened per task."""

    def __init__(self, browser: Any, *, user_agent: str, default_timeout_ms: int) -> None:
        self._browser = browser
        self._user_agent = user_agent
        self._default_timeout_ms = default_timeout_ms
        self.pages_opened = 0

    @contextmanager
    def page(self) -> Iterator[Any]:
        context = self._browser.new_context(user_agent=self._user_agent)
        try:
            page = context.new_page()
            page.set_default_timeout(self._default_timeout_ms)
            self.pages_opened += 1
            yield page
        finally:
            context.close()


class BrowserPool:
    """Capacity-one pool: at most one browser session is alive at a time.

    Callers block on :meth:`session` until the slot frees up; the browser is
    torn down and the slot released on every exit path.
    """

    def __init__(
        self,
        launcher: BrowserLauncher,
        *,
        user_agent: str,
        default_timeout_ms: int,
        acquire_timeout: float,
    ) -> None:
        self._launcher = launcher
        self._user_agent = user_agent
        self._default_timeout_ms = default_timeout_ms
        self._acquire_timeout = acquire_timeout
        self._slot = threading.BoundedSemaphore(1)
        self._in_use = False

    @classmethod
    def from_settings(
        cls, settings: Settings, launcher: BrowserLauncher | None = None
    ) -> "BrowserPool":
        return cls(
            launcher or chromium_launcher(settings),
            user_agent=settings.user_agent,
            default_timeout_ms=settings.navigation_timeout_ms,
            acquire_timeout=settings.browser_acquire_timeout_seconds,
        )

    @property
    def in_use(self) -> bool:
        return self._in_use

    @contextmanager
    def session(self) -> Iterator[BrowserSession]:
        if not self._slot.acquire(timeout=self._acquire_timeout):
            raise BrowserUnavailableError(
                f"Browser slot still busy after {self._acquire_timeout:.0f}s"
            )
        self._in_use = True
        try:
            with ExitStack() as stack:
                try:
                    browser = stack.enter_context(self._launcher())
                except Exception as exc:
                    logger.exception("Browser runtime failed to start")
                    raise BrowserUnavailableError(f"Browser failed to start: {exc}") from exc
                logger.debug("Browser session opened")
                yield BrowserSession(
                    browser,
                    user_agent=self._user_agent,
                    default_timeout_ms=self._default_timeout_ms,
                )
        finally:
            self._in_use = False
            self._slot.release()
            logger.debug("Browser session released")


__all__ = ["BrowserLauncher", "BrowserPool", "BrowserSession", "chromium_launcher"]
