"""Playwright-backed browser session used by the step executor."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Type

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .errors import ElementTimeoutError, NavigationTimeoutError, SessionError, StepError
from .models import PageInfo

LOGGER = logging.getLogger("step_executor.session")


def timestamp_slug(moment: Optional[datetime] = None) -> str:
    """Return an ISO-8601 second-precision timestamp with colons replaced."""
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H-%M-%S")


@dataclass(frozen=True)
class SessionSettings:
    """Launch options for the browser session."""

    browser: str = "chromium"
    headless: bool = True
    slow_mo_ms: int = 0
    viewport_width: int = 1280
    viewport_height: int = 720


class BrowserSession:
    """Owns one Playwright browser/page pair between open() and close()."""

    def __init__(self, settings: Optional[SessionSettings] = None) -> None:
        self.settings = settings or SessionSettings()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def is_open(self) -> bool:
        return self._page is not None

    def open(self) -> None:
        if self.is_open:
            return
        LOGGER.info("Launching %s (headless=%s)", self.settings.browser, self.settings.headless)
        try:
            self._playwright = sync_playwright().start()
            browser_type = getattr(self._playwright, self.settings.browser, None)
            if browser_type is None:
                raise SessionError(f"Unsupported browser '{self.settings.browser}'")
            self._browser = browser_type.launch(
                headless=self.settings.headless,
                slow_mo=self.settings.slow_mo_ms,
            )
            self._context = self._browser.new_context(viewport={
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            })
            self._page = self._context.new_page()
        except PlaywrightError as exc:
            self._release()
            raise SessionError(f"Could not open browser session: {exc}") from exc
        except SessionError:
            self._release()
            raise
        LOGGER.info("Browser ready")

    def close(self) -> None:
        if self._playwright is None:
            return
        LOGGER.info("Closing browser")
        try:
            if self._context is not None:
                self._context.close()
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as exc:
            raise SessionError(f"Could not close browser session: {exc}") from exc
        finally:
            self._release()

    def _release(self) -> None:
        playwright = self._playwright
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        if playwright is not None:
            try:
                playwright.stop()
            except PlaywrightError as exc:  # pragma: no cover - best effort
                LOGGER.warning("Playwright did not stop cleanly: %s", exc)

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    @property
    def page(self):
        if self._page is None:
            raise SessionError("Browser session is not open")
        return self._page

    @contextmanager
    def _timeouts(self, error_cls: Type[StepError], what: str, timeout_ms: int) -> Iterator[None]:
        try:
            yield
        except PlaywrightTimeoutError as exc:
            raise error_cls(f"Timeout {timeout_ms}ms exceeded {what}") from exc

    def navigate(self, url: str, timeout_ms: int) -> None:
        with self._timeouts(NavigationTimeoutError, f"navigating to {url}", timeout_ms):
            self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        with self._timeouts(ElementTimeoutError, f"waiting for selector '{selector}'", timeout_ms):
            self.page.wait_for_selector(selector, timeout=timeout_ms)

    def click(self, selector: str, timeout_ms: int) -> None:
        with self._timeouts(ElementTimeoutError, f"clicking '{selector}'", timeout_ms):
            self.page.click(selector, timeout=timeout_ms)

    def fill(self, selector: str, text: str, timeout_ms: int) -> None:
        with self._timeouts(ElementTimeoutError, f"filling '{selector}'", timeout_ms):
            self.page.fill(selector, text, timeout=timeout_ms)

    def press(self, key: str, selector: Optional[str], timeout_ms: int) -> None:
        target = selector or "body"
        with self._timeouts(ElementTimeoutError, f"pressing {key} on '{target}'", timeout_ms):
            self.page.press(target, key, timeout=timeout_ms)

    def select_option(self, selector: str, option: str, timeout_ms: int) -> None:
        with self._timeouts(ElementTimeoutError, f"selecting '{option}' in '{selector}'", timeout_ms):
            self.page.select_option(selector, option, timeout=timeout_ms)

    def hover(self, selector: str, timeout_ms: int) -> None:
        with self._timeouts(ElementTimeoutError, f"hovering '{selector}'", timeout_ms):
            self.page.hover(selector, timeout=timeout_ms)

    def scroll_into_view(self, selector: str, timeout_ms: int) -> None:
        with self._timeouts(ElementTimeoutError, f"scrolling to '{selector}'", timeout_ms):
            self.page.locator(selector).first.scroll_into_view_if_needed(timeout=timeout_ms)

    def scroll_by(self, offset_px: int) -> None:
        self.page.evaluate("(dy) => window.scrollBy(0, dy)", offset_px)

    def text_content(self, selector: str, timeout_ms: int) -> str:
        with self._timeouts(ElementTimeoutError, f"reading text of '{selector}'", timeout_ms):
            return self.page.text_content(selector, timeout=timeout_ms) or ""

    def is_visible(self, selector: str) -> bool:
        return self.page.is_visible(selector)

    def is_enabled(self, selector: str, timeout_ms: int) -> bool:
        with self._timeouts(ElementTimeoutError, f"reading state of '{selector}'", timeout_ms):
            return self.page.is_enabled(selector, timeout=timeout_ms)

    def screenshot(self, path: Path) -> None:
        self.page.screenshot(path=str(path), full_page=True)

    def pause(self, duration_ms: int) -> None:
        self.page.wait_for_timeout(duration_ms)

    def page_info(self) -> PageInfo:
        page = self.page
        return PageInfo(url=page.url, title=page.title(), viewport=page.viewport_size)
