import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from step_executor import session as session_module
from step_executor.errors import ElementTimeoutError, NavigationTimeoutError, SessionError
from step_executor.session import BrowserSession, SessionSettings


class StubPage:

    def __init__(self, timeout_on=()):
        self.timeout_on = set(timeout_on)
        self.calls = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if name in self.timeout_on:
            raise PlaywrightTimeoutError(f"{name}: Timeout exceeded")

    def goto(self, *args, **kwargs):
        self._record("goto", *args, **kwargs)

    def click(self, *args, **kwargs):
        self._record("click", *args, **kwargs)

    def press(self, *args, **kwargs):
        self._record("press", *args, **kwargs)

    def text_content(self, *args, **kwargs):
        self._record("text_content", *args, **kwargs)
        return None


class StubContext:

    def __init__(self, page):
        self.page = page
        self.closed = 0

    def new_page(self):
        return self.page

    def close(self):
        self.closed += 1


class StubBrowser:

    def __init__(self, page):
        self.context = StubContext(page)
        self.closed = 0

    def new_context(self, viewport):
        self.viewport = viewport
        return self.context

    def close(self):
        self.closed += 1


class StubBrowserType:

    def __init__(self, page, launch_error=None):
        self.page = page
        self.launch_error = launch_error
        self.browser = None

    def launch(self, headless, slow_mo):
        if self.launch_error is not None:
            raise self.launch_error
        self.browser = StubBrowser(self.page)
        return self.browser


class StubPlaywright:

    def __init__(self, launch_error=None):
        self.chromium = StubBrowserType(StubPage(), launch_error)
        self.stopped = 0

    def stop(self):
        self.stopped += 1


@pytest.fixture
def playwright_stub(monkeypatch):
    stubs = []

    def install(launch_error=None):
        stub = StubPlaywright(launch_error)

        class Starter:
            def start(self):
                stubs.append(stub)
                return stub

        monkeypatch.setattr(session_module, "sync_playwright", Starter)
        return stub

    install.started = stubs
    return install


def open_with_page(page):
    session = BrowserSession()
    session._page = page
    return session


def test_element_timeouts_become_element_timeout_errors():
    session = open_with_page(StubPage(timeout_on={"click"}))

    with pytest.raises(ElementTimeoutError) as excinfo:
        session.click("#missing-button", 10_000)

    assert "Timeout 10000ms exceeded" in str(excinfo.value)
    assert "#missing-button" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, PlaywrightTimeoutError)


def test_navigation_timeouts_become_navigation_timeout_errors():
    session = open_with_page(StubPage(timeout_on={"goto"}))

    with pytest.raises(NavigationTimeoutError, match="Timeout 30000ms exceeded navigating to https://slow.test"):
        session.navigate("https://slow.test", 30_000)


def test_navigation_waits_for_network_idle():
    page = StubPage()
    open_with_page(page).navigate("https://shop.test", 30_000)
    assert page.calls == [("goto", ("https://shop.test",), {"wait_until": "networkidle", "timeout": 30_000})]


def test_press_without_selector_targets_body():
    page = StubPage()
    open_with_page(page).press("Enter", None, 10_000)
    assert page.calls == [("press", ("body", "Enter"), {"timeout": 10_000})]


def test_missing_text_content_reads_as_empty():
    assert open_with_page(StubPage()).text_content("h1", 5_000) == ""


def test_commands_require_an_open_session():
    with pytest.raises(SessionError, match="not open"):
        BrowserSession().click("#x", 1_000)


def test_open_and_close_are_idempotent(playwright_stub):
    stub = playwright_stub()
    session = BrowserSession(SessionSettings(viewport_width=800, viewport_height=600))

    session.open()
    session.open()
    assert session.is_open
    assert len(playwright_stub.started) == 1
    browser = stub.chromium.browser
    assert browser.viewport == {"width": 800, "height": 600}

    session.close()
    session.close()
    assert not session.is_open
    assert browser.closed == 1
    assert browser.context.closed == 1
    assert stub.stopped == 1


def test_launch_failure_raises_session_error_and_releases_playwright(playwright_stub):
    stub = playwright_stub(launch_error=PlaywrightError("Executable doesn't exist"))
    session = BrowserSession()

    with pytest.raises(SessionError, match="Could not open browser session"):
        session.open()

    assert stub.stopped == 1
    assert not session.is_open
    session.close()
    assert stub.stopped == 1


def test_unsupported_browser_is_rejected(playwright_stub):
    stub = playwright_stub()

    with pytest.raises(SessionError, match="Unsupported browser 'netscape'"):
        BrowserSession(SessionSettings(browser="netscape")).open()

    assert stub.stopped == 1


def test_context_manager_closes_the_session(playwright_stub):
    stub = playwright_stub()

    with BrowserSession() as session:
        assert session.is_open

    assert not session.is_open
    assert stub.stopped == 1
