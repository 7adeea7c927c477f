"""Shared fakes: an in-memory browser session and a scripted inference client."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from step_executor.errors import ElementTimeoutError, SessionError
from step_executor.executor import ExecutorSettings
from step_executor.models import PageInfo


class FakeSession:
    """Records every browser command; selectors in ``missing`` never appear."""

    def __init__(
        self,
        missing: Sequence[str] = (),
        texts: Optional[Dict[str, str]] = None,
        visible: Optional[Dict[str, bool]] = None,
        enabled: Optional[Dict[str, bool]] = None,
        fail_open: bool = False,
        fail_screenshots: bool = False,
    ) -> None:
        self.missing = set(missing)
        self.texts = texts or {}
        self.visible = visible or {}
        self.enabled = enabled or {}
        self.fail_open = fail_open
        self.fail_screenshots = fail_screenshots
        self.calls: List[tuple] = []
        self.screenshots: List[Path] = []
        self.pauses: List[int] = []
        self.open_count = 0
        self.close_count = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._open:
            return
        if self.fail_open:
            raise SessionError("Could not open browser session: no display")
        self.open_count += 1
        self._open = True

    def close(self) -> None:
        if self._open:
            self.close_count += 1
        self._open = False

    def _require(self, selector: str, timeout_ms: int) -> None:
        if selector in self.missing:
            raise ElementTimeoutError(f"Timeout {timeout_ms}ms exceeded waiting for selector '{selector}'")

    def navigate(self, url: str, timeout_ms: int) -> None:
        self.calls.append(("navigate", url, timeout_ms))

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("wait_for_selector", selector, timeout_ms))
        self._require(selector, timeout_ms)

    def click(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("click", selector))
        self._require(selector, timeout_ms)

    def fill(self, selector: str, text: str, timeout_ms: int) -> None:
        self.calls.append(("fill", selector, text))
        self._require(selector, timeout_ms)

    def press(self, key: str, selector: Optional[str], timeout_ms: int) -> None:
        self.calls.append(("press", key, selector))

    def select_option(self, selector: str, option: str, timeout_ms: int) -> None:
        self.calls.append(("select_option", selector, option))

    def hover(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("hover", selector))

    def scroll_into_view(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("scroll_into_view", selector))
        self._require(selector, timeout_ms)

    def scroll_by(self, offset_px: int) -> None:
        self.calls.append(("scroll_by", offset_px))

    def text_content(self, selector: str, timeout_ms: int) -> str:
        self.calls.append(("text_content", selector, timeout_ms))
        self._require(selector, timeout_ms)
        return self.texts.get(selector, "")

    def is_visible(self, selector: str) -> bool:
        self.calls.append(("is_visible", selector))
        return self.visible.get(selector, selector not in self.missing)

    def is_enabled(self, selector: str, timeout_ms: int) -> bool:
        self.calls.append(("is_enabled", selector))
        self._require(selector, timeout_ms)
        return self.enabled.get(selector, True)

    def screenshot(self, path: Path) -> None:
        if self.fail_screenshots:
            raise RuntimeError("screenshot failed")
        self.screenshots.append(Path(path))

    def pause(self, duration_ms: int) -> None:
        self.pauses.append(duration_ms)

    def page_info(self) -> PageInfo:
        return PageInfo(url="https://x", title="Fake page", viewport={"width": 1280, "height": 720})

    def screenshot_tags(self) -> List[str]:
        # "<tag>-YYYY-MM-DDTHH-MM-SS.png" -> "<tag>"
        return [path.stem[:-len("-YYYY-MM-DDTHH-MM-SS")] for path in self.screenshots]


class FakeInferenceClient:
    """Returns scripted responses in order; exceptions in the script are raised."""

    model = "fake-model"

    def __init__(self, responses: Sequence[Any]) -> None:
        self.responses = list(responses)
        self.prompts: List[str] = []
        self.kwargs: List[Dict[str, Any]] = []

    def complete(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        self.kwargs.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeSessionFactory:
    """Hands out a fresh FakeSession per run and remembers them."""

    def __init__(self, **session_kwargs: Any) -> None:
        self.session_kwargs = session_kwargs
        self.sessions: List[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession(**self.session_kwargs)
        self.sessions.append(session)
        return session


def plan_json(steps: List[Dict[str, Any]], reasoning: str = "ok") -> str:
    return json.dumps({"reasoning": reasoning, "steps": steps})


@pytest.fixture
def executor_settings(tmp_path: Path) -> ExecutorSettings:
    return ExecutorSettings(screenshot_dir=tmp_path / "screenshots", step_delay_ms=0)
