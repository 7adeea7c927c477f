"""Core execution logic: run an ActionPlan step by step against a browser session."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Type

from .actions import (Action, Click, Fill, Hover, Navigate, Press, Screenshot, Scroll, Select, Verify, Wait,
                      build_action)
from .errors import VerificationError
from .models import ActionPlan, ActionStep, ExecutionReport, PageInfo, StepResult
from .session import BrowserSession, timestamp_slug


@dataclass(frozen=True)
# pylint: disable=too-many-instance-attributes
class ExecutorSettings:
    """Runtime knobs for the executor."""

    navigation_timeout_ms: int = 30_000
    element_timeout_ms: int = 10_000
    wait_timeout_ms: int = 15_000
    verify_timeout_ms: int = 5_000
    default_wait_ms: int = 2_000
    scroll_offset_px: int = 500
    step_delay_ms: int = 1_500
    critical_by_default: bool = True
    screenshot_dir: Path = Path("screenshots")


class StepExecutor:
    """Runs an ActionPlan against a BrowserSession."""

    def __init__(self, session: BrowserSession, settings: Optional[ExecutorSettings] = None) -> None:
        self.session = session
        self.settings = settings or ExecutorSettings()
        self.logger = logging.getLogger("step_executor")
        self._handlers: Dict[Type, Callable[..., str]] = {
            Navigate: self._handle_navigate,
            Click: self._handle_click,
            Fill: self._handle_fill,
            Press: self._handle_press,
            Wait: self._handle_wait,
            Screenshot: self._handle_screenshot,
            Scroll: self._handle_scroll,
            Select: self._handle_select,
            Hover: self._handle_hover,
            Verify: self._handle_verify,
        }

    def execute(self, plan: ActionPlan) -> ExecutionReport:
        """Execute every step in order, halting on the first critical failure.

        Step failures never propagate; they are recorded as failed StepResults.
        A SessionError raised while opening the browser does propagate.
        """
        self.session.open()

        total = len(plan.steps)
        results: List[StepResult] = []
        self.logger.info("Executing %d steps", total)

        for index, step in enumerate(plan.steps, start=1):
            self.logger.info("Step %d/%d: %s", index, total, step.describe())
            result = self._run_step(index, step)
            results.append(result)

            if not result.success:
                self.logger.warning("Step %d failed: %s", index, result.error)
                if step.is_critical(self.settings.critical_by_default):
                    self.logger.warning("Critical step failed, halting plan")
                    break

            if self.settings.step_delay_ms and index < total:
                self.session.pause(self.settings.step_delay_ms)

        final_screenshot = self._capture("final-result")
        return ExecutionReport(
            total_steps=total,
            results=tuple(results),
            final_screenshot=final_screenshot,
            final_page=self._page_info(),
        )

    def _run_step(self, index: int, step: ActionStep) -> StepResult:
        try:
            action = build_action(step)
            message = self._handlers[type(action)](action)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            error_message = str(exc) or exc.__class__.__name__
            screenshot_path = self._capture(f"error-step-{index}")
            return StepResult(
                step=index,
                action=step.action,
                success=False,
                timestamp=datetime.now(timezone.utc),
                error=error_message,
                screenshot=screenshot_path,
            )
        self.logger.info("Step %d done: %s", index, message)
        return StepResult(
            step=index,
            action=step.action,
            success=True,
            timestamp=datetime.now(timezone.utc),
            result=message,
        )

    def _handle_navigate(self, action: Navigate) -> str:
        self.session.navigate(action.url, self.settings.navigation_timeout_ms)
        return f"navigated to {action.url}"

    def _handle_click(self, action: Click) -> str:
        timeout = self.settings.element_timeout_ms
        self.session.wait_for_selector(action.selector, timeout)
        self.session.click(action.selector, timeout)
        return f"clicked {action.selector}"

    def _handle_fill(self, action: Fill) -> str:
        timeout = self.settings.element_timeout_ms
        self.session.wait_for_selector(action.selector, timeout)
        self.session.fill(action.selector, action.text, timeout)
        return f"filled '{action.text}' in {action.selector}"

    def _handle_press(self, action: Press) -> str:
        self.session.press(action.key, action.selector, self.settings.element_timeout_ms)
        return f"pressed {action.key}"

    def _handle_wait(self, action: Wait) -> str:
        if action.selector:
            self.session.wait_for_selector(action.selector, self.settings.wait_timeout_ms)
            return f"waited for {action.selector}"
        duration = action.duration_ms if action.duration_ms is not None else self.settings.default_wait_ms
        self.session.pause(duration)
        return f"waited {duration}ms"

    def _handle_screenshot(self, action: Screenshot) -> str:
        name = action.name or f"screenshot-{int(time.time() * 1000)}"
        self.session.screenshot(self._screenshot_path(name))
        return f"screenshot taken: {name}"

    def _handle_scroll(self, action: Scroll) -> str:
        if action.selector:
            self.session.scroll_into_view(action.selector, self.settings.element_timeout_ms)
        else:
            self.session.scroll_by(self.settings.scroll_offset_px)
        return "scrolled"

    def _handle_select(self, action: Select) -> str:
        timeout = self.settings.element_timeout_ms
        self.session.wait_for_selector(action.selector, timeout)
        self.session.select_option(action.selector, action.option, timeout)
        return f"selected '{action.option}' in {action.selector}"

    def _handle_hover(self, action: Hover) -> str:
        timeout = self.settings.element_timeout_ms
        self.session.wait_for_selector(action.selector, timeout)
        self.session.hover(action.selector, timeout)
        return f"hovered {action.selector}"

    def _handle_verify(self, action: Verify) -> str:
        selector = action.selector
        timeout = self.settings.verify_timeout_ms

        if action.text is not None:
            self.session.wait_for_selector(selector, timeout)
            text = self.session.text_content(selector, timeout)
            if action.text not in text:
                raise VerificationError(f"Expected text '{action.text}' not found in '{text.strip()}'")
            return f"verified text '{action.text}' in {selector}"

        if action.visible is not None:
            visible = self.session.is_visible(selector)
            if visible != action.visible:
                state = "visible" if action.visible else "hidden"
                raise VerificationError(f"Element {selector} should be {state}")
            return f"verified visibility of {selector}"

        if action.enabled is not None:
            enabled = self.session.is_enabled(selector, timeout)
            if enabled != action.enabled:
                state = "enabled" if action.enabled else "disabled"
                raise VerificationError(f"Element {selector} should be {state}")
            return f"verified state of {selector}"

        self.session.wait_for_selector(selector, timeout)
        return f"verified {selector} exists"

    def _screenshot_path(self, tag: str) -> Path:
        directory = self.settings.screenshot_dir
        directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{tag}-{timestamp_slug()}.png"

    def _capture(self, tag: str) -> Optional[str]:
        try:
            path = self._screenshot_path(tag)
            self.session.screenshot(path)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self.logger.error("Screenshot capture failed: %s", exc)
            return None
        self.logger.info("Screenshot: %s", path)
        return str(path)

    def _page_info(self) -> Optional[PageInfo]:
        try:
            return self.session.page_info()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self.logger.debug("Failed to read page info: %s", exc)
            return None
