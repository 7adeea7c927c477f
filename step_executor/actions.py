"""Typed action variants and the conversion from wire steps."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from .errors import InvalidStepError, UnknownActionError
from .models import ActionKind, ActionStep


@dataclass(frozen=True)
class Navigate:
    url: str


@dataclass(frozen=True)
class Click:
    selector: str


@dataclass(frozen=True)
class Fill:
    selector: str
    text: str


@dataclass(frozen=True)
class Press:
    key: str
    selector: Optional[str] = None


@dataclass(frozen=True)
class Wait:
    selector: Optional[str] = None
    duration_ms: Optional[int] = None


@dataclass(frozen=True)
class Screenshot:
    name: Optional[str] = None


@dataclass(frozen=True)
class Scroll:
    selector: Optional[str] = None


@dataclass(frozen=True)
class Select:
    selector: str
    option: str


@dataclass(frozen=True)
class Hover:
    selector: str


@dataclass(frozen=True)
class Verify:
    """Verification of one element; the first condition set wins."""

    selector: str
    text: Optional[str] = None
    visible: Optional[bool] = None
    enabled: Optional[bool] = None


Action = Union[Navigate, Click, Fill, Press, Wait, Screenshot, Scroll, Select, Hover, Verify]


def _require(step: ActionStep, field_name: str) -> str:
    value = getattr(step, field_name)
    if value is None or not value.strip():
        raise InvalidStepError(f"{step.action} step missing '{field_name}'")
    return value


def _navigate(step: ActionStep) -> Navigate:
    url = step.value or step.selector
    if not url or not url.strip():
        raise InvalidStepError(f"{step.action} step missing 'value' (URL)")
    return Navigate(url=url.strip())


def _click(step: ActionStep) -> Click:
    return Click(selector=_require(step, "selector"))


def _fill(step: ActionStep) -> Fill:
    selector = _require(step, "selector")
    if step.value is None:
        raise InvalidStepError(f"{step.action} step missing 'value'")
    return Fill(selector=selector, text=step.value)


def _press(step: ActionStep) -> Press:
    return Press(key=_require(step, "value"), selector=step.selector or None)


def _wait(step: ActionStep) -> Wait:
    if step.selector:
        return Wait(selector=step.selector)
    if step.value is None or not step.value.strip():
        return Wait()
    try:
        duration = int(float(step.value))
    except (ValueError, OverflowError) as exc:
        raise InvalidStepError(f"wait step value must be milliseconds, got '{step.value}'") from exc
    if duration < 0:
        raise InvalidStepError(f"wait step value must be non-negative, got {duration}")
    return Wait(duration_ms=duration)


def _screenshot(step: ActionStep) -> Screenshot:
    return Screenshot(name=step.value or None)


def _scroll(step: ActionStep) -> Scroll:
    return Scroll(selector=step.selector or None)


def _select(step: ActionStep) -> Select:
    selector = _require(step, "selector")
    if step.value is None:
        raise InvalidStepError(f"{step.action} step missing 'value'")
    return Select(selector=selector, option=step.value)


def _hover(step: ActionStep) -> Hover:
    return Hover(selector=_require(step, "selector"))


_FLAG_WORDS = {"true": True, "false": False}


def _flag(options: Dict[str, object], key: str) -> Optional[bool]:
    raw = options.get(key)
    if raw is None:
        return None
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word not in _FLAG_WORDS:
            raise InvalidStepError(f"verify option '{key}' must be true or false, got '{raw}'")
        return _FLAG_WORDS[word]
    return bool(raw)


def _verify(step: ActionStep) -> Verify:
    selector = _require(step, "selector")
    options = step.options
    expected = options.get("text")
    if expected is not None and expected is not False:
        # `text: true` means the expected substring travels in `value`.
        if expected is True:
            expected = step.value
        if expected is None or expected == "":
            raise InvalidStepError(f"{step.action} step with text check has no expected text")
        return Verify(selector=selector, text=str(expected))
    return Verify(
        selector=selector,
        visible=_flag(options, "visible"),
        enabled=_flag(options, "enabled"),
    )


_BUILDERS: Dict[ActionKind, Callable[[ActionStep], Action]] = {
    ActionKind.NAVIGATE: _navigate,
    ActionKind.CLICK: _click,
    ActionKind.FILL: _fill,
    ActionKind.PRESS: _press,
    ActionKind.WAIT: _wait,
    ActionKind.SCREENSHOT: _screenshot,
    ActionKind.SCROLL: _scroll,
    ActionKind.VERIFY: _verify,
    ActionKind.SELECT: _select,
    ActionKind.HOVER: _hover,
}


def build_action(step: ActionStep) -> Action:
    """Convert a wire step into its typed action.

    Raises:
        UnknownActionError: the action is not part of the vocabulary.
        InvalidStepError: a field the action requires is missing or malformed.
    """
    kind = step.kind
    if kind is None:
        raise UnknownActionError(f"Unknown action: '{step.action}'")
    return _BUILDERS[kind](step)
