"""Data models shared by the plan generator and the step executor."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ActionKind(str, Enum):
    """Closed vocabulary of step actions."""

    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    PRESS = "press"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    SCROLL = "scroll"
    VERIFY = "verify"
    SELECT = "select"
    HOVER = "hover"

    @classmethod
    def resolve(cls, name: Any) -> Optional["ActionKind"]:
        """Map an action name (or alias) to its kind, case-insensitively."""
        if not isinstance(name, str):
            return None
        key = name.strip().lower()
        key = ACTION_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None


ACTION_ALIASES: Dict[str, str] = {
    "goto": "navigate",
    "type": "fill",
    "assert": "verify",
}


def _optional_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return str(raw).lower()
    return str(raw)


@dataclass(frozen=True)
class ActionStep:
    """One instruction of an action plan, as produced on the wire."""

    action: str
    selector: Optional[str] = None
    value: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    critical: Optional[bool] = None

    @property
    def kind(self) -> Optional[ActionKind]:
        return ActionKind.resolve(self.action)

    def is_critical(self, default: bool = True) -> bool:
        if self.critical is None:
            return default
        return self.critical

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ActionStep":
        action = raw.get("action")
        options = raw.get("options")
        critical = raw.get("critical")
        return cls(
            action=action if isinstance(action, str) else "",
            selector=_optional_text(raw.get("selector")),
            value=_optional_text(raw.get("value")),
            options=dict(options) if isinstance(options, dict) else {},
            critical=critical if isinstance(critical, bool) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"action": self.action}
        if self.selector is not None:
            payload["selector"] = self.selector
        if self.value is not None:
            payload["value"] = self.value
        if self.options:
            payload["options"] = dict(self.options)
        if self.critical is not None:
            payload["critical"] = self.critical
        return payload

    def describe(self) -> str:
        target = self.selector or self.value or ""
        return f"{self.action} {target}".strip()


@dataclass(frozen=True)
class ActionPlan:
    """Ordered steps plus the generator's rationale."""

    steps: Tuple[ActionStep, ...]
    reasoning: str
    model: str
    raw_response: Optional[str] = None
    fallback: bool = False
    problems: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reasoning": self.reasoning,
            "model": self.model,
            "fallback": self.fallback,
            "problems": list(self.problems),
            "steps": [step.to_dict() for step in self.steps],
        }


@dataclass(frozen=True)
class StepResult:
    """Outcome of one executed step."""

    step: int
    action: str
    success: bool
    timestamp: datetime
    result: Optional[str] = None
    error: Optional[str] = None
    screenshot: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "step": self.step,
            "action": self.action,
            "success": self.success,
        }
        if self.success:
            payload["result"] = self.result
        else:
            payload["error"] = self.error
            payload["screenshot"] = self.screenshot
        payload["timestamp"] = self.timestamp.isoformat()
        return payload


@dataclass(frozen=True)
class PageInfo:
    """Snapshot of the page the session is showing."""

    url: str
    title: str
    viewport: Optional[Dict[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "title": self.title, "viewport": self.viewport}


@dataclass(frozen=True)
class ExecutionReport:
    """Aggregate over a completed or halted plan run."""

    total_steps: int
    results: Tuple[StepResult, ...] = ()
    final_screenshot: Optional[str] = None
    final_page: Optional[PageInfo] = None

    @property
    def completed_steps(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed_steps(self) -> int:
        return sum(1 for result in self.results if not result.success)

    @property
    def duration_ms(self) -> int:
        if not self.results:
            return 0
        delta = self.results[-1].timestamp - self.results[0].timestamp
        return max(0, int(delta.total_seconds() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_steps": self.total_steps,
            "completed_steps": self.completed_steps,
            "failed_steps": self.failed_steps,
            "duration_ms": self.duration_ms,
            "results": [result.to_dict() for result in self.results],
            "final_screenshot": self.final_screenshot,
            "final_page": self.final_page.to_dict() if self.final_page else None,
        }
