"""Prompt construction for turning a description into an action plan."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import RunContext

ACTION_CATALOGUE: Tuple[Tuple[str, str], ...] = (
    ("navigate", "go to a URL; value = URL"),
    ("click", "click an element; selector required"),
    ("fill", "type into a text field; selector and value required"),
    ("press", "press a key; value = key name, selector optional (defaults to the page)"),
    ("wait", "wait for an element (selector) or a number of milliseconds (value)"),
    ("screenshot", "capture the page; value = optional file label"),
    ("scroll", "scroll an element into view (selector) or scroll the page down"),
    ("verify", "check an element; options may hold visible/enabled (true|false) or text (expected substring)"),
    ("select", "choose an option in a dropdown; selector and value required"),
    ("hover", "move the mouse over an element; selector required"),
)


@dataclass
class PlanPrompt:
    """One-shot prompt: catalogue, context and a worked example."""

    description: str
    context: RunContext

    def sample(self) -> Dict[str, object]:
        credentials = self.context.credentials
        return {
            "reasoning": "Log in with the standard user and check the inventory is shown",
            "steps": [
                {"action": "navigate", "value": self.context.base_url},
                {"action": "fill", "selector": '[data-test="username"]', "value": credentials.username},
                {"action": "fill", "selector": '[data-test="password"]', "value": credentials.password},
                {"action": "click", "selector": '[data-test="login-button"]'},
                {"action": "verify", "selector": ".inventory_list", "options": {"visible": True}},
            ],
        }

    def render(self) -> str:
        credentials = self.context.credentials
        sample_json = json.dumps(self.sample(), ensure_ascii=False, indent=2)
        lines: List[str] = [
            "You are an expert in automated browser testing with Playwright.",
            "Turn the test description below into a list of browser steps.",
            "",
            "CONTEXT:",
            f"- Base URL: {self.context.base_url}",
            f"- Username: {credentials.username}",
            f"- Password: {credentials.password}",
            "",
            f'TEST DESCRIPTION: "{self.description}"',
            "",
            "IMPORTANT: reply ONLY with valid JSON, no extra text.",
            "",
            "Response format:",
            sample_json,
            "",
            "Available actions:",
        ]
        lines.extend(f"- {name}: {usage}" for name, usage in ACTION_CATALOGUE)
        lines.append('Any step may set "critical": false when the test should go on after it fails.')

        if self.context.selector_hints:
            lines.append("")
            lines.append("Known selectors for this site:")
            lines.extend(f"- {label}: {selector}" for label, selector in self.context.selector_hints.items())

        lines.append("")
        lines.append("RESPONSE (valid JSON):")
        return "\n".join(lines)


def build_prompt(description: str, context: RunContext) -> str:
    return PlanPrompt(description=description, context=context).render()
