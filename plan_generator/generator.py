"""Turn a natural-language description into an ActionPlan via the inference service."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError

from step_executor.models import ActionPlan, ActionStep

from .errors import MalformedPlanError
from .llm_client import InferenceClient
from .models import RunContext
from .prompts import build_prompt

DEFAULT_REASONING = "Test steps generated"

# Only the shape is checked here; step contents are validated when executed.
PLAN_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "reasoning": {"type": "string"},
        "steps": {
            "type": "array",
            "items": {"type": "object"},
        },
    },
}

LOGGER = logging.getLogger("plan_generator")


@dataclass(frozen=True)
class GeneratorSettings:
    """Sampling parameters sent with every prompt."""

    temperature: float = 0.1
    top_p: float = 0.9
    max_tokens: int = 1000


def _balanced_end(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(text)):
        char = text[position]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return position
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first balanced-brace JSON object found in ``text``.

    Every ``{`` is tried as a start in turn, so stray braces in surrounding
    prose are skipped. Braces inside JSON strings are ignored while matching.

    Raises:
        MalformedPlanError: no candidate balances and parses; the message
            describes the first failed candidate.
    """
    start = text.find("{")
    if start == -1:
        raise MalformedPlanError("no JSON object found in model response")

    first_error: Optional[str] = None
    while start != -1:
        end = _balanced_end(text, start)
        if end is None:
            problem = "unbalanced braces in model response"
        else:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError as exc:
                problem = f"JSON parse error: {exc}"
        first_error = first_error or problem
        start = text.find("{", start + 1)

    raise MalformedPlanError(first_error)


def _format_validation_error(error: ValidationError) -> str:
    path = "->".join(str(part) for part in error.path)
    location = f"at `{path}` " if path else ""
    return f"{location}{error.message}"


class PlanGenerator:
    """Queries the inference service and repairs its output into an ActionPlan."""

    def __init__(self, client: InferenceClient, settings: Optional[GeneratorSettings] = None) -> None:
        self.client = client
        self.settings = settings or GeneratorSettings()
        self.validator = Draft7Validator(PLAN_SCHEMA)

    def generate(self, description: str, context: Optional[RunContext] = None) -> ActionPlan:
        """Produce a plan for ``description``.

        Raises:
            InferenceError: the service is unreachable or returned an error.
        """
        context = context or RunContext()
        prompt = build_prompt(description, context)
        raw_response = self.client.complete(
            prompt,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            max_tokens=self.settings.max_tokens,
        )

        try:
            payload = extract_json_object(raw_response)
        except MalformedPlanError as exc:
            LOGGER.warning("Could not parse plan from LLM response: %s", exc)
            LOGGER.debug("Raw response: %s", raw_response)
            return self._fallback_plan(context, str(exc), raw_response)

        steps, problems = self._parse_steps(payload)
        reasoning = payload.get("reasoning")
        if not isinstance(reasoning, str) or not reasoning.strip():
            reasoning = DEFAULT_REASONING

        plan = ActionPlan(
            steps=steps,
            reasoning=reasoning,
            model=self.client.model,
            raw_response=raw_response,
            problems=problems,
        )
        if problems:
            LOGGER.warning("LLM plan has an invalid shape: %s", "; ".join(problems))
        else:
            LOGGER.info("LLM generated %d steps", len(plan.steps))
        return plan

    def _parse_steps(self, payload: Dict[str, Any]) -> Tuple[Tuple[ActionStep, ...], Tuple[str, ...]]:
        errors = sorted(self.validator.iter_errors(payload), key=lambda e: list(e.path))
        problems: List[str] = [
            _format_validation_error(error) for error in errors
            if error.path and error.path[0] == "steps"
        ]
        if problems:
            return (), tuple(problems)
        raw_steps = payload.get("steps") or []
        return tuple(ActionStep.from_dict(raw) for raw in raw_steps), ()

    def _fallback_plan(self, context: RunContext, reason: str, raw_response: str) -> ActionPlan:
        return ActionPlan(
            steps=(
                ActionStep(action="navigate", value=context.base_url),
                ActionStep(action="screenshot", value="fallback-plan"),
            ),
            reasoning=f"Fallback: could not parse LLM response ({reason})",
            model=self.client.model,
            raw_response=raw_response,
            fallback=True,
        )
