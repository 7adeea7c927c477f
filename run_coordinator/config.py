"""Environment-driven configuration for the runner."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from plan_generator.generator import GeneratorSettings
from plan_generator.llm_client import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT, InferenceSettings
from plan_generator.models import DEFAULT_SITE_URL, SAUCEDEMO_SELECTOR_HINTS, Credentials, RunContext
from step_executor.executor import ExecutorSettings
from step_executor.session import SessionSettings

from .runner import RunnerSettings

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class AppConfig:
    """All settings threaded into the pipeline components."""

    inference: InferenceSettings = field(default_factory=InferenceSettings)
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    executor: ExecutorSettings = field(default_factory=ExecutorSettings)
    runner: RunnerSettings = field(default_factory=RunnerSettings)
    context: RunContext = field(default_factory=RunContext)


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got '{raw}'") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got '{raw}'")


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Build an AppConfig from the process environment (and an optional .env file)."""
    load_dotenv(env_file)

    inference = InferenceSettings(
        base_url=_first_env("OPENAI_BASE_URL", "BASE_URL") or DEFAULT_BASE_URL,
        api_key=_first_env("OPENAI_API_KEY", "API_KEY") or "ollama",
        model=_first_env("OPENAI_MODEL", "MODEL_STD") or DEFAULT_MODEL,
        timeout=_env_float("LLM_TIMEOUT", DEFAULT_TIMEOUT),
    )
    session = SessionSettings(
        headless=_env_bool("HEADLESS", True),
        slow_mo_ms=_env_int("SLOW_MO_MS", 0),
    )
    executor = ExecutorSettings(
        step_delay_ms=_env_int("STEP_DELAY_MS", 1_500),
        screenshot_dir=Path(os.getenv("SCREENSHOT_DIR") or "screenshots"),
    )
    runner = RunnerSettings(
        pacing_delay_ms=_env_int("PACING_DELAY_MS", 3_000),
        save_results=_env_bool("SAVE_RESULTS", True),
        results_dir=Path(os.getenv("RESULTS_DIR") or "test-results"),
    )

    base_url = os.getenv("TEST_BASE_URL") or DEFAULT_SITE_URL
    defaults = Credentials()
    context = RunContext(
        base_url=base_url,
        credentials=Credentials(
            username=os.getenv("TEST_USERNAME") or defaults.username,
            password=os.getenv("TEST_PASSWORD") or defaults.password,
        ),
        selector_hints=dict(SAUCEDEMO_SELECTOR_HINTS) if base_url == DEFAULT_SITE_URL else {},
    )

    return AppConfig(
        inference=inference,
        generator=GeneratorSettings(),
        session=session,
        executor=executor,
        runner=runner,
        context=context,
    )
