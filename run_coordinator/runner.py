"""Run coordinator: description -> plan -> execution -> summary."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence

from plan_generator.errors import InferenceError
from plan_generator.generator import PlanGenerator
from plan_generator.llm_client import InferenceClient
from plan_generator.models import RunContext
from step_executor.errors import SessionError
from step_executor.executor import ExecutorSettings, StepExecutor
from step_executor.models import ActionPlan
from step_executor.session import BrowserSession

from .models import BatchSummary, RunSummary
from .results import ResultWriter

if TYPE_CHECKING:  # pragma: no cover
    from .config import AppConfig

LOGGER = logging.getLogger("run_coordinator.runner")


class InvalidPlanError(ValueError):
    """Raised when the generator's steps are not a usable sequence."""


@dataclass(frozen=True)
class RunnerSettings:
    """Knobs for single and batch runs."""

    pacing_delay_ms: int = 3_000
    save_results: bool = True
    results_dir: Path = Path("test-results")


class RunCoordinator:
    """Orchestrates generation and execution, one browser session per run."""

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        generator: PlanGenerator,
        session_factory: Callable[[], BrowserSession],
        executor_settings: Optional[ExecutorSettings] = None,
        settings: Optional[RunnerSettings] = None,
        writer: Optional[ResultWriter] = None,
    ) -> None:
        self.generator = generator
        self.session_factory = session_factory
        self.executor_settings = executor_settings or ExecutorSettings()
        self.settings = settings or RunnerSettings()
        if writer is None and self.settings.save_results:
            writer = ResultWriter(self.settings.results_dir)
        self.writer = writer

    @classmethod
    def from_config(cls, config: "AppConfig") -> "RunCoordinator":
        client = InferenceClient(config.inference)
        return cls(
            generator=PlanGenerator(client, config.generator),
            session_factory=partial(BrowserSession, config.session),
            executor_settings=config.executor,
            settings=config.runner,
        )

    @contextmanager
    def _scoped_session(self) -> Iterator[BrowserSession]:
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def run_one(self, description: str, context: Optional[RunContext] = None) -> RunSummary:
        """Run one description end to end; never raises for pipeline failures."""
        context = context or RunContext()
        LOGGER.info("Starting run: %s", description)
        started = time.monotonic()
        plan: Optional[ActionPlan] = None

        try:
            plan = self.generator.generate(description, context)
            if not plan.is_valid:
                raise InvalidPlanError(f"LLM did not generate valid steps: {'; '.join(plan.problems)}")
            for index, step in enumerate(plan.steps, start=1):
                LOGGER.info("  %d. %s", index, step.describe())

            with self._scoped_session() as session:
                report = StepExecutor(session, self.executor_settings).execute(plan)
        except (InferenceError, InvalidPlanError, SessionError) as exc:
            LOGGER.warning("Run failed: %s", exc)
            summary = self._degraded(description, str(exc), plan, started)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Run crashed with unexpected error")
            summary = self._degraded(description, str(exc) or exc.__class__.__name__, plan, started)
        else:
            summary = RunSummary.from_report(description, plan, report, self._elapsed_ms(started))
            LOGGER.info(
                "Run %s: %d/%d steps passed",
                "passed" if summary.success else "failed",
                summary.completed_steps,
                summary.total_steps,
            )

        if self.writer is not None:
            self.writer.save_run(summary)
        return summary

    def run_many(self, descriptions: Sequence[str], context: Optional[RunContext] = None) -> BatchSummary:
        """Run each description in order with a pause between runs."""
        context = context or RunContext()
        total = len(descriptions)
        LOGGER.info("Running %d tests", total)

        runs = []
        for index, description in enumerate(descriptions, start=1):
            LOGGER.info("[%d/%d] %s", index, total, description)
            runs.append(self.run_one(description, context))
            if index < total and self.settings.pacing_delay_ms > 0:
                LOGGER.info("Pausing %dms before next test", self.settings.pacing_delay_ms)
                time.sleep(self.settings.pacing_delay_ms / 1000)

        batch = BatchSummary.from_runs(runs)
        LOGGER.info("Batch done: %d passed, %d failed", batch.successful, batch.failed)
        if self.writer is not None:
            self.writer.save_batch(batch)
        return batch

    def _degraded(self, description: str, error: str, plan: Optional[ActionPlan], started: float) -> RunSummary:
        steps = len(plan.steps) if plan is not None else 0
        return RunSummary.degraded_run(description, error, steps, self._elapsed_ms(started))

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
