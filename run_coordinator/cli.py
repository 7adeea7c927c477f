"""Command-line interface: one-shot runs, batch files and an interactive shell."""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from plan_generator.errors import InferenceError
from plan_generator.llm_client import InferenceClient
from plan_generator.models import Credentials

from .config import AppConfig, ConfigError, load_config
from .models import BatchSummary, RunSummary
from .runner import RunCoordinator

LOG_DIR = Path("log")
LOGGER = logging.getLogger("run_coordinator.cli")

HELP_TEXT = """
Commands:
  <description>   run one test written in plain language, e.g. "login to saucedemo"
  /help           show this help
  /context        show the current site, credentials and browser settings
  /examples       show example test descriptions
  /multiple       enter several tests, one per line; an empty line runs them
  /exit           quit

Tips:
  * be specific but natural: "login with standard user"
  * if a run fails, try rephrasing the description
"""

EXAMPLES_TEXT = """
Authentication:
  * login to saucedemo
  * login with standard user credentials
  * logout from the application
Cart:
  * add backpack to cart
  * remove item from cart
  * verify cart has 2 items
Checkout:
  * complete checkout process
  * fill checkout form with fake data
Checks:
  * verify login page loads correctly
  * check inventory page shows 6 products
Combined:
  * login and add backpack to cart
  * login, add 2 items, and checkout
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run browser tests written in natural language")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-d", "--description", help="Run a single test description and exit")
    mode.add_argument("--batch", help="File with one test description per line")
    mode.add_argument("--check", action="store_true", help="List the models served by the LLM endpoint and exit")
    parser.add_argument("--base-url", help="Site under test (default: env TEST_BASE_URL or SauceDemo)")
    parser.add_argument("--username", help="Login user name for the generated steps")
    parser.add_argument("--password", help="Login password for the generated steps")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--step-delay", type=int, help="Pause between steps in milliseconds")
    parser.add_argument("--no-save", action="store_true", help="Do not write result JSON files")
    parser.add_argument("--env-file", help="Path to a .env file (default: search upwards from cwd)")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    return parser


def setup_logging(debug: bool = False) -> None:
    LOG_DIR.mkdir(exist_ok=True)
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level)

    file_handler = TimedRotatingFileHandler(
        LOG_DIR / "nl-web-test.log",
        when="midnight",
        encoding="utf-8",
        backupCount=7,
    )
    file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    logging.getLogger().addHandler(file_handler)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of ``config`` with command-line options applied."""
    context = config.context
    if args.base_url:
        context = dataclasses.replace(context, base_url=args.base_url, selector_hints={})
    if args.username or args.password:
        context = dataclasses.replace(context, credentials=Credentials(
            username=args.username or context.credentials.username,
            password=args.password or context.credentials.password,
        ))

    session = config.session
    if args.headed:
        session = dataclasses.replace(session, headless=False)

    executor = config.executor
    if args.step_delay is not None:
        executor = dataclasses.replace(executor, step_delay_ms=args.step_delay)

    runner = config.runner
    if args.no_save:
        runner = dataclasses.replace(runner, save_results=False)

    return dataclasses.replace(config, context=context, session=session, executor=executor, runner=runner)


def format_run_summary(summary: RunSummary) -> str:
    rule = "=" * 50
    lines = [rule, "RUN SUMMARY", rule, f"Test: {summary.description}"]
    lines.append(f"Result: {'PASSED' if summary.success else 'FAILED'}")
    if summary.degraded:
        lines.append(f"Error: {summary.error}")
    else:
        lines.append(f"Steps: {summary.completed_steps}/{summary.total_steps}")
        if summary.failed_steps:
            lines.append(f"Failures: {summary.failed_steps}")
            for result in summary.results:
                if not result.success:
                    lines.append(f"  - step {result.step} ({result.action}): {result.error}")
    lines.append(f"Duration: {summary.duration_ms / 1000:.1f}s")
    if summary.reasoning:
        lines.append(f"LLM: {summary.reasoning}")
    lines.append(rule)
    return "\n".join(lines)


def format_batch_summary(batch: BatchSummary) -> str:
    rule = "=" * 60
    return "\n".join([
        rule,
        "BATCH SUMMARY",
        rule,
        f"Passed: {batch.successful}",
        f"Failed: {batch.failed}",
        f"Success rate: {batch.success_rate * 100:.0f}%",
        rule,
    ])


def read_descriptions(path: Path) -> List[str]:
    descriptions = []
    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if text and not text.startswith("#"):
            descriptions.append(text)
    return descriptions


class InteractiveShell:
    """Read-eval loop over test descriptions and slash-commands."""

    prompt = "test> "

    def __init__(
        self,
        runner: RunCoordinator,
        config: AppConfig,
        *,
        read: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        self.runner = runner
        self.config = config
        self.read = read
        self.write = write

    def loop(self) -> int:
        self.write("Write tests in plain language and watch them run. Type /help for commands.")
        while True:
            try:
                if not self.handle(self.read(self.prompt)):
                    return 0
            except (EOFError, KeyboardInterrupt):
                # the running test, if any, has already closed its browser
                self.write("\nBye!")
                return 0

    def handle(self, line: str) -> bool:
        """Process one input line; return False when the shell should exit."""
        command = line.strip()
        if not command:
            return True
        if command.startswith("/"):
            return self._handle_command(command)

        self.write(f"\nRunning: \"{command}\"")
        summary = self.runner.run_one(command, self.config.context)
        self.write(format_run_summary(summary))
        return True

    def _handle_command(self, command: str) -> bool:
        name = command[1:].split(" ", 1)[0].lower()
        if name in ("exit", "quit"):
            self.write("Bye!")
            return False
        if name == "help":
            self.write(HELP_TEXT)
        elif name == "context":
            self.write(self._context_text())
        elif name == "examples":
            self.write(EXAMPLES_TEXT)
        elif name in ("multiple", "batch"):
            self._run_multiple()
        else:
            self.write(f"Unknown command: /{name}. Use /help to list commands.")
        return True

    def _context_text(self) -> str:
        context = self.config.context
        return "\n".join([
            f"Base URL: {context.base_url}",
            f"Username: {context.credentials.username}",
            f"Password: {context.credentials.password}",
            f"Headless: {'yes' if self.config.session.headless else 'no'}",
            f"Step delay: {self.config.executor.step_delay_ms}ms",
            f"Screenshots: {self.config.executor.screenshot_dir}",
            f"LLM: {self.config.inference.model} at {self.config.inference.base_url}",
        ])

    def _run_multiple(self) -> None:
        self.write("Enter one test per line. An empty line runs them all.")
        descriptions: List[str] = []
        while True:
            try:
                line = self.read("  test> ").strip()
            except EOFError:
                break
            if not line:
                break
            descriptions.append(line)
            self.write(f"Added: \"{line}\"")
        if not descriptions:
            self.write("No tests to run")
            return
        batch = self.runner.run_many(descriptions, self.config.context)
        for summary in batch.runs:
            self.write(format_run_summary(summary))
        self.write(format_batch_summary(batch))


def _check_connection(config: AppConfig) -> int:
    client = InferenceClient(config.inference)
    try:
        models = client.list_models()
    except InferenceError as exc:
        LOGGER.error("%s", exc)
        return 1
    print(f"Connected to {config.inference.base_url}")
    print("Available models: " + ", ".join(models))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    try:
        config = apply_overrides(load_config(args.env_file), args)
    except ConfigError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    if args.check:
        return _check_connection(config)

    runner = RunCoordinator.from_config(config)

    if args.description:
        summary = runner.run_one(args.description, config.context)
        print(format_run_summary(summary))
        return 0 if summary.success else 1

    if args.batch:
        try:
            descriptions = read_descriptions(Path(args.batch))
        except OSError as exc:
            LOGGER.error("Could not read batch file %s: %s", args.batch, exc)
            return 1
        if not descriptions:
            LOGGER.error("No test descriptions found in %s", args.batch)
            return 1
        batch = runner.run_many(descriptions, config.context)
        for summary in batch.runs:
            print(format_run_summary(summary))
        print(format_batch_summary(batch))
        return 0 if batch.failed == 0 else 1

    return InteractiveShell(runner, config).loop()


if __name__ == "__main__":
    sys.exit(main())
