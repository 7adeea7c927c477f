"""Persist run and batch summaries as JSON files."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any, Dict, Optional, Tuple

from step_executor.session import timestamp_slug

from .models import BatchSummary, RunSummary

LOGGER = logging.getLogger("run_coordinator.results")


class ResultWriter:
    """Writes one JSON file per run (and per batch) into a results directory."""

    def __init__(self, results_dir: Path) -> None:
        self.results_dir = Path(results_dir)

    def save_run(self, summary: RunSummary) -> Optional[Path]:
        return self._write(f"test-result-{timestamp_slug(summary.timestamp)}", summary.to_dict())

    def save_batch(self, summary: BatchSummary) -> Optional[Path]:
        return self._write(f"batch-summary-{timestamp_slug()}", summary.to_dict())

    def _write(self, stem: str, payload: Dict[str, Any]) -> Optional[Path]:
        path = self.results_dir / f"{stem}.json"
        try:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            handle, path = self._create(stem)
            with handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
        except OSError as exc:
            LOGGER.warning("Could not save results to %s: %s", path, exc)
            return None
        LOGGER.info("Results saved: %s", path)
        return path

    def _create(self, stem: str) -> Tuple[IO[str], Path]:
        # timestamps have second precision; runs finishing in the same second get -2, -3, ...
        attempt = 1
        while True:
            suffix = "" if attempt == 1 else f"-{attempt}"
            path = self.results_dir / f"{stem}{suffix}.json"
            try:
                return path.open("x", encoding="utf-8"), path
            except FileExistsError:
                attempt += 1
