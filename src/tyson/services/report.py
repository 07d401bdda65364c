"""JSON run report for teardown runs."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tyson.models import InstanceRecord, TeardownOutcome


class ReportService:
    """Collects stage timings and the outcome of one run.

    Without a ``report_file`` nothing is written to disk. Write failures are
    logged and never interrupt the teardown.
    """

    def __init__(self, report_file: Optional[str], logger):
        self.report_file = report_file
        self.logger = logger
        self.report: Dict[str, Any] = {
            "run_id": None,
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "settings": {},
            "target": None,
            "stages": [],
            "outcome": None,
            "orphaned_blob": None,
            "error": None,
        }

    def start_run(self, run_id: str, settings: Dict[str, Any]):
        self.report["run_id"] = run_id
        self.report["status"] = "running"
        self.report["started_at"] = self._now()
        self.report["settings"] = settings
        self.write()

    def set_target(self, instance: InstanceRecord):
        self.report["target"] = {
            "id": instance.id,
            "name": instance.name,
            "resource_group": instance.resource_group,
        }
        self.write()

    def step_started(self, stage: str):
        self.report["stages"].append(
            {
                "name": stage,
                "status": "running",
                "started_at": self._now(),
                "finished_at": None,
                "duration_seconds": None,
                "error": None,
            }
        )
        self.write()

    def step_finished(self, stage: str, status: str, error: Optional[str] = None):
        for entry in reversed(self.report["stages"]):
            if entry["name"] == stage and entry["status"] == "running":
                entry["status"] = status
                entry["finished_at"] = self._now()
                entry["error"] = error
                entry["duration_seconds"] = self._elapsed(entry["started_at"], entry["finished_at"])
                break
        self.write()

    def set_outcome(self, outcome: TeardownOutcome):
        self.report["outcome"] = {
            "status": outcome.status,
            "stage": outcome.stage.value if outcome.stage else None,
            "reason": outcome.reason,
        }
        if outcome.is_partial and outcome.locator:
            self.report["orphaned_blob"] = outcome.locator.url
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.report["status"] = status
        self.report["finished_at"] = self._now()
        if self.report.get("started_at"):
            self.report["duration_seconds"] = self._elapsed(
                self.report["started_at"], self.report["finished_at"]
            )
        self.report["error"] = error
        self.write()

    def write(self):
        if not self.report_file:
            return

        directory = os.path.dirname(self.report_file) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix="tyson-report-", suffix=".json", dir=directory)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.report, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.report_file)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    @staticmethod
    def _elapsed(started_at: str, finished_at: str) -> float:
        started = datetime.fromisoformat(started_at)
        finished = datetime.fromisoformat(finished_at)
        return (finished - started).total_seconds()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
