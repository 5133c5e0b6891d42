"""Run-level error collection for oaslint.

Collects rule execution failures and timeouts during a single validation run
and optionally flushes them to an errors directory for later inspection. The
engine never reads these files back.
"""

import json
import logging
import traceback
import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from oaslint.errors import RuleExecutionError, describe_exception

logger = logging.getLogger(__name__)

MAX_INDEXED_RUNS = 100


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ErrorContext:
    """Where an error occurred."""
    rule_id: str
    check_name: str
    document_title: str | None = None


@dataclass
class RunError:
    """A single error occurrence during a validation run."""
    error_id: str
    run_id: str
    timestamp: str
    severity: ErrorSeverity
    error_type: str
    message: str
    context: dict[str, Any]
    traceback_lines: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_id": self.error_id,
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "severity": self.severity.value,
            "error_type": self.error_type,
            "message": self.message,
            "context": self.context,
            "traceback_lines": self.traceback_lines,
        }


class ErrorCollector:
    """Collects errors during a single validation run."""

    def __init__(self, command: str = "validate"):
        self.command = command
        self.start_time = datetime.now(UTC)
        self.run_id = self._generate_run_id()
        self.errors: list[RunError] = []

        logger.debug(f"Initialized error collector for run {self.run_id}")

    def collect_error(self, error: BaseException, context: ErrorContext,
                      severity: ErrorSeverity = ErrorSeverity.ERROR) -> str:
        """Collect an error with its context.

        Returns:
            Error ID for reference
        """
        error_id = str(uuid.uuid4())[:8]
        cause = error.error if isinstance(error, RuleExecutionError) else error
        traceback_lines = "".join(
            traceback.format_exception(type(cause), cause, cause.__traceback__)
        ).splitlines()

        self.errors.append(RunError(
            error_id=error_id,
            run_id=self.run_id,
            timestamp=datetime.now(UTC).isoformat(),
            severity=severity,
            error_type=type(cause).__name__,
            message=describe_exception(cause),
            context=asdict(context),
            traceback_lines=traceback_lines,
        ))

        logger.debug(f"Collected error {error_id}: {type(cause).__name__} - {cause}")
        return error_id

    def collect_warning(self, message: str, context: ErrorContext) -> str:
        """Collect a warning message (for example a check timeout)."""
        return self.collect_error(RuntimeWarning(message), context, ErrorSeverity.WARNING)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def get_error_counts(self) -> dict[str, int]:
        """Get error counts by severity."""
        counts = {severity.value: 0 for severity in ErrorSeverity}
        for error in self.errors:
            counts[error.severity.value] += 1
        return counts

    def summary(self) -> dict[str, Any]:
        end_time = datetime.now(UTC)
        return {
            "schema_version": "1.0.0",
            "run_id": self.run_id,
            "command": self.command,
            "started_at": self.start_time.isoformat(),
            "completed_at": end_time.isoformat(),
            "duration_seconds": (end_time - self.start_time).total_seconds(),
            "total_errors": len(self.errors),
            "errors_by_severity": self.get_error_counts(),
            "errors": [error.to_dict() for error in self.errors],
        }

    def flush_to_filesystem(self, errors_dir: Path) -> Path | None:
        """Write collected errors to ``errors_dir/<run_id>.json`` and update the index.

        Returns:
            Path to the run's error file, or None if nothing was collected
        """
        if not self.errors:
            logger.debug(f"No errors to flush for run {self.run_id}")
            return None

        errors_dir = Path(errors_dir)
        errors_dir.mkdir(parents=True, exist_ok=True)

        summary = self.summary()
        error_file = errors_dir / f"{self.run_id}.json"
        with open(error_file, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)

        self._update_errors_index(errors_dir, summary)

        logger.info(f"Flushed {len(self.errors)} errors to: {error_file}")
        return error_file

    def _update_errors_index(self, errors_dir: Path, summary: dict[str, Any]) -> None:
        index_file = errors_dir / "index.json"

        if index_file.exists():
            try:
                with open(index_file, encoding="utf-8") as f:
                    index_data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to read errors index, creating new one: {e}")
                index_data = self._create_empty_index()
        else:
            index_data = self._create_empty_index()

        run_entry = {
            "run_id": summary["run_id"],
            "command": summary["command"],
            "started_at": summary["started_at"],
            "duration_seconds": summary["duration_seconds"],
            "total_errors": summary["total_errors"],
            "errors_by_severity": summary["errors_by_severity"],
            "error_file": f"{summary['run_id']}.json",
        }

        runs = [run for run in index_data.get("runs", []) if run.get("run_id") != summary["run_id"]]
        runs.append(run_entry)
        runs.sort(key=lambda r: r["started_at"], reverse=True)

        # Keep only the most recent runs
        for old_run in runs[MAX_INDEXED_RUNS:]:
            old_error_file = errors_dir / old_run["error_file"]
            if old_error_file.exists():
                old_error_file.unlink()
        runs = runs[:MAX_INDEXED_RUNS]

        index_data["runs"] = runs
        index_data["total_runs"] = len(runs)
        index_data["last_updated"] = datetime.now(UTC).isoformat()

        with open(index_file, "w", encoding="utf-8") as f:
            json.dump(index_data, f, indent=2, ensure_ascii=False)

    def _create_empty_index(self) -> dict[str, Any]:
        now = datetime.now(UTC).isoformat()
        return {
            "schema_version": "1.0.0",
            "created_at": now,
            "last_updated": now,
            "total_runs": 0,
            "description": "Rule execution errors collected across oaslint runs",
            "runs": [],
        }

    def _generate_run_id(self) -> str:
        # Format: run-YYYYMMDD-HHMMSS-{short_uuid}
        timestamp_part = self.start_time.strftime("run-%Y%m%d-%H%M%S")
        uuid_part = str(uuid.uuid4())[:8]
        return f"{timestamp_part}-{uuid_part}"
