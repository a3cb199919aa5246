"""Structured output directory for one analysis run.

Each run gets:
  - results/<dataset>/<date>/plots/ and data/
  - run_log.txt: everything printed while the context was open
  - run_info.json: timestamps, git commit, Python version, parameters, status
  - a `latest` symlink next to the date directories

Usage:
    with RunContext(dataset="data_siswa", params=vars(args)) as ctx:
        report = run_analysis(dataset)
        save_report(report, ctx.run_dir)
"""

from __future__ import annotations

import io
import json
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from types import TracebackType


class _TeeStream:
    """Writes to the wrapped stream and keeps a copy for run_log.txt."""

    def __init__(self, original: io.TextIOBase) -> None:
        self._original = original
        self._buffer = io.StringIO()

    def write(self, data: str) -> int:
        self._original.write(data)
        self._buffer.write(data)
        return len(data)

    def flush(self) -> None:
        self._original.flush()

    def getvalue(self) -> str:
        return self._buffer.getvalue()


def _git_commit_hash() -> str:
    """Current git commit hash, or 'unknown' outside a repo."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass
    return "unknown"


class RunContext:
    """Context manager that prepares run directories and records run metadata.

    Attributes:
        dataset: Name of the analysed dataset (usually the CSV stem).
        params: Parameters recorded in run_info.json.
        run_dir: results/<dataset>/<date>/
        plots_dir: PNG output.
        data_dir: Parquet output.
    """

    def __init__(
        self,
        dataset: str,
        params: dict | None = None,
        results_root: Path | None = None,
    ) -> None:
        self.dataset = dataset
        self.params = params or {}

        root = results_root or Path("results")
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        self.run_dir = root / dataset / today
        self.plots_dir = self.run_dir / "plots"
        self.data_dir = self.run_dir / "data"

        self._dataset_dir = root / dataset
        self._today = today
        self._tee: _TeeStream | None = None
        self._original_stdout: io.TextIOBase | None = None
        self._start_time: datetime | None = None
        self._status = "ok"

    def __enter__(self) -> RunContext:
        self.setup()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and self._status == "ok":
            self._status = f"failed: {exc_type.__name__}: {exc_val}"
        self.finalize()

    def fail(self, exc: BaseException) -> None:
        """Record ``exc`` as the run status; a later exit exception won't replace it."""
        self._status = f"failed: {type(exc).__name__}: {exc}"

    def setup(self) -> None:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.plots_dir.mkdir(exist_ok=True)
        self.data_dir.mkdir(exist_ok=True)

        self._original_stdout = sys.stdout
        self._tee = _TeeStream(sys.stdout)
        sys.stdout = self._tee  # type: ignore[assignment]
        self._start_time = datetime.now(timezone.utc)

    def finalize(self) -> None:
        """Restore stdout, write run_log.txt + run_info.json, update `latest`."""
        log_text = ""
        if self._tee is not None:
            log_text = self._tee.getvalue()
        if self._original_stdout is not None:
            sys.stdout = self._original_stdout  # type: ignore[assignment]

        (self.run_dir / "run_log.txt").write_text(log_text, encoding="utf-8")

        end_time = datetime.now(timezone.utc)
        run_info = {
            "dataset": self.dataset,
            "run_date": self._today,
            "timestamp_start": (self._start_time.isoformat() if self._start_time else None),
            "timestamp_end": end_time.isoformat(),
            "status": self._status,
            "git_commit": _git_commit_hash(),
            "python_version": sys.version,
            "params": self.params,
        }
        with open(self.run_dir / "run_info.json", "w") as f:
            json.dump(run_info, f, indent=2, default=str)

        latest = self._dataset_dir / "latest"
        if latest.is_symlink() or latest.exists():
            latest.unlink()
        latest.symlink_to(self._today)
