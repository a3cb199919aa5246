"""
Tests for the survey-segments command in cli.py.

Runs main() against a small CSV in tmp_path and checks the files written
under the results root. One test patches run_analysis to capture the
arguments passed through from the command line.

Run: uv run pytest tests/test_cli.py -v
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from survey_segments.cli import main
from survey_segments.config import DEFAULT_K, RANDOM_SEED
from survey_segments.pipeline import run_analysis as real_run_analysis

# ── Helpers ──────────────────────────────────────────────────────────────────

CSV_ROWS = [
    ("Kurang dari 2 jam", 1, 2),
    ("Kurang dari 2 jam", 2, 3),
    ("Kurang dari 2 jam", 1, 4),
    ("2-4 jam", 5, 3),
    ("2-4 jam", 6, 4),
    ("2-4 jam", 5, 5),
    ("Lebih dari 4 jam", 9, 4),
    ("Lebih dari 4 jam", 10, 5),
    ("Lebih dari 4 jam", 9, 6),
]


@pytest.fixture
def survey_csv(tmp_path: Path) -> Path:
    path = tmp_path / "data_siswa.csv"
    lines = ["Durasi,JumlahStress,JumlahCemas"]
    lines += [f"{d},{s},{a}" for d, s, a in CSV_ROWS]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _run_dir(results: Path) -> Path:
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return results / "data_siswa" / today


# ── Full runs ────────────────────────────────────────────────────────────────


class TestFullRun:
    def test_writes_report_and_tables(self, survey_csv: Path, tmp_path: Path) -> None:
        results = tmp_path / "results"
        main([str(survey_csv), "--output", str(results), "--no-plots"])
        run_dir = _run_dir(results)
        payload = json.loads((run_dir / "report.json").read_text())
        assert payload["chosen_k"] == DEFAULT_K
        assert payload["n_records"] == 9
        assert (run_dir / "data" / "elbow.parquet").exists()
        assert (run_dir / "data" / "cluster_assignments.parquet").exists()
        assert not (run_dir / "plots" / "model_selection.png").exists()

    def test_writes_plot(self, survey_csv: Path, tmp_path: Path) -> None:
        results = tmp_path / "results"
        main([str(survey_csv), "-o", str(results)])
        assert (_run_dir(results) / "plots" / "model_selection.png").exists()

    def test_run_info_and_log(self, survey_csv: Path, tmp_path: Path) -> None:
        results = tmp_path / "results"
        main([str(survey_csv), "-o", str(results), "--no-plots", "--k", "3"])
        run_dir = _run_dir(results)
        info = json.loads((run_dir / "run_info.json").read_text())
        assert info["status"] == "ok"
        assert info["params"]["k"] == 3
        assert "ELBOW METHOD" in (run_dir / "run_log.txt").read_text()
        assert (results / "data_siswa" / "latest").is_symlink()


# ── Argument handling ────────────────────────────────────────────────────────


class TestArguments:
    @pytest.fixture
    def captured(self, monkeypatch: pytest.MonkeyPatch) -> dict:
        calls: dict = {}

        def fake_run_analysis(dataset, **kwargs):
            calls.update(kwargs)
            return real_run_analysis(dataset, **kwargs)

        monkeypatch.setattr("survey_segments.cli.run_analysis", fake_run_analysis)
        return calls

    def test_defaults(self, survey_csv: Path, tmp_path: Path, captured: dict) -> None:
        main([str(survey_csv), "-o", str(tmp_path / "r"), "--no-plots"])
        assert captured["k"] == DEFAULT_K
        assert captured["seed"] == RANDOM_SEED
        assert captured["max_workers"] == 1

    def test_overrides(self, survey_csv: Path, tmp_path: Path, captured: dict) -> None:
        main(
            [
                str(survey_csv),
                "-o",
                str(tmp_path / "r"),
                "--no-plots",
                "--k",
                "3",
                "--seed",
                "7",
                "--max-iter",
                "50",
                "--tol",
                "0.01",
                "--workers",
                "2",
            ]
        )
        assert captured == {"k": 3, "seed": 7, "max_iter": 50, "tol": 0.01, "max_workers": 2}


# ── Failures ─────────────────────────────────────────────────────────────────


class TestFailures:
    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.csv"), "-o", str(tmp_path / "r")])
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_analysis_error_exits_nonzero(self, tmp_path: Path) -> None:
        path = tmp_path / "one_group.csv"
        path.write_text(
            "Durasi,JumlahStress,JumlahCemas\n2-4 jam,1,2\n2-4 jam,2,3\n2-4 jam,3,4\n",
            encoding="utf-8",
        )
        results = tmp_path / "r"
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "-o", str(results), "--no-plots"])
        assert exc_info.value.code == 1
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        run_dir = results / "one_group" / today
        info = json.loads((run_dir / "run_info.json").read_text())
        assert info["status"].startswith("failed: PipelineError: stage 'anova' failed")
        assert "Analysis failed" in (run_dir / "run_log.txt").read_text()
