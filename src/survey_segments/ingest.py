"""Load and clean the raw survey CSV into SurveyRecord values."""

from __future__ import annotations

from pathlib import Path

import polars as pl

from survey_segments.config import (
    ANXIETY_COLUMN,
    DURATION_COLUMN,
    DURATION_MAPPING,
    REQUIRED_COLUMNS,
    STRESS_COLUMN,
)
from survey_segments.errors import InputShapeError
from survey_segments.models import SurveyRecord


def read_survey_csv(path: Path) -> pl.DataFrame:
    """Read the CSV with every column as text and header whitespace stripped."""
    df = pl.read_csv(path, infer_schema_length=0)
    df = df.rename({c: c.strip() for c in df.columns})
    print(f"  Data loaded: {df.height} rows from {Path(path).name}")
    return df


def clean_survey(raw: pl.DataFrame) -> list[SurveyRecord]:
    """Keep rows with a known duration answer and numeric stress/anxiety scores."""
    missing = [c for c in REQUIRED_COLUMNS if c not in raw.columns]
    if missing:
        raise InputShapeError(
            f"missing required column(s) {missing}; found {raw.columns}",
            stage="ingest",
            shape=raw.shape,
        )

    df = raw.select(
        pl.col(DURATION_COLUMN).cast(pl.Utf8).str.strip_chars().alias("duration"),
        pl.col(STRESS_COLUMN)
        .cast(pl.Utf8)
        .str.strip_chars()
        .cast(pl.Float64, strict=False)
        .alias("stress"),
        pl.col(ANXIETY_COLUMN)
        .cast(pl.Utf8)
        .str.strip_chars()
        .cast(pl.Float64, strict=False)
        .alias("anxiety"),
    )
    kept = df.filter(
        pl.col("duration").is_in(list(DURATION_MAPPING))
        & pl.col("stress").is_not_null()
        & pl.col("anxiety").is_not_null()
        & pl.col("stress").is_finite()
        & pl.col("anxiety").is_finite()
    )

    dropped = raw.height - kept.height
    if dropped:
        print(f"  Dropped {dropped} row(s) with missing/invalid values")
    print(f"  Clean rows: {kept.height}")

    return [
        SurveyRecord.from_raw(row["duration"], row["stress"], row["anxiety"])
        for row in kept.iter_rows(named=True)
    ]


def load_survey(path: Path) -> list[SurveyRecord]:
    return clean_survey(read_survey_csv(path))
