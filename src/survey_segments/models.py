"""Data classes for survey records, fitted models, and analysis results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional, Sequence

import numpy as np
import polars as pl

from survey_segments.config import (
    CATEGORY_COLUMN,
    DURATION_LABELS,
    DURATION_MAPPING,
    FEATURE_COLUMNS,
)
from survey_segments.errors import InputShapeError


def as_feature_matrix(data, stage: str) -> np.ndarray:
    """Coerce ``data`` to a non-empty, rectangular, finite 2-D float array.

    Raises InputShapeError naming ``stage`` when the input is empty, ragged,
    not two-dimensional, or contains NaN/inf.
    """
    if isinstance(data, Dataset):
        data = data.features
    if not isinstance(data, np.ndarray):
        rows = list(data)
        widths = {len(r) for r in rows if hasattr(r, "__len__")}
        if len(widths) > 1:
            raise InputShapeError(
                f"ragged feature rows with widths {sorted(widths)}",
                stage=stage,
                shape=(len(rows),),
            )
        data = rows
    matrix = np.asarray(data, dtype=float)
    if matrix.ndim != 2:
        raise InputShapeError("expected a 2-D feature matrix", stage=stage, shape=matrix.shape)
    if matrix.shape[0] == 0 or matrix.shape[1] == 0:
        raise InputShapeError("feature matrix is empty", stage=stage, shape=matrix.shape)
    if not np.all(np.isfinite(matrix)):
        raise InputShapeError("feature matrix has NaN or inf", stage=stage, shape=matrix.shape)
    return matrix


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=float, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class SurveyRecord:
    """One cleaned survey response."""

    duration: str  # raw answer, e.g. "2-4 jam"
    duration_numeric: float
    stress: float
    anxiety: float

    @classmethod
    def from_raw(cls, duration: str, stress: float, anxiety: float) -> SurveyRecord:
        """Build a record, encoding ``duration`` via DURATION_MAPPING."""
        return cls(
            duration=duration,
            duration_numeric=DURATION_MAPPING[duration],
            stress=float(stress),
            anxiety=float(anxiety),
        )

    @property
    def features(self) -> tuple[float, float, float]:
        return (self.duration_numeric, self.stress, self.anxiety)

    @property
    def duration_category(self) -> str:
        return DURATION_LABELS[self.duration]


@dataclass(frozen=True, eq=False)
class Dataset:
    """Feature matrix plus parallel non-feature columns.

    ``features`` is read-only. Derived columns are attached with
    ``with_column``, which returns a new Dataset.
    """

    features: np.ndarray
    feature_names: tuple[str, ...]
    columns: dict[str, tuple] = field(default_factory=dict)

    def __post_init__(self) -> None:
        matrix = as_feature_matrix(self.features, stage="dataset")
        if matrix.shape[1] != len(self.feature_names):
            raise InputShapeError(
                f"{len(self.feature_names)} feature names for {matrix.shape[1]} columns",
                stage="dataset",
                shape=matrix.shape,
            )
        for name, values in self.columns.items():
            if len(values) != matrix.shape[0]:
                raise InputShapeError(
                    f"column '{name}' has {len(values)} values for {matrix.shape[0]} rows",
                    stage="dataset",
                    shape=matrix.shape,
                )
        object.__setattr__(self, "features", _readonly(matrix))
        object.__setattr__(self, "feature_names", tuple(self.feature_names))
        object.__setattr__(self, "columns", {k: tuple(v) for k, v in self.columns.items()})

    @classmethod
    def from_records(cls, records: Sequence[SurveyRecord]) -> Dataset:
        if not records:
            raise InputShapeError("no survey records", stage="dataset", shape=(0,))
        return cls(
            features=np.array([r.features for r in records], dtype=float),
            feature_names=tuple(FEATURE_COLUMNS),
            columns={
                "duration": tuple(r.duration for r in records),
                CATEGORY_COLUMN: tuple(r.duration_category for r in records),
            },
        )

    def __len__(self) -> int:
        return self.features.shape[0]

    @property
    def n_features(self) -> int:
        return self.features.shape[1]

    def column(self, name: str) -> tuple:
        if name in self.columns:
            return self.columns[name]
        if name in self.feature_names:
            return tuple(self.features[:, self.feature_names.index(name)].tolist())
        raise KeyError(name)

    def with_column(self, name: str, values: Sequence) -> Dataset:
        """Return a new Dataset with ``name`` attached (or replaced)."""
        columns = dict(self.columns)
        columns[name] = tuple(values)
        return Dataset(features=self.features, feature_names=self.feature_names, columns=columns)

    def to_frame(self) -> pl.DataFrame:
        data: dict[str, list] = {
            name: self.features[:, j].tolist() for j, name in enumerate(self.feature_names)
        }
        for name, values in self.columns.items():
            data[name] = list(values)
        return pl.DataFrame(data)


@dataclass(frozen=True, eq=False)
class ScalerModel:
    """Per-feature mean and population std (zeros clamped to 1)."""

    mean: np.ndarray
    std: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "mean", _readonly(self.mean))
        object.__setattr__(self, "std", _readonly(self.std))

    @property
    def n_features(self) -> int:
        return self.mean.shape[0]


@dataclass(frozen=True, eq=False)
class KMeansResult:
    """Fitted partition: labels, centroids, and within-cluster sum of squares."""

    labels: np.ndarray
    centroids: np.ndarray
    inertia: float
    n_iter: int
    converged: bool

    @property
    def k(self) -> int:
        return self.centroids.shape[0]


@dataclass(frozen=True)
class MetricSummary:
    mean: float
    min: float
    max: float
    median: Optional[float] = None
    std: Optional[float] = None


@dataclass(frozen=True)
class GroupStatistics:
    """Descriptive statistics for one group (cluster id or duration category)."""

    group: str | int
    count: int
    metrics: dict[str, MetricSummary]

    def to_dict(self) -> dict:
        return {
            "group": self.group,
            "count": self.count,
            "metrics": {name: asdict(summary) for name, summary in self.metrics.items()},
        }


@dataclass(frozen=True)
class AnovaResult:
    """One-way ANOVA outcome for one metric across groups."""

    metric: str
    f_statistic: float
    p_value: float
    df_between: int
    df_within: int
    groups: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d = asdict(self)
        d["groups"] = list(self.groups)
        return d


@dataclass(frozen=True)
class AnalysisReport:
    """Combined output of one pipeline run."""

    n_records: int
    feature_names: tuple[str, ...]
    elbow: list[tuple[int, float]]
    chosen_k: int
    silhouette: float | None
    cluster_stats: list[GroupStatistics]
    duration_means: dict[str, dict[str, float]]
    duration_stats: list[GroupStatistics]
    anova: dict[str, AnovaResult]
    silhouette_by_k: list[tuple[int, float]] = field(default_factory=list)
    labels: tuple[int, ...] = ()
    converged: bool = True
    seed: int | None = None

    def to_dict(self) -> dict:
        return {
            "n_records": self.n_records,
            "feature_names": list(self.feature_names),
            "elbow": [{"k": k, "inertia": inertia} for k, inertia in self.elbow],
            "chosen_k": self.chosen_k,
            "silhouette": self.silhouette,
            "cluster_stats": [g.to_dict() for g in self.cluster_stats],
            "duration_means": self.duration_means,
            "duration_stats": [g.to_dict() for g in self.duration_stats],
            "anova": {metric: res.to_dict() for metric, res in self.anova.items()},
            "silhouette_by_k": [{"k": k, "silhouette": s} for k, s in self.silhouette_by_k],
            "labels": list(self.labels),
            "converged": self.converged,
            "seed": self.seed,
        }
