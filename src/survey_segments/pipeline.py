"""End-to-end analysis: scale, elbow, cluster, describe, and test.

Stages run in order on one in-memory Dataset:

  1. scale       standardize every feature column
  2. elbow       k-means inertia for each k in K_RANGE (advisory)
  3. cluster     k-means at the fixed chosen k (DEFAULT_K unless overridden),
                 reusing the elbow fit when k is in the elbow range
  4. silhouette  score for the chosen labels, plus a per-k advisory curve
                 over the elbow fits
  5. clusters    count/mean/min/max of every feature per cluster
  6. durations   mean/median/std of every metric per duration category
  7. anova       one-way ANOVA per metric across duration categories

Any stage error aborts the run as PipelineError (original error chained);
no partial report is returned. A non-converged k-means fit or an undefined
silhouette is reported, not raised.
"""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from survey_segments import anova, grouping, kmeans, scaling, selection
from survey_segments.config import (
    CATEGORY_COLUMN,
    CLUSTER_COLUMN,
    DEFAULT_K,
    DURATION_CATEGORIES,
    INIT_METHOD,
    K_RANGE,
    MAX_ITER,
    MAX_WORKERS,
    METRIC_COLUMNS,
    RANDOM_SEED,
    TOL,
)
from survey_segments.errors import (
    DegenerateClusteringError,
    PipelineError,
    SegmentationError,
)
from survey_segments.models import AnalysisReport, Dataset

T = TypeVar("T")


def print_header(title: str) -> None:
    width = 80
    print(f"\n{'=' * width}")
    print(f"  {title}")
    print(f"{'=' * width}")


def _run_stage(stage: str, fn: Callable[..., T], *args, **kwargs) -> T:
    try:
        return fn(*args, **kwargs)
    except (SegmentationError, ValueError, KeyError) as exc:
        raise PipelineError(stage, exc) from exc


def _category_order(values: Sequence[str]) -> list[str]:
    """Known duration categories first (canonical order), then any others as seen."""
    present = list(dict.fromkeys(values))
    known = [c for c in DURATION_CATEGORIES if c in present]
    return known + [c for c in present if c not in known]


def run_analysis(
    dataset: Dataset,
    *,
    k: int = DEFAULT_K,
    k_range=K_RANGE,
    seed: int | None = RANDOM_SEED,
    init: str = INIT_METHOD,
    max_iter: int = MAX_ITER,
    tol: float = TOL,
    metrics: Sequence[str] = tuple(METRIC_COLUMNS),
    category_col: str = CATEGORY_COLUMN,
    max_workers: int = MAX_WORKERS,
) -> AnalysisReport:
    """Run every stage on ``dataset`` and return the combined report."""
    n = len(dataset)
    print(f"  Records: {n}, features: {', '.join(dataset.feature_names)}")

    print_header("SCALING")
    scaled, scaler_model = _run_stage("scale", scaling.fit_transform, dataset.features)
    for name, mu, sd in zip(dataset.feature_names, scaler_model.mean, scaler_model.std):
        print(f"    {name:20s} mean={mu:.4f}  std={sd:.4f}")

    print_header("ELBOW METHOD")
    ks = [kk for kk in k_range if kk <= n]
    if len(ks) < len(list(k_range)):
        print(f"  WARNING: only {n} records, elbow limited to k <= {n}")
    fits = _run_stage(
        "elbow",
        selection.fit_range,
        scaled,
        ks,
        seed=seed,
        init=init,
        max_iter=max_iter,
        tol=tol,
        max_workers=max_workers,
    )
    elbow = selection.inertia_curve(fits)

    print_header(f"K-MEANS (k={k})")
    if k in fits:
        fit = fits[k]
        print("  Reusing the elbow fit at this k")
    else:
        fit = _run_stage(
            "cluster",
            kmeans.fit_predict,
            scaled,
            k,
            init=init,
            max_iter=max_iter,
            tol=tol,
            rng=seed,
        )
    print(f"  Converged: {fit.converged} after {fit.n_iter} iteration(s)")
    print(f"  Inertia:   {fit.inertia:.4f}")
    labeled = dataset.with_column(CLUSTER_COLUMN, [int(c) for c in fit.labels])

    print_header("SILHOUETTE")
    try:
        sil: float | None = selection.silhouette(scaled, fit.labels)
        print(f"  Silhouette Score (k={k}): {sil:.4f}")
    except DegenerateClusteringError as exc:
        sil = None
        print(f"  WARNING: {exc}")
    sil_curve = _run_stage(
        "silhouette",
        selection.silhouette_curve,
        scaled,
        ks,
        seed=seed,
        max_iter=max_iter,
        tol=tol,
        fits=fits,
    )

    frame = labeled.to_frame()

    print_header("CLUSTER ANALYSIS")
    cluster_stats = _run_stage(
        "clusters",
        grouping.describe_groups,
        frame,
        CLUSTER_COLUMN,
        list(dataset.feature_names),
    )
    for g in cluster_stats:
        print(f"    Cluster {g.group}: n={g.count}")

    print_header("DURATION CATEGORIES")
    order = _run_stage("durations", lambda: _category_order(labeled.column(category_col)))
    duration_means = _run_stage(
        "durations", grouping.compare_means, frame, category_col, list(metrics), groups=order
    )
    duration_stats = _run_stage(
        "durations",
        grouping.describe_groups,
        frame,
        category_col,
        list(metrics),
        detailed=True,
        groups=order,
    )
    for g in duration_stats:
        print(f"    {g.group}: n={g.count}")

    print_header("ANOVA")
    anova_results = {}
    for metric in metrics:
        samples = _run_stage(
            "anova", grouping.partition_samples, frame, category_col, metric, order=order
        )
        res = _run_stage(
            "anova",
            anova.one_way_anova,
            [values for _, values in samples],
            metric=metric,
            groups=[str(key) for key, _ in samples],
        )
        print(f"    {metric}: F-value: {res.f_statistic:.2f}, p-value: {res.p_value:.4f}")
        anova_results[metric] = res

    return AnalysisReport(
        n_records=n,
        feature_names=tuple(dataset.feature_names),
        elbow=elbow,
        chosen_k=k,
        silhouette=sil,
        cluster_stats=cluster_stats,
        duration_means=duration_means,
        duration_stats=duration_stats,
        anova=anova_results,
        silhouette_by_k=sil_curve,
        labels=tuple(int(c) for c in fit.labels),
        converged=fit.converged,
        seed=seed,
    )
