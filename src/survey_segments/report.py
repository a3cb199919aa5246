"""Console rendering and file export for an AnalysisReport."""

from __future__ import annotations

import json
from pathlib import Path

import polars as pl

from survey_segments.config import CLUSTER_COLUMN, SILHOUETTE_GOOD
from survey_segments.models import AnalysisReport, Dataset, GroupStatistics


def _stats_frame(stats: list[GroupStatistics], group_name: str) -> pl.DataFrame:
    """Flatten group statistics into one row per group, one column per metric/stat."""
    rows = []
    for g in stats:
        row: dict = {group_name: str(g.group), "count": g.count}
        for metric, summary in g.metrics.items():
            for stat in ("mean", "min", "max", "median", "std"):
                value = getattr(summary, stat)
                if value is not None:
                    row[f"{metric}_{stat}"] = value
        rows.append(row)
    return pl.DataFrame(rows)


def print_report(report: AnalysisReport) -> None:
    """Print the analysis summary to stdout."""
    print("\n" + "=" * 60)
    print("  Survey Segmentation Report")
    print("=" * 60)
    print(f"  Records analysed: {report.n_records}")
    print(f"  Features: {', '.join(report.feature_names)}")

    print("\nWCSS values for elbow method:")
    for k, inertia in report.elbow:
        print(f"  k={k}: {inertia:.4f}")

    if report.silhouette_by_k:
        print("\nSilhouette by k (advisory):")
        for k, score in report.silhouette_by_k:
            marker = "  <- good" if score >= SILHOUETTE_GOOD else ""
            print(f"  k={k}: {score:.4f}{marker}")

    print(f"\nChosen k: {report.chosen_k}")
    if report.silhouette is None:
        print("Silhouette Score: undefined")
    else:
        print(f"Silhouette Score: {report.silhouette:.2f}")
    if not report.converged:
        print("  WARNING: final k-means fit stopped at max_iter before converging")

    print("\nCluster analysis:")
    for g in report.cluster_stats:
        print(f"  Cluster {g.group} (n={g.count})")
        for metric, s in g.metrics.items():
            print(f"    {metric:20s} mean={s.mean:.3f}  min={s.min:.3f}  max={s.max:.3f}")

    print("\nMean comparison by usage duration:")
    for category, means in report.duration_means.items():
        cells = ", ".join(f"{m}={v:.3f}" for m, v in means.items())
        print(f"  {category:10s} {cells}")

    print("\nStress and anxiety by usage duration:")
    for g in report.duration_stats:
        print(f"  {g.group} (n={g.count})")
        for metric, s in g.metrics.items():
            print(f"    {metric:10s} mean={s.mean:.3f}  median={s.median:.3f}  std={s.std:.3f}")

    print("\nSignificance tests (one-way ANOVA across duration categories):")
    for metric, res in report.anova.items():
        print(f"  {metric}: F-value: {res.f_statistic:.2f}, p-value: {res.p_value:.4f}")


def save_report(report: AnalysisReport, out_dir: Path) -> Path:
    path = out_dir / "report.json"
    with open(path, "w") as f:
        json.dump(report.to_dict(), f, indent=2, default=str)
    print(f"  Saved: {path.name}")
    return path


def save_tables(report: AnalysisReport, dataset: Dataset, data_dir: Path) -> None:
    """Write elbow curve, cluster assignments, and group statistics as parquet."""
    elbow = pl.DataFrame(
        {
            "k": [k for k, _ in report.elbow],
            "inertia": [v for _, v in report.elbow],
        }
    )
    elbow.write_parquet(data_dir / "elbow.parquet")
    print("  Saved: elbow.parquet")

    assignments = dataset.with_column(CLUSTER_COLUMN, report.labels).to_frame()
    assignments.write_parquet(data_dir / "cluster_assignments.parquet")
    print(f"  Saved: cluster_assignments.parquet ({assignments.height} rows)")

    _stats_frame(report.cluster_stats, CLUSTER_COLUMN).write_parquet(
        data_dir / "cluster_stats.parquet"
    )
    print("  Saved: cluster_stats.parquet")
    _stats_frame(report.duration_stats, "duration_category").write_parquet(
        data_dir / "duration_stats.parquet"
    )
    print("  Saved: duration_stats.parquet")
