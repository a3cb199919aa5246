"""Static model-selection plot (elbow + silhouette)."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from survey_segments.config import SILHOUETTE_GOOD
from survey_segments.models import AnalysisReport


def save_fig(fig: plt.Figure, path: Path, dpi: int = 150) -> None:
    fig.savefig(path, dpi=dpi, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"  Saved: {path.name}")


def plot_elbow_silhouette(report: AnalysisReport, out_dir: Path) -> Path:
    """Dual y-axis plot: inertia (elbow) + advisory silhouette, chosen k marked."""
    ks = [k for k, _ in report.elbow]
    inertias = [v for _, v in report.elbow]

    fig, ax1 = plt.subplots(figsize=(10, 5))
    color1 = "#4C72B0"
    ax1.set_xlabel("Number of Clusters (k)")
    ax1.set_ylabel("WCSS (inertia)", color=color1)
    ax1.plot(ks, inertias, "o-", color=color1, label="WCSS")
    ax1.tick_params(axis="y", labelcolor=color1)
    ax1.axvline(report.chosen_k, color="#888888", linestyle="--", linewidth=1)
    ax1.text(
        report.chosen_k + 0.05,
        max(inertias) if inertias else 0.0,
        f"chosen k={report.chosen_k}",
        va="top",
        fontsize=8,
        color="#555555",
    )

    if report.silhouette_by_k:
        ax2 = ax1.twinx()
        color2 = "#E81B23"
        ax2.set_ylabel("Silhouette Score", color=color2)
        ax2.plot(
            [k for k, _ in report.silhouette_by_k],
            [s for _, s in report.silhouette_by_k],
            "s--",
            color=color2,
            label="Silhouette",
        )
        ax2.tick_params(axis="y", labelcolor=color2)
        ax2.axhline(SILHOUETTE_GOOD, color="#888888", linestyle=":", linewidth=1, alpha=0.7)

    ax1.set_title("Elbow Method for Optimal k")
    ax1.set_xticks(ks)
    fig.tight_layout()
    path = out_dir / "model_selection.png"
    save_fig(fig, path)
    return path
