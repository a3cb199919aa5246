"""Per-group descriptive statistics (by cluster id or duration category)."""

from __future__ import annotations

from typing import Hashable, Iterable, Sequence

import numpy as np
import polars as pl

from survey_segments.errors import DegenerateGroupError
from survey_segments.models import GroupStatistics, MetricSummary


def group_members(keys: Iterable[Hashable]) -> dict[Hashable, list[int]]:
    """Map each group key to the ordered row indices that carry it.

    Keys appear in first-seen order.
    """
    members: dict[Hashable, list[int]] = {}
    for i, key in enumerate(keys):
        members.setdefault(key, []).append(i)
    return members


def _check_columns(frame: pl.DataFrame, group_col: str, metrics: Sequence[str]) -> None:
    missing = [c for c in [group_col, *metrics] if c not in frame.columns]
    if missing:
        msg = f"columns not found: {missing}"
        raise KeyError(msg)


def describe_groups(
    frame: pl.DataFrame,
    group_col: str,
    metrics: Sequence[str],
    detailed: bool = False,
    groups: Sequence[Hashable] | None = None,
) -> list[GroupStatistics]:
    """Count, mean, min and max of each metric per group.

    ``detailed=True`` adds median and population std (ddof=0). Results follow
    ``groups`` when given (every listed group must have members), otherwise
    first-seen order of ``group_col``.
    """
    _check_columns(frame, group_col, metrics)
    if frame.height == 0:
        msg = f"cannot describe groups of '{group_col}': no rows"
        raise DegenerateGroupError(msg)

    aggs = [pl.len().alias("count")]
    for m in metrics:
        aggs += [
            pl.col(m).mean().alias(f"{m}__mean"),
            pl.col(m).min().alias(f"{m}__min"),
            pl.col(m).max().alias(f"{m}__max"),
        ]
        if detailed:
            aggs += [
                pl.col(m).median().alias(f"{m}__median"),
                pl.col(m).std(ddof=0).alias(f"{m}__std"),
            ]

    stats = frame.group_by(group_col, maintain_order=True).agg(aggs)
    by_key = {row[group_col]: row for row in stats.iter_rows(named=True)}

    order = list(groups) if groups is not None else list(by_key)
    empty = [g for g in order if g not in by_key]
    if empty:
        msg = f"group(s) {empty} of '{group_col}' have no members"
        raise DegenerateGroupError(msg)

    result: list[GroupStatistics] = []
    for key in order:
        row = by_key[key]
        summaries = {
            m: MetricSummary(
                mean=float(row[f"{m}__mean"]),
                min=float(row[f"{m}__min"]),
                max=float(row[f"{m}__max"]),
                median=float(row[f"{m}__median"]) if detailed else None,
                std=float(row[f"{m}__std"]) if detailed else None,
            )
            for m in metrics
        }
        result.append(GroupStatistics(group=key, count=int(row["count"]), metrics=summaries))
    return result


def compare_means(
    frame: pl.DataFrame,
    group_col: str,
    metrics: Sequence[str],
    groups: Sequence[Hashable] | None = None,
) -> dict[str, dict[str, float]]:
    """Mean of each metric per group: {group: {metric: mean}}."""
    return {
        str(g.group): {m: s.mean for m, s in g.metrics.items()}
        for g in describe_groups(frame, group_col, metrics, groups=groups)
    }


def partition_samples(
    frame: pl.DataFrame,
    group_col: str,
    metric: str,
    order: Sequence[Hashable] | None = None,
) -> list[tuple[Hashable, np.ndarray]]:
    """Split one metric column into per-group samples.

    With ``order``, every listed group is returned in that order, empty if it
    has no rows; otherwise groups follow first-seen order.
    """
    _check_columns(frame, group_col, [metric])
    values = frame[metric].to_numpy().astype(float)
    members = group_members(frame[group_col].to_list())
    keys = list(order) if order is not None else list(members)
    return [(key, values[members.get(key, [])]) for key in keys]
