"""One-way ANOVA across independent groups."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy import stats

from survey_segments.errors import DegenerateGroupError
from survey_segments.models import AnovaResult


def one_way_anova(
    samples: Sequence[Sequence[float]],
    metric: str = "",
    groups: Sequence[str] = (),
) -> AnovaResult:
    """F test for equal group means.

    F = (SS_between / (k - 1)) / (SS_within / (N - k)) and p is the upper
    tail of F(k - 1, N - k). When every group has zero spread, F is +inf
    (p = 0) if the group means differ and 0 (p = 1) if they are identical.

    Raises DegenerateGroupError for fewer than 2 groups, an empty group, or
    N - k <= 0.
    """
    arrays = [np.asarray(s, dtype=float).ravel() for s in samples]
    k = len(arrays)
    label = f" for '{metric}'" if metric else ""
    if k < 2:
        msg = f"ANOVA{label} needs at least 2 groups, got {k}"
        raise DegenerateGroupError(msg)
    sizes = [a.size for a in arrays]
    empty = [groups[i] if i < len(groups) else i for i, n in enumerate(sizes) if n == 0]
    if empty:
        msg = f"ANOVA{label}: group(s) {empty} have no observations"
        raise DegenerateGroupError(msg)
    n_total = sum(sizes)
    df_between = k - 1
    df_within = n_total - k
    if df_within <= 0:
        msg = f"ANOVA{label}: no within-group degrees of freedom (N={n_total}, k={k})"
        raise DegenerateGroupError(msg)

    all_values = np.concatenate(arrays)
    grand_mean = all_values.mean()
    ss_total = float(((all_values - grand_mean) ** 2).sum())
    ss_between = float(sum(a.size * (a.mean() - grand_mean) ** 2 for a in arrays))
    ss_within = sum(float(((a - a.mean()) ** 2).sum()) for a in arrays)

    # Within-group spread counts as zero relative to the total sum of squares
    if ss_total == 0.0:
        f_stat, p_value = 0.0, 1.0
    elif ss_within <= np.finfo(float).eps * ss_total:
        f_stat, p_value = math.inf, 0.0
    else:
        f_stat = float((ss_between / df_between) / (ss_within / df_within))
        p_value = float(stats.f.sf(f_stat, df_between, df_within))

    return AnovaResult(
        metric=metric,
        f_statistic=max(f_stat, 0.0),
        p_value=min(max(p_value, 0.0), 1.0),
        df_between=df_between,
        df_within=df_within,
        groups=tuple(groups),
    )
