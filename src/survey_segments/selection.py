"""Model selection helpers: elbow curve (inertia per k) and silhouette score."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed

import numpy as np
from sklearn.metrics import silhouette_samples as sklearn_silhouette_samples
from sklearn.metrics import silhouette_score
from tqdm import tqdm

from survey_segments import kmeans
from survey_segments.config import INIT_METHOD, K_RANGE, MAX_ITER, MAX_WORKERS, RANDOM_SEED, TOL
from survey_segments.errors import DegenerateClusteringError, InputShapeError
from survey_segments.models import KMeansResult, as_feature_matrix


def _spawn_generators(seed: int | None, n: int) -> list[np.random.Generator]:
    """One independent generator per fit, so results don't depend on execution order."""
    return [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(n)]


def fit_range(
    data,
    k_range=K_RANGE,
    *,
    seed: int | None = RANDOM_SEED,
    init: str = INIT_METHOD,
    max_iter: int = MAX_ITER,
    tol: float = TOL,
    max_workers: int = MAX_WORKERS,
) -> dict[int, KMeansResult]:
    """Fit k-means once per k. Returns {k: KMeansResult} in ascending k."""
    X = as_feature_matrix(data, stage="elbow")
    ks = sorted(k_range)
    gens = dict(zip(ks, _spawn_generators(seed, len(ks))))

    def _fit(k: int) -> KMeansResult:
        return kmeans.fit_predict(X, k, init=init, max_iter=max_iter, tol=tol, rng=gens[k])

    results: dict[int, KMeansResult] = {}
    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_k = {executor.submit(_fit, k): k for k in ks}
            for future in tqdm(
                as_completed(future_to_k),
                total=len(future_to_k),
                desc="Elbow",
                unit="fit",
            ):
                results[future_to_k[future]] = future.result()
    else:
        for k in ks:
            results[k] = _fit(k)
    return {k: results[k] for k in ks}


def inertia_curve(fits: dict[int, KMeansResult]) -> list[tuple[int, float]]:
    """[(k, inertia)] in ascending k from already-fitted results."""
    curve = [(k, fits[k].inertia) for k in sorted(fits)]
    for k, inertia in curve:
        print(f"    k={k}: inertia={inertia:.4f}")
    return curve


def elbow_curve(
    data,
    k_range=K_RANGE,
    *,
    seed: int | None = RANDOM_SEED,
    init: str = INIT_METHOD,
    max_iter: int = MAX_ITER,
    tol: float = TOL,
    max_workers: int = MAX_WORKERS,
) -> list[tuple[int, float]]:
    """Return [(k, inertia)] in ascending k.

    Inertia is expected to be non-increasing in k, but k-means++ seeding is
    random, so small increases between neighbouring k are possible.
    """
    fits = fit_range(
        data,
        k_range,
        seed=seed,
        init=init,
        max_iter=max_iter,
        tol=tol,
        max_workers=max_workers,
    )
    return inertia_curve(fits)


def _check_labels(data, labels) -> tuple[np.ndarray, np.ndarray]:
    X = as_feature_matrix(data, stage="silhouette")
    labels = np.asarray(labels)
    n = X.shape[0]
    if labels.shape != (n,):
        raise InputShapeError(
            f"{labels.size} labels for {n} points", stage="silhouette", shape=X.shape
        )
    n_clusters = np.unique(labels).size
    if not 2 <= n_clusters < n:
        raise DegenerateClusteringError(n_clusters, n)
    return X, labels


def silhouette_samples(data, labels) -> np.ndarray:
    """Per-point silhouette values s(i) = (b - a) / max(a, b).

    Points in a singleton cluster score 0.
    """
    X, labels = _check_labels(data, labels)
    return sklearn_silhouette_samples(X, labels)


def silhouette(data, labels) -> float:
    """Mean silhouette over all points, in [-1, 1].

    Raises DegenerateClusteringError unless 2 <= n_clusters < n_samples.
    """
    X, labels = _check_labels(data, labels)
    return float(silhouette_score(X, labels))


def silhouette_curve(
    data,
    k_range=K_RANGE,
    *,
    seed: int | None = RANDOM_SEED,
    max_iter: int = MAX_ITER,
    tol: float = TOL,
    fits: dict[int, KMeansResult] | None = None,
) -> list[tuple[int, float]]:
    """Advisory silhouette score per k. Degenerate k values are skipped.

    Pass the ``fit_range`` results of the elbow stage as ``fits`` to score
    the same clusterings the elbow curve reports.
    """
    X = as_feature_matrix(data, stage="silhouette")
    if fits is None:
        ks = [k for k in k_range if k <= X.shape[0]]
        fits = fit_range(X, ks, seed=seed, max_iter=max_iter, tol=tol)
    curve: list[tuple[int, float]] = []
    for k in sorted(fits):
        if not 2 <= k < X.shape[0]:
            continue
        try:
            score = silhouette(X, fits[k].labels)
        except DegenerateClusteringError:
            print(f"    k={k}: silhouette undefined (fewer than 2 non-empty clusters)")
            continue
        print(f"    k={k}: silhouette={score:.4f}")
        curve.append((k, score))
    return curve
