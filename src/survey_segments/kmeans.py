"""K-means partitioning with k-means++ seeding.

Lloyd iterations over a standardized feature matrix:

  1. Seed K centroids (k-means++ by default).
  2. Assign each point to its nearest centroid (Euclidean; ties go to the
     lowest centroid index).
  3. Move each centroid to the mean of its members. A centroid with no
     members keeps its previous position.
  4. Stop once the summed centroid displacement drops below ``tol`` or
     after ``max_iter`` iterations.

The random source is always explicit: pass an int seed or a
``numpy.random.Generator`` for reproducible runs.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial.distance import cdist

from survey_segments.config import INIT_METHOD, MAX_ITER, TOL
from survey_segments.errors import InputShapeError
from survey_segments.models import KMeansResult, as_feature_matrix

INIT_METHODS = ("k-means++", "random")


def kmeans_plus_plus(X: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    """Pick k seeds, each sampled proportionally to squared distance to the nearest seed."""
    n = X.shape[0]
    centroids = np.empty((k, X.shape[1]), dtype=float)
    centroids[0] = X[rng.integers(n)]
    closest_sq = cdist(X, centroids[:1], metric="sqeuclidean")[:, 0]

    for c in range(1, k):
        total = closest_sq.sum()
        if total > 0:
            idx = rng.choice(n, p=closest_sq / total)
        else:
            # Every point already coincides with a seed
            idx = rng.integers(n)
        centroids[c] = X[idx]
        closest_sq = np.minimum(
            closest_sq, cdist(X, centroids[c : c + 1], metric="sqeuclidean")[:, 0]
        )
    return centroids


def random_init(X: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    idx = rng.choice(X.shape[0], size=k, replace=False)
    return X[idx].astype(float)


def assign_labels(X: np.ndarray, centroids: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return (labels, squared distance of each point to its centroid)."""
    sq = cdist(X, centroids, metric="sqeuclidean")
    labels = np.argmin(sq, axis=1)  # first minimum wins ties
    return labels, sq[np.arange(X.shape[0]), labels]


def update_centroids(X: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    new = np.array(centroids, dtype=float, copy=True)
    for c in range(centroids.shape[0]):
        members = X[labels == c]
        if members.shape[0] > 0:
            new[c] = members.mean(axis=0)
    return new


def compute_inertia(X: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> float:
    diffs = X - centroids[labels]
    return float(np.sum(diffs * diffs))


def _check_params(n: int, k: int, init: str, max_iter: int, tol: float) -> None:
    if not 1 <= k <= n:
        msg = f"k must be between 1 and the number of points ({n}), got {k}"
        raise ValueError(msg)
    if init not in INIT_METHODS:
        msg = f"init must be one of {INIT_METHODS}, got {init!r}"
        raise ValueError(msg)
    if max_iter < 1:
        msg = f"max_iter must be >= 1, got {max_iter}"
        raise ValueError(msg)
    if tol < 0:
        msg = f"tol must be >= 0, got {tol}"
        raise ValueError(msg)


def fit_predict(
    data,
    k: int,
    init: str = INIT_METHOD,
    max_iter: int = MAX_ITER,
    tol: float = TOL,
    rng: int | np.random.Generator | None = None,
) -> KMeansResult:
    """Fit k-means and return labels, centroids, and inertia (WCSS).

    Hitting ``max_iter`` without converging is not an error: the last
    centroids are used and ``converged`` is False.
    """
    X = as_feature_matrix(data, stage="kmeans")
    _check_params(X.shape[0], k, init, max_iter, tol)
    gen = np.random.default_rng(rng)

    if init == "k-means++":
        centroids = kmeans_plus_plus(X, k, gen)
    else:
        centroids = random_init(X, k, gen)

    converged = False
    n_iter = 0
    for n_iter in range(1, max_iter + 1):
        labels, _ = assign_labels(X, centroids)
        updated = update_centroids(X, labels, centroids)
        shift = float(np.linalg.norm(updated - centroids, axis=1).sum())
        centroids = updated
        if shift < tol or shift == 0.0:
            converged = True
            break

    labels, _ = assign_labels(X, centroids)
    if not converged:
        print(f"  WARNING: k-means (k={k}) did not converge within {max_iter} iterations")

    return KMeansResult(
        labels=labels,
        centroids=centroids,
        inertia=compute_inertia(X, labels, centroids),
        n_iter=n_iter,
        converged=converged,
    )


def predict(data, centroids: np.ndarray) -> np.ndarray:
    """Label new points against fitted centroids."""
    X = as_feature_matrix(data, stage="kmeans.predict")
    centroids = np.asarray(centroids, dtype=float)
    if centroids.ndim != 2 or centroids.shape[1] != X.shape[1]:
        raise InputShapeError(
            f"centroids have shape {centroids.shape}, data has {X.shape[1]} features",
            stage="kmeans.predict",
            shape=X.shape,
        )
    labels, _ = assign_labels(X, centroids)
    return labels
