"""
Tests for model selection in selection.py (elbow curve + silhouette).

The silhouette helpers are checked by hand and against scikit-learn's
silhouette_score; the elbow curve is checked for ordering, the k=1 total
sum of squares, and identical results between sequential and threaded runs.

Run: uv run pytest tests/test_selection.py -v
"""

import numpy as np
import pytest
from sklearn.metrics import silhouette_score

from survey_segments import selection
from survey_segments.errors import DegenerateClusteringError, InputShapeError

# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def blobs() -> np.ndarray:
    rng = np.random.default_rng(3)
    centers = np.array([[0.0, 0.0], [6.0, 0.0], [0.0, 6.0], [6.0, 6.0]])
    return np.vstack([c + rng.normal(scale=0.6, size=(15, 2)) for c in centers])


# ── elbow_curve ──────────────────────────────────────────────────────────────


class TestElbowCurve:
    def test_one_entry_per_k_ascending(self, blobs: np.ndarray) -> None:
        curve = selection.elbow_curve(blobs, range(1, 6), seed=0)
        assert [k for k, _ in curve] == [1, 2, 3, 4, 5]

    def test_unsorted_range_is_sorted(self, blobs: np.ndarray) -> None:
        curve = selection.elbow_curve(blobs, [3, 1, 2], seed=0)
        assert [k for k, _ in curve] == [1, 2, 3]

    def test_k1_is_total_sum_of_squares(self, blobs: np.ndarray) -> None:
        curve = selection.elbow_curve(blobs, range(1, 3), seed=0)
        total_ss = float(((blobs - blobs.mean(axis=0)) ** 2).sum())
        assert curve[0][1] == pytest.approx(total_ss)

    def test_roughly_non_increasing(self, blobs: np.ndarray) -> None:
        """Best inertia over several seeds per k should not grow with k."""
        best: dict[int, float] = {}
        for seed in range(5):
            for k, inertia in selection.elbow_curve(blobs, range(1, 6), seed=seed):
                best[k] = min(best.get(k, np.inf), inertia)
        values = [best[k] for k in range(1, 6)]
        for prev, nxt in zip(values, values[1:]):
            assert nxt <= prev * 1.05 + 1e-9

    def test_threaded_matches_sequential(self, blobs: np.ndarray) -> None:
        seq = selection.elbow_curve(blobs, range(1, 6), seed=9, max_workers=1)
        par = selection.elbow_curve(blobs, range(1, 6), seed=9, max_workers=3)
        assert seq == par

    def test_fit_range_returns_results_per_k(self, blobs: np.ndarray) -> None:
        fits = selection.fit_range(blobs, range(1, 4), seed=0)
        assert list(fits) == [1, 2, 3]
        assert fits[3].centroids.shape == (3, 2)

    def test_k_above_n_fails(self) -> None:
        with pytest.raises(ValueError):
            selection.elbow_curve(np.array([[0.0], [1.0]]), range(1, 4), seed=0)


# ── silhouette ───────────────────────────────────────────────────────────────


class TestSilhouette:
    def test_hand_computed(self) -> None:
        """Points 0, 1 | 4, 5: s = 3.5/4.5 and 2.5/3.5 on each side."""
        X = np.array([[0.0], [1.0], [4.0], [5.0]])
        samples = selection.silhouette_samples(X, [0, 0, 1, 1])
        assert samples.tolist() == pytest.approx([7 / 9, 5 / 7, 5 / 7, 7 / 9])
        assert selection.silhouette(X, [0, 0, 1, 1]) == pytest.approx(47 / 63)

    def test_matches_sklearn(self, blobs: np.ndarray) -> None:
        rng = np.random.default_rng(0)
        labels = rng.integers(0, 3, size=blobs.shape[0])
        assert selection.silhouette(blobs, labels) == pytest.approx(
            float(silhouette_score(blobs, labels))
        )

    def test_matches_sklearn_true_labels(self, blobs: np.ndarray) -> None:
        labels = np.repeat([0, 1, 2, 3], 15)
        ours = selection.silhouette(blobs, labels)
        assert ours == pytest.approx(float(silhouette_score(blobs, labels)))
        assert ours > 0.7

    def test_range(self) -> None:
        rng = np.random.default_rng(1)
        for _ in range(5):
            X = rng.normal(size=(25, 3))
            labels = rng.integers(0, 4, size=25)
            score = selection.silhouette(X, labels)
            assert -1.0 <= score <= 1.0

    def test_singleton_scores_zero(self) -> None:
        X = np.array([[0.0], [0.1], [5.0]])
        samples = selection.silhouette_samples(X, [0, 0, 1])
        assert samples[2] == 0.0
        assert selection.silhouette(X, [0, 0, 1]) == pytest.approx(
            float(silhouette_score(X, [0, 0, 1]))
        )

    def test_non_contiguous_labels(self, blobs: np.ndarray) -> None:
        labels = np.repeat([0, 1, 2, 3], 15)
        relabeled = np.repeat([7, 2, 9, 4], 15)
        assert selection.silhouette(blobs, relabeled) == pytest.approx(
            selection.silhouette(blobs, labels)
        )

    def test_single_cluster_is_degenerate(self, blobs: np.ndarray) -> None:
        with pytest.raises(DegenerateClusteringError):
            selection.silhouette(blobs, np.zeros(blobs.shape[0], dtype=int))

    def test_one_cluster_per_point_is_degenerate(self) -> None:
        X = np.array([[0.0], [1.0], [2.0]])
        with pytest.raises(DegenerateClusteringError) as exc_info:
            selection.silhouette(X, [0, 1, 2])
        assert exc_info.value.n_clusters == 3
        assert exc_info.value.n_samples == 3

    def test_label_length_mismatch(self, blobs: np.ndarray) -> None:
        with pytest.raises(InputShapeError):
            selection.silhouette(blobs, [0, 1])


# ── silhouette_curve ─────────────────────────────────────────────────────────


class TestSilhouetteCurve:
    def test_skips_k1(self, blobs: np.ndarray) -> None:
        curve = selection.silhouette_curve(blobs, range(1, 6), seed=0)
        assert [k for k, _ in curve] == [2, 3, 4, 5]
        assert all(-1.0 <= s <= 1.0 for _, s in curve)

    def test_skips_k_at_or_above_n(self) -> None:
        X = np.array([[0.0], [1.0], [5.0], [6.0]])
        curve = selection.silhouette_curve(X, range(1, 6), seed=0)
        assert [k for k, _ in curve] == [2, 3]

    def test_scores_given_fits(self, blobs: np.ndarray) -> None:
        fits = selection.fit_range(blobs, range(1, 6), seed=4)
        curve = dict(selection.silhouette_curve(blobs, fits=fits))
        assert sorted(curve) == [2, 3, 4, 5]
        for k, score in curve.items():
            assert score == pytest.approx(float(silhouette_score(blobs, fits[k].labels)))

    def test_matches_elbow_fits_for_same_range(self, blobs: np.ndarray) -> None:
        fits = selection.fit_range(blobs, range(1, 6), seed=4)
        standalone = selection.silhouette_curve(blobs, range(1, 6), seed=4)
        assert standalone == selection.silhouette_curve(blobs, fits=fits)
