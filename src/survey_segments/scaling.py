"""Feature standardization (z-scores with population standard deviation)."""

from __future__ import annotations

import numpy as np

from survey_segments.errors import InputShapeError
from survey_segments.models import ScalerModel, as_feature_matrix


def fit(data) -> ScalerModel:
    """Per-column mean and population std (ddof=0); zero std is clamped to 1."""
    X = as_feature_matrix(data, stage="scaler.fit")
    mean = X.mean(axis=0)
    std = X.std(axis=0, ddof=0)
    std = np.where(std == 0.0, 1.0, std)
    return ScalerModel(mean=mean, std=std)


def transform(data, model: ScalerModel) -> np.ndarray:
    X = as_feature_matrix(data, stage="scaler.transform")
    if X.shape[1] != model.n_features:
        raise InputShapeError(
            f"scaler was fitted on {model.n_features} features, got {X.shape[1]}",
            stage="scaler.transform",
            shape=X.shape,
        )
    return (X - model.mean) / model.std


def fit_transform(data) -> tuple[np.ndarray, ScalerModel]:
    model = fit(data)
    return transform(data, model), model


class StandardScaler:
    """Stateful wrapper around fit/transform.

    Re-fitting swaps in a new ScalerModel in a single assignment, so a
    partially fitted state is never observable.
    """

    def __init__(self) -> None:
        self.model: ScalerModel | None = None

    def fit(self, data) -> StandardScaler:
        self.model = fit(data)
        return self

    def transform(self, data) -> np.ndarray:
        if self.model is None:
            msg = "StandardScaler.transform called before fit"
            raise RuntimeError(msg)
        return transform(data, self.model)

    def fit_transform(self, data) -> np.ndarray:
        return self.fit(data).transform(data)
