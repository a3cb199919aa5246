"""Exception types raised by the analysis core."""


class SegmentationError(Exception):
    """Base class for every error raised by survey_segments."""


class InputShapeError(SegmentationError, ValueError):
    """Feature matrix is empty, ragged, non-finite, or has the wrong width."""

    def __init__(self, message: str, stage: str = "", shape: tuple | None = None) -> None:
        self.stage = stage
        self.shape = shape
        prefix = f"[{stage}] " if stage else ""
        suffix = f" (shape={shape})" if shape is not None else ""
        super().__init__(f"{prefix}{message}{suffix}")


class DegenerateClusteringError(SegmentationError, ValueError):
    """Silhouette requested with fewer than 2 clusters or one cluster per point."""

    def __init__(self, n_clusters: int, n_samples: int) -> None:
        self.n_clusters = n_clusters
        self.n_samples = n_samples
        super().__init__(
            f"silhouette needs 2 <= n_clusters < n_samples, "
            f"got n_clusters={n_clusters}, n_samples={n_samples}"
        )


class DegenerateGroupError(SegmentationError, ValueError):
    """A group is empty, or there are no within-group degrees of freedom."""


class PipelineError(SegmentationError):
    """A pipeline stage failed. The original exception is chained as __cause__."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        super().__init__(f"stage '{stage}' failed: {cause}")
