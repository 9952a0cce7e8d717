"""
Label suppression for spatially crowded fixations.

Two fixations closer than the overlap threshold compete for a label: only the
longer one keeps it. Suppression is the union of all pairwise decisions and is
never reversed.
"""
from typing import FrozenSet

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform

DEFAULT_OVERLAP_THRESHOLD = 50.0


def distance_matrix(points) -> np.ndarray:
    """Pairwise Euclidean distances between (x, y) points."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) < 2:
        return np.zeros((len(pts), len(pts)))
    return squareform(pdist(pts))


def suppressed_labels(points, durations,
                      threshold: float = DEFAULT_OVERLAP_THRESHOLD) -> FrozenSet[int]:
    """
    Indices of fixations whose order label should be hidden.

    Parameters:
    -----------
    points : array-like
        Image-space (x, y) positions, shape (n, 2)
    durations : array-like
        Fixation durations, length n
    threshold : float, optional
        Pixel distance below which two fixations overlap, by default 50

    Returns:
    --------
    FrozenSet[int]
        Suppressed indices. For every pair i < j closer than ``threshold``
        the shorter fixation is suppressed, and j on equal durations.
    """
    durations = np.asarray(durations, dtype=float)
    dist = distance_matrix(points)
    if dist.shape[0] != len(durations):
        raise ValueError(
            f"Got {dist.shape[0]} points but {len(durations)} durations"
        )

    close_i, close_j = np.nonzero(np.triu(dist < threshold, k=1))
    return frozenset(
        int(i) if durations[i] < durations[j] else int(j)
        for i, j in zip(close_i, close_j)
    )


def label_visibility(df: pd.DataFrame,
                     threshold: float = DEFAULT_OVERLAP_THRESHOLD) -> np.ndarray:
    """Boolean label visibility for one subject's mapped fixations."""
    hidden = suppressed_labels(
        df[['img_x', 'img_y']].to_numpy(), df['fixDuration'].to_numpy(), threshold
    )
    visible = np.ones(len(df), dtype=bool)
    if hidden:
        visible[sorted(hidden)] = False
    return visible
