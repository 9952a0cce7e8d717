"""
Visual encoding of fixation order and duration.
"""
from typing import Tuple

import numpy as np
import pandas as pd

from scanplot.errors import MissingFieldError

SIZE_RANGE = (1.0, 10.0)


def rescale_durations(durations, to: Tuple[float, float] = SIZE_RANGE) -> np.ndarray:
    """Linearly rescale durations onto ``to``.

    The subject's own minimum maps to ``to[0]`` and its maximum to ``to[1]``.
    When all durations are equal every value maps to the midpoint of ``to``.
    """
    values = np.asarray(durations, dtype=float)
    low, high = to
    if values.size == 0:
        return values
    d_min, d_max = values.min(), values.max()
    if d_max == d_min:
        return np.full(values.shape, (low + high) / 2.0)
    return low + (high - low) * (values - d_min) / (d_max - d_min)


def fixation_order(n: int) -> np.ndarray:
    """1-based temporal rank of ``n`` fixations."""
    return np.arange(1, n + 1)


def encode_fixations(df: pd.DataFrame, size_range: Tuple[float, float] = SIZE_RANGE) -> pd.DataFrame:
    """
    Add fixation order and point size to one subject's fixation sequence.

    Parameters:
    -----------
    df : pd.DataFrame
        Fixations of a single subject and trial, in temporal order
    size_range : Tuple[float, float], optional
        Output range of the duration rescale, by default (1, 10)

    Returns:
    --------
    pd.DataFrame
        Copy of the data with 'fix_order' and 'fix_size' columns

    Raises:
    -------
    MissingFieldError
        If the data has no 'fixDuration' column
    """
    if 'fixDuration' not in df.columns:
        raise MissingFieldError('fixDuration', context="fixation data (durations in ms)")

    encoded = df.copy()
    encoded['fix_order'] = fixation_order(len(encoded))
    encoded['fix_size'] = rescale_durations(encoded['fixDuration'], to=size_range)
    return encoded
