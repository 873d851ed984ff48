import time
from typing import List, Tuple

import numpy as np
from loguru import logger
from numba import njit

from pystrip.errors import InvalidArgument
from pystrip.stream.sample import Sample, Series

MIN_TARGET_POINTS = 2


@njit(nogil=True)
def _lttb_indices_numba(x: np.ndarray, y: np.ndarray, n_out: int) -> np.ndarray:
    """
    Numba-optimized Largest-Triangle-Three-Buckets index selection.

    Parameters
    ----------
    x : np.ndarray
        Input x coordinates (float64), ascending.
    y : np.ndarray
        Input y coordinates (float64).
    n_out : int
        Number of points to keep. Must satisfy 2 <= n_out < len(x).

    Returns
    -------
    np.ndarray
        Indices (int64) of the selected points, ascending, first and last
        included.
    """
    n = len(x)
    indices = np.empty(n_out, dtype=np.int64)
    indices[0] = 0
    indices[n_out - 1] = n - 1

    n_buckets = n_out - 2
    if n_buckets == 0:
        return indices

    # Interior points 1..n-2 split into n_buckets contiguous index ranges
    bucket_size = (n - 2) / n_buckets

    prev = 0
    for i in range(n_buckets):
        start = int(np.floor(i * bucket_size)) + 1
        end = int(np.floor((i + 1) * bucket_size)) + 1
        if i == n_buckets - 1:
            end = n - 1

        # Centroid of the next bucket, or the last point for the final bucket
        if i == n_buckets - 1:
            x_c = x[n - 1]
            y_c = y[n - 1]
        else:
            next_start = end
            next_end = int(np.floor((i + 2) * bucket_size)) + 1
            if i + 1 == n_buckets - 1:
                next_end = n - 1
            x_sum = 0.0
            y_sum = 0.0
            for j in range(next_start, next_end):
                x_sum += x[j]
                y_sum += y[j]
            count = next_end - next_start
            x_c = x_sum / count
            y_c = y_sum / count

        x_p = x[prev]
        y_p = y[prev]

        # Strict '>' keeps the earliest candidate on exact ties
        max_area = -1.0
        selected = start
        for j in range(start, end):
            area = 0.5 * abs((x_p - x_c) * (y[j] - y_p) - (x_p - x[j]) * (y_c - y_p))
            if area > max_area:
                max_area = area
                selected = j

        indices[i + 1] = selected
        prev = selected

    return indices


def lttb_indices(x: np.ndarray, y: np.ndarray, target_points: int) -> np.ndarray:
    """
    Select the indices LTTB keeps when reducing ``(x, y)`` to ``target_points``.

    Parameters
    ----------
    x : np.ndarray
        X coordinates, ascending (non-strict).
    y : np.ndarray
        Y coordinates, same length as ``x``.
    target_points : int
        Maximum number of points to keep. Must be at least 2.

    Returns
    -------
    np.ndarray
        Ascending int64 indices into the input, ``min(len(x), target_points)``
        of them.

    Raises
    ------
    InvalidArgument
        If ``target_points`` is below 2.
    ValueError
        If ``x`` and ``y`` have different lengths.
    """
    if target_points < MIN_TARGET_POINTS:
        raise InvalidArgument(
            f"target_points must be at least {MIN_TARGET_POINTS}, got {target_points}"
        )
    if len(x) != len(y):
        raise ValueError(
            f"x and y must have the same length. Got x={len(x)}, y={len(y)}"
        )

    n = len(x)
    if n <= target_points:
        return np.arange(n, dtype=np.int64)

    x_contiguous = np.ascontiguousarray(x, dtype=np.float64)
    y_contiguous = np.ascontiguousarray(y, dtype=np.float64)
    return _lttb_indices_numba(x_contiguous, y_contiguous, int(target_points))


def series_to_arrays(series: Series) -> Tuple[np.ndarray, np.ndarray]:
    """Convert a series to float64 ``(x, y)`` arrays: epoch seconds and values."""
    n = len(series)
    x = np.empty(n, dtype=np.float64)
    y = np.empty(n, dtype=np.float64)
    for i, sample in enumerate(series):
        x[i] = sample.seconds
        y[i] = sample.value
    return x, y


def downsample(series: Series, target_points: int) -> List[Sample]:
    """
    Reduce a series to at most ``target_points`` samples, preserving its shape.

    Series no longer than ``target_points`` are returned unchanged. Otherwise
    the first and last samples are always kept and one sample is picked from
    each of ``target_points - 2`` index buckets using LTTB. The result contains
    the original ``Sample`` objects, in order.

    Parameters
    ----------
    series : Series
        Time-ordered samples.
    target_points : int
        Maximum number of samples in the result. Must be at least 2.

    Returns
    -------
    List[Sample]
        The downsampled series, ``min(len(series), target_points)`` long.

    Raises
    ------
    InvalidArgument
        If ``target_points`` is below 2.
    """
    if target_points < MIN_TARGET_POINTS:
        raise InvalidArgument(
            f"target_points must be at least {MIN_TARGET_POINTS}, got {target_points}"
        )
    if len(series) <= target_points:
        return list(series)

    x, y = series_to_arrays(series)
    start = time.perf_counter()
    indices = lttb_indices(x, y, target_points)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.debug(
        f"LTTB reduced {len(series)} samples to {len(indices)} in {elapsed_ms:.1f} ms"
    )
    return [series[i] for i in indices]
