"""Sliding-window covariance-ratio artifact test for a single channel.

The channel is cut into consecutive windows of ``win_length`` seconds; a tail
shorter than one window is merged into the window before it. The standard
deviation of each window is compared with the median window standard
deviation of the channel; a window whose ratio (in either direction) exceeds
``threshold`` is an artifact. Window decisions are then aggregated to
one-second resolution.
"""

from typing import Optional

import numpy as np

from sigscreen.functions.segments import count_seconds, second_bounds


def _window_samples(win_length: float, fs: float) -> int:
    return max(1, int(round(win_length * fs)))


def window_edges(n_samples: int, fs: float, win_length: float = 0.25) -> np.ndarray:
    """Sample edges of the analysis windows, ``n_windows + 1`` values.

    Windows are ``round(win_length * fs)`` samples long except the last one,
    which absorbs any remainder shorter than a full window.
    """
    step = _window_samples(win_length, fs)
    starts = np.arange(0, n_samples, step)
    if starts.size > 1 and n_samples - starts[-1] < step:
        starts = starts[:-1]
    return np.append(starts, n_samples)


def window_artifacts(
    x: np.ndarray,
    fs: float,
    threshold: float = 1.2,
    win_length: float = 0.25,
) -> np.ndarray:
    """Flag every window of ``x`` whose variability departs from the channel.

    Parameters
    ----------
    x : ndarray, shape (n_samples,)
        One channel of the recording.
    fs : float
        Sampling frequency in Hz.
    threshold : float, default 1.2
        Maximum allowed ratio between a window's standard deviation and the
        median window standard deviation (or its inverse).
    win_length : float, default 0.25
        Window length in seconds.

    Returns
    -------
    flags : ndarray of bool, shape (n_windows,)
        One entry per window of :func:`window_edges`.
    """
    x = np.asarray(x, dtype=float).ravel()
    edges = window_edges(x.size, fs, win_length)
    sd = np.array([x[a:b].std() for a, b in zip(edges[:-1], edges[1:])])

    reference = np.median(sd)
    if reference == 0:
        return sd > 0

    with np.errstate(divide="ignore"):
        ratio = np.maximum(sd / reference, np.where(sd > 0, reference / sd, np.inf))
    return ratio > threshold


def classify_cov(
    x: np.ndarray,
    fs: float,
    threshold: float = 1.2,
    win_length: float = 0.25,
    aggreg_fraction: Optional[float] = None,
) -> np.ndarray:
    """Per-second artifact labels of one channel from the covariance-ratio test.

    Parameters
    ----------
    x : ndarray, shape (n_samples,)
        One channel of the recording.
    fs : float
        Sampling frequency in Hz.
    threshold : float, default 1.2
        Ratio threshold of the window test, see :func:`window_artifacts`.
    win_length : float, default 0.25
        Window length in seconds.
    aggreg_fraction : float or None, default None
        Minimum fraction of a second covered by artifact windows for the
        second to be labelled an artifact. Defaults to ``win_length``, i.e. a
        single full artifact window marks its second.

    Returns
    -------
    annot : ndarray of bool, shape (ceil(n_samples / fs),)
        True for artifact seconds.
    """
    x = np.asarray(x, dtype=float).ravel()
    if aggreg_fraction is None:
        aggreg_fraction = win_length
    if x.size == 0:
        return np.zeros(0, dtype=bool)

    edges = window_edges(x.size, fs, win_length)
    flags = window_artifacts(x, fs, threshold, win_length)
    per_sample = np.repeat(flags, np.diff(edges))

    n_seconds = count_seconds(x.size, fs)
    annot = np.zeros(n_seconds, dtype=bool)
    for s in range(n_seconds):
        start, stop = second_bounds(s, fs, x.size)
        fraction = per_sample[start:stop].mean()
        # float tolerance so that e.g. 250/1000 meets a 0.25 fraction
        annot[s] = fraction >= aggreg_fraction - 1e-12
    return annot
