"""Split a recording into one-second segments."""

import math
from typing import Tuple


def count_seconds(n_samples: int, fs: float) -> int:
    """Number of (possibly partial) seconds covering ``n_samples`` samples."""
    return math.ceil(n_samples / fs)


def second_bounds(second: int, fs: float, n_samples: int) -> Tuple[int, int]:
    """Return the ``[start, stop)`` sample range of a 0-based second.

    Edges are ``floor(s * fs)``, so for any fractional ``fs`` each of the
    ``count_seconds(n_samples, fs)`` segments holds at least one sample.
    """
    start = math.floor(second * fs)
    stop = min(math.floor((second + 1) * fs), n_samples)
    return start, max(stop, start + 1)
