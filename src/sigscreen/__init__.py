"""Per-second artifact screening of micro-electrode recordings.

This package labels every second of every channel of a micro-electrode
recording as artifact or clean, using normalized PSD thresholding, a
pre-trained decision tree or a sliding-window covariance-ratio test.
"""

from .core.classify import classify
from .core.methods import Method

__version__ = "1.0.0"

__all__ = [
    "classify",
    "Method",
]
