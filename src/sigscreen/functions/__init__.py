"""Standalone signal functions used by the classifiers.

- features: per-window feature extraction (PSD and amplitude statistics)
- covariance: sliding-window covariance-ratio artifact test
- segments: one-second segment boundaries

>>> from sigscreen.functions import compute_features, classify_cov
"""

from .covariance import classify_cov, window_artifacts, window_edges
from .features import FEATURE_NAMES, compute_features
from .segments import count_seconds, second_bounds

__all__ = [
    "FEATURE_NAMES",
    "compute_features",
    "classify_cov",
    "window_artifacts",
    "window_edges",
    "count_seconds",
    "second_bounds",
]
