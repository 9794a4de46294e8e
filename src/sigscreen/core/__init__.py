"""Method configuration and the artifact classification dispatcher."""

from .classify import build_feature_table, classify, reshape_to_grid
from .exceptions import (
    InsufficientLengthError,
    InvalidParameterError,
    MissingParameterError,
    ModelLoadError,
    SigScreenError,
    ThresholdRangeWarning,
    UnknownMethodError,
)
from .methods import CovConfig, Method, PsdConfig, TreeConfig, resolve_method_config

__all__ = [
    "build_feature_table",
    "classify",
    "reshape_to_grid",
    "resolve_method_config",
    "Method",
    "PsdConfig",
    "TreeConfig",
    "CovConfig",
    "SigScreenError",
    "MissingParameterError",
    "InsufficientLengthError",
    "UnknownMethodError",
    "ModelLoadError",
    "InvalidParameterError",
    "ThresholdRangeWarning",
]
