"""Classification methods and their resolved parameters.

Each method family has its own frozen configuration class. All of them expose
``feature_names`` (the columns of the feature table) and ``feature_indices``
(the columns that actually have to be computed), so the feature table can be
built the same way for every method.
"""

import numbers
import warnings
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from sigscreen.core.exceptions import (
    InvalidParameterError,
    ThresholdRangeWarning,
    UnknownMethodError,
)
from sigscreen.core.tree import DecisionTree, load_classifiers
from sigscreen.utils.logging import message

PSD_FEATURE = "maxNormPSD"
PSD_RECOMMENDED_RANGE = (0.0, 0.03)
# threshold trained on the multi-center data / on the Prague data only
PSD_DEFAULT_THRESHOLD = 0.01
PSD_PRG_DEFAULT_THRESHOLD = 0.0085

COV_DEFAULT_THRESHOLD = 1.2
COV_DEFAULT_WIN_LENGTH = 0.25


class Method(str, Enum):
    """Supported classification methods."""

    PSD = "psd"
    PSD_PRG = "psdPrg"
    TREE = "tree"
    TREE_PRG = "treePrg"
    COV = "cov"

    @classmethod
    def parse(cls, value: Union[str, "Method", None]) -> "Method":
        """Return the method for ``value``; None or "" selects PSD."""
        if value is None or value == "":
            return cls.PSD
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownMethodError(str(value)) from None

    @property
    def family(self) -> str:
        return {
            Method.PSD: "psd",
            Method.PSD_PRG: "psd",
            Method.TREE: "tree",
            Method.TREE_PRG: "tree",
            Method.COV: "cov",
        }[self]


@dataclass(frozen=True)
class PsdConfig:
    method: Method
    threshold: float
    feature_names: Tuple[str, ...] = (PSD_FEATURE,)
    feature_indices: Tuple[int, ...] = (0,)


@dataclass(frozen=True)
class TreeConfig:
    method: Method
    tree: DecisionTree
    feature_names: Tuple[str, ...]
    feature_indices: Tuple[int, ...]


@dataclass(frozen=True)
class CovConfig:
    threshold: float = COV_DEFAULT_THRESHOLD
    win_length: float = COV_DEFAULT_WIN_LENGTH
    aggreg_fraction: float = COV_DEFAULT_WIN_LENGTH
    method: Method = Method.COV
    feature_names: Tuple[str, ...] = ()
    feature_indices: Tuple[int, ...] = ()


MethodConfig = Union[PsdConfig, TreeConfig, CovConfig]


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _warn_extra_params(method: Method, params: tuple, accepted: int) -> None:
    if len(params) > accepted:
        message(
            "warning",
            f"Method '{method.value}' accepts {accepted} parameter(s); "
            f"ignoring {len(params) - accepted} extra value(s)",
        )


def _configure_psd(method: Method, params: tuple) -> PsdConfig:
    _warn_extra_params(method, params, 1)
    if params and _is_number(params[0]):
        threshold = float(params[0])
        low, high = PSD_RECOMMENDED_RANGE
        if threshold < low or threshold > high:
            warnings.warn(
                "recommended threshold range for psd method is between 0.005 and 0.02. "
                f"The value provided ({threshold:.3f}) may lead to unexpected results.",
                ThresholdRangeWarning,
                stacklevel=3,
            )
    elif method is Method.PSD:
        threshold = PSD_DEFAULT_THRESHOLD
    else:
        threshold = PSD_PRG_DEFAULT_THRESHOLD
    return PsdConfig(method=method, threshold=threshold)


def _configure_tree(method: Method, params: tuple, model_path) -> TreeConfig:
    _warn_extra_params(method, params, 0)
    classifiers = load_classifiers(model_path)
    tree = classifiers.trees["treeAll" if method is Method.TREE else "treePrg"]
    return TreeConfig(
        method=method,
        tree=tree,
        feature_names=classifiers.feature_names,
        feature_indices=tree.variables_used,
    )


def _configure_cov(params: tuple) -> CovConfig:
    _warn_extra_params(Method.COV, params, 3)
    threshold = COV_DEFAULT_THRESHOLD
    win_length = COV_DEFAULT_WIN_LENGTH
    aggreg_fraction = None

    if len(params) > 0 and params[0] is not None:
        if not (_is_number(params[0]) and params[0] >= 1):
            raise InvalidParameterError(
                "threshold",
                "First parameter for COV method is threshold (numeric, greater or equal to 1)",
            )
        threshold = float(params[0])
    if len(params) > 1 and params[1] is not None:
        if not (_is_number(params[1]) and 0 < params[1] < 1):
            raise InvalidParameterError(
                "win_length",
                "Second parameter for COV method is window length (between 0 and 1 s)",
            )
        win_length = float(params[1])
    if len(params) > 2 and params[2] is not None:
        if not (_is_number(params[2]) and 0 < params[2] <= 1):
            raise InvalidParameterError(
                "aggreg_fraction",
                "Third parameter for COV method is aggregation fraction "
                "(numeric, greater than 0, lower or equal to 1)",
            )
        aggreg_fraction = float(params[2])

    return CovConfig(
        threshold=threshold,
        win_length=win_length,
        aggreg_fraction=win_length if aggreg_fraction is None else aggreg_fraction,
    )


def resolve_method_config(
    method: Union[str, Method, None],
    *params: Any,
    model_path: Optional[Union[str, Path]] = None,
) -> MethodConfig:
    """Resolve a method name and its positional overrides to a configuration.

    Parameters
    ----------
    method : str, Method or None
        One of ``psd``, ``psdPrg``, ``tree``, ``treePrg`` or ``cov``. None
        selects ``psd``.
    *params
        Method overrides:
        - psd/psdPrg: detection threshold (default 0.01 / 0.0085). Values
          outside [0, 0.03] are used but trigger a ThresholdRangeWarning.
        - tree/treePrg: none.
        - cov: threshold (>= 1, default 1.2), window length in seconds
          (in (0, 1), default 0.25), aggregation fraction (in (0, 1],
          default the window length).
    model_path : str or Path, optional
        Decision tree store for the tree methods; defaults to the packaged one.

    Returns
    -------
    config : PsdConfig, TreeConfig or CovConfig

    Raises
    ------
    UnknownMethodError
        If the method name is not supported.
    ModelLoadError
        If the tree store cannot be loaded (tree methods only).
    InvalidParameterError
        If a cov parameter is outside its valid range.
    """
    method = Method.parse(method)

    if method.family == "psd":
        config = _configure_psd(method, params)
        message("debug", f"PSD threshold: {config.threshold}")
    elif method.family == "tree":
        config = _configure_tree(method, params, model_path)
        message(
            "debug",
            f"Decision tree uses {len(config.feature_indices)} of "
            f"{len(config.feature_names)} features",
        )
    else:
        config = _configure_cov(params)
        message(
            "debug",
            f"COV threshold={config.threshold}, win_length={config.win_length}, "
            f"aggreg_fraction={config.aggreg_fraction}",
        )
    return config
