"""Per-second artifact classification of micro-electrode recordings.

The entry point :func:`classify` validates the input, resolves the requested
method to its configuration, builds the per-second feature table when the
method needs one and applies the method's decision rule. The result is a
boolean grid with one row per channel and one column per second of signal.
"""

import math
import numbers
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import mne
import numpy as np
from joblib import Parallel, delayed

from sigscreen.core.exceptions import (
    InsufficientLengthError,
    InvalidParameterError,
    MissingParameterError,
    SigScreenError,
)
from sigscreen.core.methods import (
    CovConfig,
    Method,
    MethodConfig,
    PsdConfig,
    TreeConfig,
    resolve_method_config,
)
from sigscreen.functions.covariance import classify_cov
from sigscreen.functions.features import compute_features
from sigscreen.functions.segments import count_seconds, second_bounds
from sigscreen.utils.logging import message


def reshape_to_grid(values: np.ndarray, n_channels: int, n_seconds: int) -> np.ndarray:
    """Map a second-major, channel-minor vector onto a (channels, seconds) grid.

    Row ``s * n_channels + ch`` of the feature table becomes ``grid[ch, s]``.
    """
    return np.asarray(values).reshape(n_seconds, n_channels).T


def _unpack_signal(
    signal: Union[np.ndarray, mne.io.BaseRaw], fs: Optional[float]
) -> Tuple[np.ndarray, Optional[float]]:
    if isinstance(signal, mne.io.BaseRaw):
        sfreq = signal.info["sfreq"]
        if fs is not None and not math.isclose(float(fs), sfreq):
            raise InvalidParameterError(
                "fs", f"fs ({fs}) does not match the recording's sampling rate ({sfreq})"
            )
        return signal.get_data(), sfreq
    return np.asarray(signal, dtype=float), fs


def _validate_input(
    signal: Union[np.ndarray, mne.io.BaseRaw],
    fs: Optional[float],
    method: Union[str, Method, None],
) -> Tuple[np.ndarray, Optional[float], Method]:
    """Check the call arguments before any method configuration happens.

    Returns the signal as a 2-D array (unchanged when empty), the sampling
    rate and the parsed method.
    """
    if fs is None and not isinstance(signal, mne.io.BaseRaw):
        raise MissingParameterError("sampling frequency must be specified")

    data, fs = _unpack_signal(signal, fs)
    if not isinstance(fs, numbers.Real) or isinstance(fs, bool) or not fs > 0:
        raise InvalidParameterError("fs", f"sampling frequency must be positive, got {fs}")

    method = Method.parse(method)

    if data.size == 0:
        return data, fs, method

    if data.ndim == 1:
        data = data[np.newaxis, :]
    elif data.ndim != 2:
        raise ValueError(f"signal must be a vector or a 2-D array, got {data.ndim} dimensions")

    if data.shape[1] < fs:
        raise InsufficientLengthError("signal must be at least 1s long")

    return data, fs, method


def build_feature_table(
    data: np.ndarray,
    fs: float,
    config: MethodConfig,
    n_jobs: Optional[int] = 1,
) -> np.ndarray:
    """Compute the per-second, per-channel feature table for a configuration.

    Parameters
    ----------
    data : ndarray, shape (n_channels, n_samples)
        The recording.
    fs : float
        Sampling frequency in Hz.
    config : PsdConfig or TreeConfig
        Resolved configuration; only ``config.feature_indices`` columns are computed.
    n_jobs : int or None, default 1
        Number of joblib workers used over the seconds.

    Returns
    -------
    table : ndarray, shape (n_channels * n_seconds, len(config.feature_names))
        Row ``s * n_channels + ch`` holds second ``s`` of channel ``ch``.
        Columns that are not computed are NaN.
    """
    n_channels, n_samples = data.shape
    n_seconds = count_seconds(n_samples, fs)
    indices = list(config.feature_indices)
    names = [config.feature_names[i] for i in indices]

    table = np.full((n_channels * n_seconds, len(config.feature_names)), np.nan)
    if not indices:
        return table

    def window(s: int) -> np.ndarray:
        start, stop = second_bounds(s, fs, n_samples)
        return data[:, start:stop]

    rows = Parallel(n_jobs=n_jobs)(
        delayed(compute_features)(window(s), names, fs) for s in range(n_seconds)
    )
    for s, values in enumerate(rows):
        table[s * n_channels:(s + 1) * n_channels, indices] = values
    return table


def _classify_psd(table: np.ndarray, config: PsdConfig, n_channels: int, n_seconds: int):
    column = config.feature_indices[0]
    return reshape_to_grid(table[:, column] > config.threshold, n_channels, n_seconds)


def _classify_tree(table: np.ndarray, config: TreeConfig, n_channels: int, n_seconds: int):
    labels = config.tree.predict(table)
    return reshape_to_grid(labels == "1", n_channels, n_seconds)


def _classify_cov(data: np.ndarray, fs: float, config: CovConfig, n_jobs: Optional[int]):
    rows = Parallel(n_jobs=n_jobs)(
        delayed(classify_cov)(
            data[ch], fs, config.threshold, config.win_length, config.aggreg_fraction
        )
        for ch in range(data.shape[0])
    )
    annot = np.zeros((data.shape[0], count_seconds(data.shape[1], fs)), dtype=bool)
    for ch, row in enumerate(rows):
        annot[ch, :] = row
    return annot


def classify(
    signal: Union[np.ndarray, mne.io.BaseRaw],
    fs: Optional[float] = None,
    method: Union[str, Method, None] = None,
    *method_params: Any,
    model_path: Optional[Union[str, Path]] = None,
    n_jobs: Optional[int] = 1,
) -> np.ndarray:
    """Classify artifacts in each second of a micro-electrode recording.

    Parameters
    ----------
    signal : ndarray or mne.io.BaseRaw
        Recording with channels in rows (a vector is a single channel), or an
        MNE Raw object. The signal is not modified.
    fs : float, optional
        Sampling frequency in Hz. Required for arrays; taken from
        ``raw.info["sfreq"]`` for Raw objects.
    method : str or Method, default 'psd'
        - 'psd': normalized PSD thresholding (threshold trained on multi-center data)
        - 'psdPrg': as 'psd' with the threshold trained on single-center data
        - 'tree': pre-trained decision tree on 19 features (multi-center)
        - 'treePrg': pre-trained decision tree (single-center)
        - 'cov': sliding-window covariance-ratio test
    *method_params
        Optional method parameters:
        - psd: detection threshold (default 0.01, 0.0085 for psdPrg)
        - cov: threshold (default 1.2), window length in seconds (default
          0.25), aggregation fraction (default: window length)
    model_path : str or Path, optional
        Decision tree store used by the tree methods.
    n_jobs : int or None, default 1
        Number of joblib workers for the per-second feature computation and
        the per-channel covariance test.

    Returns
    -------
    annot : ndarray of bool, shape (n_channels, ceil(n_samples / fs))
        True marks an artifact second of a channel. An empty array is
        returned for an empty signal.

    Raises
    ------
    MissingParameterError
        If no sampling frequency is given.
    InsufficientLengthError
        If the signal is shorter than one second.
    UnknownMethodError
        If the method name is not supported.
    ModelLoadError
        If the decision tree store cannot be loaded.
    InvalidParameterError
        If a cov parameter (or fs) is outside its valid range.

    Examples
    --------
    >>> annot = classify(signal, 24000)
    >>> annot = classify(signal, 24000, "cov", 1.3, 0.2)
    >>> annot = classify(raw, method="tree")
    """
    try:
        data, fs, method = _validate_input(signal, fs, method)
        if data.size == 0:
            message("debug", "Empty signal, nothing to classify")
            return np.zeros((0, 0), dtype=bool)

        config = resolve_method_config(method, *method_params, model_path=model_path)
    except SigScreenError as e:
        message("error", f"Artifact classification failed: {e.message}")
        raise

    n_channels, n_samples = data.shape
    n_seconds = count_seconds(n_samples, fs)
    message(
        "info",
        f"Classifying {n_channels} channel(s) x {n_seconds} s with method '{method.value}'",
    )

    if isinstance(config, CovConfig):
        annot = _classify_cov(data, fs, config, n_jobs)
    else:
        table = build_feature_table(data, fs, config, n_jobs=n_jobs)
        if isinstance(config, PsdConfig):
            annot = _classify_psd(table, config, n_channels, n_seconds)
        else:
            annot = _classify_tree(table, config, n_channels, n_seconds)

    message("info", f"Marked {int(annot.sum())} of {annot.size} channel-seconds as artifact")
    return annot
