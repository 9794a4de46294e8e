"""Per-window signal features for micro-electrode recordings.

This module provides the feature extractor used by the PSD and decision tree
classifiers. Every feature is computed per channel over one window of the
signal (normally one second), so a call returns one row per channel.

Features
--------
pow, powDiff : power of the centered signal and of its first difference
sigP90, sigP95, sigP99 : percentiles of the absolute centered signal, in
    units of its standard deviation
ksnorm : Kolmogorov-Smirnov distance of the standardized signal from N(0, 1)
kurtosis, skewness : excess kurtosis and skewness of the amplitude distribution
zeroCross : zero-crossing rate of the centered signal (crossings per sample)
maxCorr : maximum absolute correlation with any other channel of the window
maxNormPSD, stdNormPSD, psdP75, psdMaxStep : statistics of the normalized PSD
psdF100 : share of the normalized PSD below 100 Hz
psdBase : share of the normalized PSD in the 300-3000 Hz spike band
psdPow : total (un-normalized) PSD power in band
psdFreq : frequency of the PSD maximum in Hz
psdEntropy : spectral entropy of the normalized PSD, scaled to [0, 1]
"""

from typing import Dict, Sequence, Tuple

import numpy as np
from scipy import signal as sps
from scipy import stats

FEATURE_NAMES: Tuple[str, ...] = (
    "pow",
    "powDiff",
    "sigP90",
    "sigP95",
    "sigP99",
    "ksnorm",
    "kurtosis",
    "skewness",
    "zeroCross",
    "maxCorr",
    "maxNormPSD",
    "stdNormPSD",
    "psdP75",
    "psdMaxStep",
    "psdF100",
    "psdBase",
    "psdPow",
    "psdFreq",
    "psdEntropy",
)

PSD_BAND = (1.0, 5000.0)
SPIKE_BAND = (300.0, 3000.0)
LOW_FREQ_LIMIT = 100.0

_PSD_FEATURES = {
    "maxNormPSD",
    "stdNormPSD",
    "psdP75",
    "psdMaxStep",
    "psdF100",
    "psdBase",
    "psdPow",
    "psdFreq",
    "psdEntropy",
}


def band_psd(segment: np.ndarray, fs: float) -> Tuple[np.ndarray, np.ndarray]:
    """Welch PSD of every channel restricted to the analysis band.

    The band is ``PSD_BAND`` clipped to the Nyquist frequency. Segments are a
    quarter of a second long (Hann window), or the whole window if shorter.

    Returns
    -------
    freqs : ndarray, shape (n_freqs,)
    psd : ndarray, shape (n_channels, n_freqs)
    """
    n_samples = segment.shape[-1]
    nperseg = max(1, min(n_samples, int(round(fs / 4))))
    freqs, psd = sps.welch(
        segment,
        fs=fs,
        window="hann",
        nperseg=nperseg,
        detrend="constant",
        scaling="density",
        axis=-1,
    )
    high = min(PSD_BAND[1], fs / 2)
    mask = (freqs >= PSD_BAND[0]) & (freqs <= high)
    return freqs[mask], np.atleast_2d(psd)[:, mask]


def _normalize_psd(psd: np.ndarray) -> np.ndarray:
    total = psd.sum(axis=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.where(total > 0, psd / total, np.nan)


def _psd_features(segment: np.ndarray, fs: float, wanted: set) -> Dict[str, np.ndarray]:
    n_channels = segment.shape[0]
    freqs, psd = band_psd(segment, fs)
    if freqs.size == 0:
        return {name: np.full(n_channels, np.nan) for name in wanted}

    norm = _normalize_psd(psd)
    out: Dict[str, np.ndarray] = {}
    if "maxNormPSD" in wanted:
        out["maxNormPSD"] = norm.max(axis=1)
    if "stdNormPSD" in wanted:
        out["stdNormPSD"] = norm.std(axis=1)
    if "psdP75" in wanted:
        out["psdP75"] = np.percentile(norm, 75, axis=1)
    if "psdMaxStep" in wanted:
        if freqs.size > 1:
            out["psdMaxStep"] = np.abs(np.diff(norm, axis=1)).max(axis=1)
        else:
            out["psdMaxStep"] = np.zeros(n_channels)
    if "psdF100" in wanted:
        out["psdF100"] = norm[:, freqs < LOW_FREQ_LIMIT].sum(axis=1)
    if "psdBase" in wanted:
        spike = (freqs >= SPIKE_BAND[0]) & (freqs <= SPIKE_BAND[1])
        out["psdBase"] = norm[:, spike].sum(axis=1)
    if "psdPow" in wanted:
        out["psdPow"] = psd.sum(axis=1)
    if "psdFreq" in wanted:
        out["psdFreq"] = freqs[psd.argmax(axis=1)].astype(float)
    if "psdEntropy" in wanted:
        if freqs.size > 1:
            with np.errstate(invalid="ignore", divide="ignore"):
                plogp = np.where(norm > 0, norm * np.log(norm), 0.0)
            out["psdEntropy"] = -plogp.sum(axis=1) / np.log(freqs.size)
            out["psdEntropy"][np.isnan(norm).any(axis=1)] = np.nan
        else:
            out["psdEntropy"] = np.zeros(n_channels)
    return out


def _max_corr(centered: np.ndarray) -> np.ndarray:
    n_channels = centered.shape[0]
    if n_channels < 2:
        return np.zeros(n_channels)
    with np.errstate(invalid="ignore", divide="ignore"):
        corr = np.corrcoef(centered)
    corr = np.abs(np.nan_to_num(corr, nan=0.0))
    np.fill_diagonal(corr, 0.0)
    return corr.max(axis=1)


def _amplitude_features(segment: np.ndarray, wanted: set) -> Dict[str, np.ndarray]:
    centered = segment - segment.mean(axis=1, keepdims=True)
    sd = centered.std(axis=1)
    flat = sd == 0
    with np.errstate(invalid="ignore", divide="ignore"):
        standardized = np.where(flat[:, None], np.nan, centered / sd[:, None])

    out: Dict[str, np.ndarray] = {}
    if "pow" in wanted:
        out["pow"] = np.mean(centered ** 2, axis=1)
    if "powDiff" in wanted:
        if segment.shape[1] > 1:
            out["powDiff"] = np.mean(np.diff(segment, axis=1) ** 2, axis=1)
        else:
            out["powDiff"] = np.zeros(segment.shape[0])
    for name, q in (("sigP90", 90), ("sigP95", 95), ("sigP99", 99)):
        if name in wanted:
            out[name] = np.percentile(np.abs(standardized), q, axis=1)
    if "ksnorm" in wanted:
        ks = np.full(segment.shape[0], np.nan)
        for ch in np.flatnonzero(~flat):
            ks[ch] = stats.kstest(standardized[ch], "norm").statistic
        out["ksnorm"] = ks
    if "kurtosis" in wanted:
        out["kurtosis"] = np.where(flat, np.nan, stats.kurtosis(segment, axis=1))
    if "skewness" in wanted:
        out["skewness"] = np.where(flat, np.nan, stats.skew(segment, axis=1))
    if "zeroCross" in wanted:
        signs = np.signbit(centered)
        if segment.shape[1] > 1:
            out["zeroCross"] = np.mean(signs[:, 1:] != signs[:, :-1], axis=1)
        else:
            out["zeroCross"] = np.zeros(segment.shape[0])
    if "maxCorr" in wanted:
        out["maxCorr"] = _max_corr(centered)
    return out


def compute_features(
    segment: np.ndarray,
    feature_names: Sequence[str],
    fs: float,
) -> np.ndarray:
    """Compute the requested features for every channel of a signal window.

    Parameters
    ----------
    segment : ndarray, shape (n_channels, n_samples)
        Window of the recording. A 1-D array is treated as one channel.
    feature_names : sequence of str
        Names from :data:`FEATURE_NAMES`, in the order of the output columns.
    fs : float
        Sampling frequency in Hz.

    Returns
    -------
    features : ndarray, shape (n_channels, len(feature_names))
        Feature values. Features that are undefined for a channel (for
        example the shape statistics of a flat channel) are NaN.

    Raises
    ------
    TypeError
        If ``segment`` is not array-like numeric data.
    ValueError
        If a feature name is unknown, ``fs`` is not positive or the window is empty.

    Examples
    --------
    >>> compute_features(window, ["maxNormPSD"], fs=24000).shape
    (n_channels, 1)
    """
    try:
        segment = np.atleast_2d(np.asarray(segment, dtype=float))
    except (TypeError, ValueError) as e:
        raise TypeError(f"Segment must be numeric array data: {e}") from e

    names = list(feature_names)
    unknown = [name for name in names if name not in FEATURE_NAMES]
    if unknown:
        raise ValueError(f"Unknown feature(s): {', '.join(unknown)}")
    if fs <= 0:
        raise ValueError(f"Sampling frequency must be positive, got {fs}")
    if segment.ndim != 2 or segment.shape[1] == 0:
        raise ValueError("Segment must be a non-empty (n_channels, n_samples) array")

    wanted = set(names)
    values: Dict[str, np.ndarray] = {}
    if wanted & _PSD_FEATURES:
        values.update(_psd_features(segment, fs, wanted & _PSD_FEATURES))
    if wanted - _PSD_FEATURES:
        values.update(_amplitude_features(segment, wanted - _PSD_FEATURES))

    result = np.empty((segment.shape[0], len(names)))
    for col, name in enumerate(names):
        result[:, col] = values[name]
    return result
