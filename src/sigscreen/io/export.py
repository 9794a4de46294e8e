"""Export of artifact annotation grids.

Functions
---------
grid_to_annotations : Convert an annotation grid to channel-specific MNE annotations
grid_to_dataframe : Long-format table of an annotation grid
save_annotation_table : Write the long-format table to CSV or TSV
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import mne
import numpy as np
import pandas as pd

from sigscreen.utils.logging import message


def _channel_names(grid: np.ndarray, ch_names: Optional[Sequence[str]]) -> List[str]:
    if ch_names is None:
        return [f"ch{i + 1}" for i in range(grid.shape[0])]
    if len(ch_names) != grid.shape[0]:
        raise ValueError(
            f"Got {len(ch_names)} channel names for {grid.shape[0]} annotated channels"
        )
    return list(ch_names)


def _as_grid(grid: np.ndarray) -> np.ndarray:
    grid = np.asarray(grid, dtype=bool)
    if grid.size == 0:
        return grid.reshape(0, 0)
    if grid.ndim == 1:
        grid = grid[np.newaxis, :]
    if grid.ndim != 2:
        raise ValueError("Annotation grid must be a (n_channels, n_seconds) array")
    return grid


def grid_to_annotations(
    grid: np.ndarray,
    ch_names: Optional[Sequence[str]] = None,
    n_samples: Optional[int] = None,
    fs: Optional[float] = None,
    description: str = "BAD_artifact",
) -> mne.Annotations:
    """Convert an artifact grid into channel-specific MNE annotations.

    Consecutive artifact seconds of a channel are merged into one annotation.
    Annotations carry the channel name, so they can be attached to a Raw
    object with ``raw.set_annotations`` and only affect that channel.

    Parameters
    ----------
    grid : ndarray of bool, shape (n_channels, n_seconds)
        Output of :func:`sigscreen.classify`.
    ch_names : sequence of str, optional
        Channel names; defaults to ``ch1``, ``ch2``, ...
    n_samples, fs : int and float, optional
        Recording length and sampling frequency. When both are given the last
        annotation is clipped to the end of the recording.
    description : str, default 'BAD_artifact'
        Annotation description. MNE treats descriptions starting with
        ``BAD`` as segments to reject.

    Returns
    -------
    annotations : mne.Annotations
    """
    grid = _as_grid(grid)
    names = _channel_names(grid, ch_names)
    end_time = n_samples / fs if n_samples is not None and fs else None

    onsets, durations, channels = [], [], []
    for ch, row in enumerate(grid):
        padded = np.concatenate(([False], row, [False])).astype(int)
        edges = np.diff(padded)
        starts = np.flatnonzero(edges == 1)
        stops = np.flatnonzero(edges == -1)
        for start, stop in zip(starts, stops):
            onset = float(start)
            offset = float(stop) if end_time is None else min(float(stop), end_time)
            onsets.append(onset)
            durations.append(offset - onset)
            channels.append((names[ch],))

    message("debug", f"Created {len(onsets)} artifact annotation(s)")
    return mne.Annotations(
        onset=onsets,
        duration=durations,
        description=[description] * len(onsets),
        ch_names=channels,
    )


def grid_to_dataframe(
    grid: np.ndarray, ch_names: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """Return the grid as a long table with columns channel, second, artifact.

    Seconds are 0-based and the table is ordered by channel, then second.
    """
    grid = _as_grid(grid)
    names = _channel_names(grid, ch_names)
    n_channels, n_seconds = grid.shape
    return pd.DataFrame(
        {
            "channel": np.repeat(names, n_seconds) if n_channels else [],
            "second": np.tile(np.arange(n_seconds), n_channels),
            "artifact": grid.ravel(),
        }
    )


def save_annotation_table(
    grid: np.ndarray,
    path: Union[str, Path],
    ch_names: Optional[Sequence[str]] = None,
) -> Path:
    """Write the annotation table to ``path`` (TSV for ``.tsv``, CSV otherwise).

    Returns
    -------
    path : Path
        The written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sep = "\t" if path.suffix.lower() == ".tsv" else ","
    grid_to_dataframe(grid, ch_names).to_csv(path, sep=sep, index=False)
    message("info", f"Annotation table saved to {path}")
    return path
