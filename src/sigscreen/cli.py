"""Command line interface for screening recordings for artifacts."""

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

import mne
import numpy as np
from rich.console import Console
from rich.table import Table
from schema import SchemaError

from sigscreen.core.classify import classify
from sigscreen.core.exceptions import SigScreenError
from sigscreen.core.methods import Method
from sigscreen.io.export import grid_to_annotations, save_annotation_table
from sigscreen.utils.config import DEFAULT_CONFIG, load_config
from sigscreen.utils.logging import configure_logger, message


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``sigscreen`` command."""
    parser = argparse.ArgumentParser(
        prog="sigscreen",
        description="Label each second of a micro-electrode recording as artifact or clean.",
        epilog="""
Examples:
  sigscreen recording.npy --fs 24000                  # PSD thresholding
  sigscreen recording.edf --method tree               # pre-trained decision tree
  sigscreen recording.npy --fs 24000 --method cov --params 1.3 0.2
  sigscreen recording.fif --config sigscreen.yaml --output annot.csv
  sigscreen recording.fif --annotations recording-annot.fif
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "input_path", type=Path, help="Recording (.npy array or any file MNE can read)"
    )
    parser.add_argument(
        "--fs", type=float, default=None, help="Sampling frequency in Hz (required for .npy)"
    )
    parser.add_argument(
        "--method",
        choices=[m.value for m in Method],
        default=None,
        help="Classification method (default: psd, or the config file's method)",
    )
    parser.add_argument(
        "--params",
        type=float,
        nargs="+",
        default=None,
        metavar="P",
        help="Method parameters (psd: threshold; cov: threshold win_length aggreg_fraction)",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument(
        "--model", type=Path, default=None, help="Decision tree store for tree methods"
    )
    parser.add_argument(
        "--output", type=Path, default=None, help="Write the annotation table (.csv or .tsv)"
    )
    parser.add_argument(
        "--annotations",
        type=Path,
        default=None,
        help="Write channel-specific MNE annotations (.fif, .csv or .txt)",
    )
    parser.add_argument(
        "--n-jobs", type=int, default=None, dest="n_jobs", help="Number of parallel workers"
    )
    parser.add_argument(
        "--verbose", "-v", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ...)"
    )
    parser.add_argument(
        "--log-dir", type=Path, default=None, dest="log_dir", help="Also write log files here"
    )
    return parser


def load_signal(path: Path, fs: Optional[float]) -> Tuple[np.ndarray, float, List[str]]:
    """Read a recording and return its data, sampling rate and channel names."""
    if path.suffix.lower() == ".npy":
        data = np.atleast_2d(np.load(path))
        return data, fs, [f"ch{i + 1}" for i in range(data.shape[0])]

    raw = mne.io.read_raw(path, preload=True, verbose="ERROR")
    return raw.get_data(), raw.info["sfreq"], list(raw.ch_names)


def print_summary(console: Console, annot: np.ndarray, ch_names: List[str]) -> None:
    table = Table(title="Artifact seconds per channel")
    table.add_column("Channel")
    table.add_column("Artifact s", justify="right")
    table.add_column("Total s", justify="right")
    table.add_column("%", justify="right")
    for name, row in zip(ch_names, annot):
        pct = 100.0 * row.mean() if row.size else 0.0
        table.add_row(name, str(int(row.sum())), str(row.size), f"{pct:.1f}")
    console.print(table)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the sigscreen CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    config = dict(DEFAULT_CONFIG)
    if args.config is not None:
        try:
            config = load_config(args.config)
        except (OSError, SchemaError) as e:
            message("error", f"Invalid configuration {args.config}: {e}")
            return 1

    verbose = args.verbose if args.verbose is not None else config["verbose"]
    mne.set_log_level(configure_logger(verbose, log_dir=args.log_dir))

    method = args.method or config["method"]
    params = args.params if args.params is not None else config["params"]
    model_path = args.model or config["model_path"]
    n_jobs = args.n_jobs if args.n_jobs is not None else config["n_jobs"]

    try:
        data, fs, ch_names = load_signal(args.input_path, args.fs)
        annot = classify(data, fs, method, *params, model_path=model_path, n_jobs=n_jobs)
    except SigScreenError as e:
        message("error", f"{args.input_path.name}: {e.message}")
        return 1

    if annot.size:
        print_summary(Console(), annot, ch_names)
    else:
        message("warning", f"{args.input_path.name}: empty recording, nothing annotated")

    if args.output is not None:
        save_annotation_table(annot, args.output, ch_names if annot.size else None)

    if args.annotations is not None and annot.size:
        annotations = grid_to_annotations(
            annot,
            ch_names,
            n_samples=data.shape[1],
            fs=fs,
            description=config["annotation"]["description"],
        )
        args.annotations.parent.mkdir(parents=True, exist_ok=True)
        annotations.save(args.annotations, overwrite=True)
        message("info", f"{len(annotations)} annotations written to {args.annotations}")

    return 0
