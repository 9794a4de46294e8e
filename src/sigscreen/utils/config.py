# src/sigscreen/utils/config.py
from pathlib import Path
from typing import Union

import yaml
from schema import And, Optional, Or, Schema, SchemaError

from sigscreen.core.methods import Method
from sigscreen.utils.logging import message

DEFAULT_CONFIG = {
    "method": Method.PSD.value,
    "params": [],
    "model_path": None,
    "n_jobs": 1,
    "verbose": "INFO",
    "annotation": {"description": "BAD_artifact"},
}

_number = Or(int, float)

CONFIG_SCHEMA = Schema(
    {
        Optional("method", default=DEFAULT_CONFIG["method"]): And(
            str, lambda m: m in {item.value for item in Method},
            error="method must be one of: " + ", ".join(item.value for item in Method),
        ),
        Optional("params", default=[]): Or(None, [_number]),
        Optional("model_path", default=None): Or(None, str),
        Optional("n_jobs", default=1): And(int, lambda n: n != 0),
        Optional("verbose", default="INFO"): Or(str, int, bool),
        Optional("annotation", default=dict(DEFAULT_CONFIG["annotation"])): {
            Optional("description", default="BAD_artifact"): str,
        },
    }
)


def load_config(config_file: Union[str, Path]) -> dict:
    """Load and validate a sigscreen configuration file.

    Parameters
    ----------
    config_file : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    config : dict
        Validated configuration with defaults filled in.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    SchemaError
        If the file content does not match the expected structure.

    Examples
    --------
    >>> config = load_config(Path("sigscreen.yaml"))
    >>> config["method"]
    'psd'
    """
    message("info", f"Loading config: {config_file}")

    with open(config_file) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise SchemaError(f"Configuration in {config_file} must be a mapping")

    config = CONFIG_SCHEMA.validate(raw)
    if config["params"] is None:
        config["params"] = []

    if config["model_path"] is not None:
        model_path = Path(config["model_path"])
        if not model_path.is_absolute():
            # model stores are resolved relative to the config file
            model_path = Path(config_file).parent / model_path
        config["model_path"] = str(model_path)

    message("debug", f"Configuration: {config}")
    return config
