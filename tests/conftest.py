"""Test configuration and fixtures."""

import pytest

from tests.fixtures.synthetic_data import create_synthetic_signal, write_tree_store


@pytest.fixture
def noise_signal():
    """Three channels of white noise, 3 s at 8 kHz."""
    return create_synthetic_signal(n_channels=3, fs=8000, duration=3.0)


@pytest.fixture
def tree_store(tmp_path):
    """Model store whose trees split only on maxNormPSD."""
    return write_tree_store(tmp_path / "classifiers.yaml")
