"""Tests for the per-window feature extractor."""

import numpy as np
import pytest

from sigscreen.functions.features import FEATURE_NAMES, compute_features
from tests.fixtures.synthetic_data import add_sine_artifact, create_synthetic_signal

FS = 8000


class TestFeatureUniverse:
    """Test the fixed feature name universe."""

    def test_universe_has_nineteen_unique_names(self):
        assert len(FEATURE_NAMES) == 19
        assert len(set(FEATURE_NAMES)) == 19
        assert "maxNormPSD" in FEATURE_NAMES

    def test_all_features_computed(self):
        """Every feature of the universe yields a finite value for noise."""
        segment = create_synthetic_signal(n_channels=2, fs=FS, duration=1.0)
        values = compute_features(segment, FEATURE_NAMES, FS)

        assert values.shape == (2, 19)
        assert np.all(np.isfinite(values))


class TestComputeFeatures:
    """Test feature values and argument handling."""

    def test_column_order_follows_requested_names(self):
        segment = create_synthetic_signal(n_channels=3, fs=FS, duration=1.0)
        full = compute_features(segment, FEATURE_NAMES, FS)
        subset = compute_features(segment, ["psdFreq", "pow"], FS)

        assert subset.shape == (3, 2)
        np.testing.assert_allclose(subset[:, 0], full[:, FEATURE_NAMES.index("psdFreq")])
        np.testing.assert_allclose(subset[:, 1], full[:, FEATURE_NAMES.index("pow")])

    def test_max_norm_psd_separates_sine_from_noise(self):
        """A strong sinusoid concentrates the normalized PSD in a few bins."""
        segment = create_synthetic_signal(n_channels=2, fs=FS, duration=1.0)
        segment = add_sine_artifact(segment, FS, channel=1, second=0, freq=52.0)

        values = compute_features(segment, ["maxNormPSD", "psdFreq"], FS)

        assert values[0, 0] < 0.01
        assert values[1, 0] > 0.1
        assert values[1, 1] == pytest.approx(52.0)

    def test_normalized_psd_statistics_are_bounded(self):
        segment = create_synthetic_signal(n_channels=2, fs=FS, duration=1.0)
        names = ["maxNormPSD", "psdF100", "psdBase", "psdEntropy"]
        values = compute_features(segment, names, FS)

        assert np.all(values >= 0)
        assert np.all(values <= 1)
        # white noise is spread over the whole band
        assert np.all(values[:, 3] > 0.9)

    def test_amplitude_percentiles_of_gaussian_noise(self):
        segment = create_synthetic_signal(n_channels=1, fs=FS, duration=1.0)
        p95, ks, kurt = compute_features(segment, ["sigP95", "ksnorm", "kurtosis"], FS)[0]

        assert p95 == pytest.approx(1.96, abs=0.1)
        assert ks < 0.05
        assert abs(kurt) < 0.5

    def test_max_corr(self):
        """maxCorr is 0 for a single channel and 1 for duplicated channels."""
        segment = create_synthetic_signal(n_channels=1, fs=FS, duration=1.0)
        assert compute_features(segment, ["maxCorr"], FS)[0, 0] == 0.0

        duplicated = np.vstack([segment, segment])
        np.testing.assert_allclose(compute_features(duplicated, ["maxCorr"], FS)[:, 0], 1.0)

    def test_flat_channel_yields_nan_shape_features(self):
        segment = create_synthetic_signal(n_channels=2, fs=FS, duration=1.0)
        segment[1] = 3.0

        values = compute_features(segment, ["ksnorm", "kurtosis", "maxNormPSD", "pow"], FS)

        assert np.all(np.isfinite(values[0]))
        assert np.all(np.isnan(values[1, :3]))
        assert values[1, 3] == 0.0

    def test_vector_is_single_channel(self):
        segment = create_synthetic_signal(n_channels=1, fs=FS, duration=1.0)[0]
        assert compute_features(segment, ["pow"], FS).shape == (1, 1)

    def test_short_window(self):
        """A window shorter than one second still yields one row per channel."""
        segment = create_synthetic_signal(n_channels=2, fs=FS, duration=0.3)
        values = compute_features(segment, ["maxNormPSD"], FS)
        assert values.shape == (2, 1)
        assert np.all(np.isfinite(values))

    def test_parameter_validation(self):
        segment = create_synthetic_signal(n_channels=1, fs=FS, duration=1.0)

        with pytest.raises(ValueError, match="Unknown feature"):
            compute_features(segment, ["maxNormPSD", "fooBar"], FS)

        with pytest.raises(ValueError):
            compute_features(segment, ["pow"], 0)

        with pytest.raises(ValueError):
            compute_features(np.zeros((2, 0)), ["pow"], FS)

        with pytest.raises(TypeError):
            compute_features([["a", "b"]], ["pow"], FS)
