"""Tests for one-second segment boundaries."""

import pytest

from sigscreen.functions.segments import count_seconds, second_bounds


class TestSecondBounds:
    """Test segment edges for integer and fractional sampling rates."""

    def test_integer_rate(self):
        assert count_seconds(20000, 8000) == 3
        assert second_bounds(0, 8000, 20000) == (0, 8000)
        assert second_bounds(2, 8000, 20000) == (16000, 20000)

    def test_fractional_rate_last_second_keeps_one_sample(self):
        assert count_seconds(1001, 1000.6) == 2
        assert second_bounds(0, 1000.6, 1001) == (0, 1000)
        assert second_bounds(1, 1000.6, 1001) == (1000, 1001)

    @pytest.mark.parametrize("fs", [999.9, 1000.4, 1000.5, 1000.6, 2047.3, 24000.0])
    @pytest.mark.parametrize("n_samples", [2048, 2049, 3001, 5000])
    def test_segments_tile_the_recording(self, fs, n_samples):
        if n_samples < fs:
            pytest.skip("shorter than one second")
        bounds = [second_bounds(s, fs, n_samples) for s in range(count_seconds(n_samples, fs))]

        assert bounds[0][0] == 0
        assert bounds[-1][1] == n_samples
        assert all(stop > start for start, stop in bounds)
        assert all(a[1] == b[0] for a, b in zip(bounds[:-1], bounds[1:]))
