"""Unit tests for randomized delays and typing cadence."""

from __future__ import annotations

from unittest.mock import patch

from serpharvest.browser.timing import random_delay, typing_cadence


class TestRandomDelay:
    def test_sleeps_within_bounds(self, sleeps):
        for _ in range(200):
            random_delay(1, 3)
        assert len(sleeps) == 200
        assert all(1 <= s <= 3 for s in sleeps)

    def test_returns_the_slept_duration(self, sleeps):
        slept = random_delay(0.5, 1.5)
        assert sleeps == [slept]

    def test_degenerate_window(self, sleeps):
        random_delay(2, 2)
        assert sleeps == [2]

    def test_uses_uniform_distribution(self, sleeps):
        with patch("serpharvest.browser.timing.random.uniform", return_value=1.7) as uniform:
            random_delay(1, 3)
        uniform.assert_called_once_with(1, 3)
        assert sleeps == [1.7]


class TestTypingCadence:
    def test_one_delay_per_character(self):
        pairs = list(typing_cadence("bbri"))
        assert [c for c, _ in pairs] == ["b", "b", "r", "i"]

    def test_default_window_is_100_to_300_ms(self):
        delays = [d for _, d in typing_cadence("x" * 500)]
        assert all(0.1 <= d <= 0.3 for d in delays)

    def test_custom_window(self):
        delays = [d for _, d in typing_cadence("abc", 10, 20)]
        assert all(0.01 <= d <= 0.02 for d in delays)

    def test_empty_text(self):
        assert list(typing_cadence("")) == []
