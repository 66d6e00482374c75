# Copyright (c) Syntropy Systems
"""Tests for the aggregation functions."""

from __future__ import annotations

import pytest

from contribcheck.aggregate import (
    compute_averaged,
    compute_contribution,
    compute_difference,
)
from contribcheck.errors import UndefinedMetricError
from contribcheck.models.trial import Sample

MS = 1_000_000


class TestComputeContribution:
    """Tests for compute_contribution."""

    def test_matches_formula(self) -> None:
        """Percentage is (1 - variant/baseline) * 100."""
        for baseline, variant in [(100, 40), (7, 3), (123_456_789, 98_765_432)]:
            metric = compute_contribution(baseline, variant)
            assert metric.percentage == (1 - variant / baseline) * 100
            assert metric.absolute_diff_ns == variant - baseline
            assert metric.baseline_ns == baseline
            assert metric.variant_ns == variant

    def test_sixty_percent(self) -> None:
        """100 ms cold and 40 ms warm gives 60%."""
        metric = compute_contribution(100 * MS, 40 * MS)
        assert metric.percentage == pytest.approx(60.0)
        assert metric.absolute_diff_ns == -60 * MS

    def test_smaller_variant_increases_percentage(self) -> None:
        """Decreasing the variant strictly increases the percentage."""
        baseline = 100 * MS
        percentages = [
            compute_contribution(baseline, variant).percentage
            for variant in (150 * MS, 100 * MS, 60 * MS, 10 * MS, 0)
        ]
        assert percentages == sorted(percentages)
        assert len(set(percentages)) == len(percentages)

    def test_slower_variant_not_clamped(self) -> None:
        """A variant slower than the baseline gives a negative value."""
        metric = compute_contribution(100 * MS, 150 * MS)
        assert metric.percentage == pytest.approx(-50.0)

    def test_zero_variant_is_hundred_percent(self) -> None:
        """A zero variant duration is the full baseline."""
        assert compute_contribution(10, 0).percentage == pytest.approx(100.0)

    @pytest.mark.parametrize("baseline", [0, -1, -100 * MS])
    def test_rejects_non_positive_baseline(self, baseline: int) -> None:
        """Baselines of zero or less have no defined percentage."""
        with pytest.raises(UndefinedMetricError, match="undefined"):
            _ = compute_contribution(baseline, 10)

    def test_undefined_metric_is_value_error(self) -> None:
        """UndefinedMetricError can be caught as ValueError."""
        with pytest.raises(ValueError):
            _ = compute_contribution(0, 0)


class TestComputeAveraged:
    """Tests for compute_averaged."""

    def test_excludes_first_sample(self) -> None:
        """The warm-up sample is left out of total and average."""
        metric = compute_averaged([900, 10, 20, 30])

        assert metric.sample_count_used == 3
        assert metric.total_ns == 60
        assert metric.average_ns == 20

    def test_accepts_samples(self) -> None:
        """Samples and raw durations give the same result."""
        samples = [Sample(endpoint="/x", duration_ns=d) for d in (5, 6, 7)]
        assert compute_averaged(samples) == compute_averaged([5, 6, 7])

    def test_sample_count_used_is_length_minus_one(self) -> None:
        """sample_count_used is N - 1 for any N >= 2."""
        for n in range(2, 10):
            metric = compute_averaged(list(range(1, n + 1)))
            assert metric.sample_count_used == n - 1

    def test_average_is_integer_division(self) -> None:
        """The average is exact floor division in nanoseconds."""
        durations = [1, 10, 10, 11]
        metric = compute_averaged(durations)
        assert metric.average_ns == sum(durations[1:]) // 3
        assert isinstance(metric.average_ns, int)

    def test_repeatable(self) -> None:
        """Identical inputs always give identical results."""
        durations = [123_456_789, 333_333_333, 333_333_334, 999_999_999]
        results = {compute_averaged(durations) for _ in range(5)}
        assert len(results) == 1

    def test_single_sample_rejected(self) -> None:
        """One sample leaves nothing to average."""
        with pytest.raises(UndefinedMetricError):
            _ = compute_averaged([42])

    def test_empty_rejected(self) -> None:
        """No samples at all is rejected."""
        with pytest.raises(UndefinedMetricError):
            _ = compute_averaged([])

    def test_configurable_warmup(self) -> None:
        """More than one warm-up sample can be excluded."""
        metric = compute_averaged([1000, 1000, 4, 6], warmup_count=2)
        assert metric.total_ns == 10
        assert metric.average_ns == 5
        assert metric.sample_count_used == 2

    def test_zero_warmup(self) -> None:
        """A warm-up count of zero averages every sample."""
        metric = compute_averaged([2, 4], warmup_count=0)
        assert metric.sample_count_used == 2
        assert metric.average_ns == 3

    def test_negative_warmup_rejected(self) -> None:
        """Negative warm-up counts are rejected."""
        with pytest.raises(UndefinedMetricError, match="warmup_count"):
            _ = compute_averaged([1, 2, 3], warmup_count=-1)


class TestComputeDifference:
    """Tests for compute_difference."""

    def test_first_minus_second(self) -> None:
        """The difference is first minus second, signed."""
        assert compute_difference(50, 30).diff_ns == 20
        assert compute_difference(30, 50).diff_ns == -20
