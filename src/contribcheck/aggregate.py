# Copyright (c) Syntropy Systems
"""Pure reductions from samples to summary metrics.

Durations stay integer nanoseconds; only the contribution percentage is
computed in floating point.
"""
from __future__ import annotations

from collections.abc import Iterable

from contribcheck.errors import UndefinedMetricError
from contribcheck.models.trial import (
    AveragedMetric,
    ContributionMetric,
    DurationDiff,
    Sample,
)

DEFAULT_WARMUP_COUNT = 1


def compute_contribution(baseline_ns: int, variant_ns: int) -> ContributionMetric:
    """Estimate how much of ``baseline_ns`` the variant condition saved.

    ``percentage = (1 - variant / baseline) * 100``. The value is not
    clamped: a variant slower than the baseline gives a negative result.

    Raises:
        UndefinedMetricError: If ``baseline_ns`` is not positive

    """
    if baseline_ns <= 0:
        msg = f"Contribution is undefined for baseline duration {baseline_ns} ns"
        raise UndefinedMetricError(msg)
    return ContributionMetric(
        baseline_ns=baseline_ns,
        variant_ns=variant_ns,
        absolute_diff_ns=variant_ns - baseline_ns,
        percentage=(1.0 - variant_ns / baseline_ns) * 100.0,
    )


def compute_averaged(
    samples: Iterable[Sample | int],
    warmup_count: int = DEFAULT_WARMUP_COUNT,
) -> AveragedMetric:
    """Sum and average a block, skipping the first ``warmup_count`` entries.

    Accepts samples or raw nanosecond durations. The average uses floor
    division so identical inputs always give identical results.

    Raises:
        UndefinedMetricError: If ``warmup_count`` is negative or no samples
            remain after the warm-up exclusion

    """
    if warmup_count < 0:
        msg = f"warmup_count must not be negative, got {warmup_count}"
        raise UndefinedMetricError(msg)

    durations = [s.duration_ns if isinstance(s, Sample) else s for s in samples]
    used = durations[warmup_count:]
    if not used:
        msg = (
            f"Need more than {warmup_count} sample(s) to average, "
            f"got {len(durations)}"
        )
        raise UndefinedMetricError(msg)

    total = sum(used)
    return AveragedMetric(
        total_ns=total,
        average_ns=total // len(used),
        sample_count_used=len(used),
    )


def compute_difference(first_ns: int, second_ns: int) -> DurationDiff:
    """Difference ``first - second``."""
    return DurationDiff(
        first_ns=first_ns,
        second_ns=second_ns,
        diff_ns=first_ns - second_ns,
    )
