# Copyright (c) Syntropy Systems
"""Pydantic models for samples, trials and derived metrics.

All durations are integer nanoseconds. Nothing here is persisted; the models
live for a single check run.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .base import FrozenModel


class Mode(str, Enum):
    """Measurement strategy selectable from the command line."""

    RULE_CONTRIBUTION = "RuleContribution"
    OPTIONAL_FEATURE_CONTRIBUTION = "OptionalFeatureContribution"


class Sample(FrozenModel):
    """One timed request against one endpoint."""

    endpoint: str
    duration_ns: int = Field(ge=0)


class TrialStep(FrozenModel):
    """A sample tagged with the condition it was collected under."""

    condition: str
    sample: Sample


class Trial(FrozenModel):
    """Ordered samples produced by one strategy run."""

    steps: tuple[TrialStep, ...] = ()

    def samples_for(self, condition: str) -> tuple[Sample, ...]:
        """Samples collected under ``condition``, in collection order."""
        return tuple(step.sample for step in self.steps if step.condition == condition)


class ContributionMetric(FrozenModel):
    """Contribution derived from a baseline and a variant duration."""

    baseline_ns: int
    variant_ns: int
    absolute_diff_ns: int
    percentage: float


class AveragedMetric(FrozenModel):
    """Total and average of a sample block after warm-up exclusion."""

    total_ns: int
    average_ns: int
    sample_count_used: int = Field(ge=1)


class DurationDiff(FrozenModel):
    """Difference ``first - second`` between two durations."""

    first_ns: int
    second_ns: int
    diff_ns: int


class RuleContributionResult(FrozenModel):
    """Outcome of the rule contribution strategy."""

    trial: Trial
    baseline: Sample
    warming: Sample
    post_warm: Sample
    contribution: ContributionMetric


class OptionalFeatureContributionResult(FrozenModel):
    """Outcome of the optional feature contribution strategy."""

    trial: Trial
    repeat_count: int
    enabled: AveragedMetric
    disabled: AveragedMetric
    total_diff: DurationDiff
    average_diff: DurationDiff


StrategyResult = RuleContributionResult | OptionalFeatureContributionResult
