# Copyright (c) Syntropy Systems
"""Measurement strategies.

Each strategy drives the repository through a fixed, strictly sequential
protocol and hands the resulting samples to the aggregator. Transport
errors are never caught here: a failed call aborts the trial.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Protocol

from contribcheck.aggregate import (
    compute_averaged,
    compute_contribution,
    compute_difference,
)
from contribcheck.collector import NullObserver, collect_sample
from contribcheck.config import MIN_REPEAT_COUNT, ContribCheckConfig
from contribcheck.errors import ConfigurationError
from contribcheck.models.trial import (
    Mode,
    OptionalFeatureContributionResult,
    RuleContributionResult,
    Trial,
    TrialStep,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from contribcheck.collector import SupportsGet, TrialObserver
    from contribcheck.models.trial import Sample, StrategyResult

logger = logging.getLogger(__name__)

_DEFAULTS = ContribCheckConfig()

BASELINE = "baseline"
WARMING = "warming"
POST_WARM = "post_warm"
FEATURE_ENABLED = "enabled"
FEATURE_DISABLED = "disabled"


class SupportsCacheClear(Protocol):
    """Anything that can invalidate the repository's computation cache."""

    def clear_computation_cache(self) -> None:
        ...


def _clear_cache(cache: SupportsCacheClear, observer: TrialObserver) -> None:
    observer.on_cache_clear_start()
    cache.clear_computation_cache()
    observer.on_cache_clear_done()


def feature_endpoint(template: str, app_id: UUID, *, enabled: bool) -> str:
    """Render the feature endpoint with the flag set to ``enabled``."""
    return template.format(app_id=app_id, flag="true" if enabled else "false")


def run_rule_contribution(  # noqa: PLR0913
    client: SupportsGet,
    cache: SupportsCacheClear,
    app_id: UUID,
    *,
    open_endpoint: str = _DEFAULTS.open_endpoint,
    count_endpoint: str = _DEFAULTS.count_endpoint,
    clock: Callable[[], int] = time.perf_counter_ns,
    observer: TrialObserver | None = None,
) -> RuleContributionResult:
    """Estimate how much of a cold app open is spent computing rules.

    Protocol, in this exact order:

    1. clear the rule cache
    2. open the app (baseline)
    3. clear the rule cache again so the next step also starts cold
    4. call the counting endpoint, which populates the same rule structure
    5. open the app again (post-warm)

    The contribution compares step 5 against step 2. Step 4 is reported
    as the cost of the warming call itself.

    Args:
        client: Handle bound to the acting user
        cache: Handle allowed to clear the rule cache
        app_id: Target app
        open_endpoint: Template for the app open endpoint
        count_endpoint: Template for the warming endpoint
        clock: Monotonic nanosecond clock
        observer: Progress observer

    Returns:
        Samples of all three calls and the derived contribution

    """
    observer = observer or NullObserver()
    target = open_endpoint.format(app_id=app_id)

    logger.info("Rule contribution: cold open of %s", target)
    observer.on_section("Test 1")
    _clear_cache(cache, observer)
    baseline = collect_sample(client, target, clock=clock, observer=observer)

    logger.info("Rule contribution: open after warming call")
    observer.on_section("Test 2")
    _clear_cache(cache, observer)
    warming = collect_sample(
        client,
        count_endpoint.format(app_id=app_id),
        clock=clock,
        observer=observer,
    )
    post_warm = collect_sample(client, target, clock=clock, observer=observer)

    trial = Trial(
        steps=(
            TrialStep(condition=BASELINE, sample=baseline),
            TrialStep(condition=WARMING, sample=warming),
            TrialStep(condition=POST_WARM, sample=post_warm),
        )
    )
    return RuleContributionResult(
        trial=trial,
        baseline=baseline,
        warming=warming,
        post_warm=post_warm,
        contribution=compute_contribution(
            baseline.duration_ns, post_warm.duration_ns
        ),
    )


def run_optional_feature_contribution(
    client: SupportsGet,
    app_id: UUID,
    *,
    repeat_count: int = _DEFAULTS.repeat_count,
    endpoint_template: str = _DEFAULTS.feature_endpoint,
    clock: Callable[[], int] = time.perf_counter_ns,
    observer: TrialObserver | None = None,
) -> OptionalFeatureContributionResult:
    """Measure the cost of an optional feature toggled by a query flag.

    Issues ``repeat_count`` requests with the flag on, then ``repeat_count``
    with it off. The first request of each block is a warm-up and is left
    out of the totals. The cache is not touched: the flag is the only
    variable.

    Raises:
        ConfigurationError: If ``repeat_count`` is below 2. Nothing is sent.

    """
    if repeat_count < MIN_REPEAT_COUNT:
        msg = (
            f"repeat_count must be at least {MIN_REPEAT_COUNT}, "
            f"got {repeat_count}"
        )
        raise ConfigurationError(msg)

    observer = observer or NullObserver()
    steps: list[TrialStep] = []
    blocks: dict[str, list[Sample]] = {}

    for condition, enabled in ((FEATURE_ENABLED, True), (FEATURE_DISABLED, False)):
        endpoint = feature_endpoint(endpoint_template, app_id, enabled=enabled)
        logger.info("Optional feature %s: %d x %s", condition, repeat_count, endpoint)
        observer.on_section(f"Feature {condition}")
        block = [
            collect_sample(client, endpoint, clock=clock, observer=observer)
            for _ in range(repeat_count)
        ]
        steps.extend(TrialStep(condition=condition, sample=s) for s in block)
        blocks[condition] = block

    enabled_metric = compute_averaged(blocks[FEATURE_ENABLED])
    disabled_metric = compute_averaged(blocks[FEATURE_DISABLED])
    return OptionalFeatureContributionResult(
        trial=Trial(steps=tuple(steps)),
        repeat_count=repeat_count,
        enabled=enabled_metric,
        disabled=disabled_metric,
        total_diff=compute_difference(
            enabled_metric.total_ns, disabled_metric.total_ns
        ),
        average_diff=compute_difference(
            enabled_metric.average_ns, disabled_metric.average_ns
        ),
    )


def run_strategy(  # noqa: PLR0913
    mode: Mode,
    client: SupportsGet,
    cache: SupportsCacheClear,
    app_id: UUID,
    config: ContribCheckConfig,
    *,
    clock: Callable[[], int] = time.perf_counter_ns,
    observer: TrialObserver | None = None,
) -> StrategyResult:
    """Run the strategy selected by ``mode`` with endpoints from ``config``."""
    if mode is Mode.RULE_CONTRIBUTION:
        return run_rule_contribution(
            client,
            cache,
            app_id,
            open_endpoint=config.open_endpoint,
            count_endpoint=config.count_endpoint,
            clock=clock,
            observer=observer,
        )
    return run_optional_feature_contribution(
        client,
        app_id,
        repeat_count=config.repeat_count,
        endpoint_template=config.feature_endpoint,
        clock=clock,
        observer=observer,
    )
