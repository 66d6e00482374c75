# Copyright (c) Syntropy Systems
"""Timed single-request sampling."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Protocol

from contribcheck.models.trial import Sample

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class SupportsGet(Protocol):
    """Anything that can issue a read against an endpoint."""

    def get(self, endpoint: str) -> object:
        ...


class TrialObserver(Protocol):
    """Receives progress notifications while a strategy runs.

    Notifications are sent outside the timed window.
    """

    def on_section(self, title: str) -> None:
        ...

    def on_cache_clear_start(self) -> None:
        ...

    def on_cache_clear_done(self) -> None:
        ...

    def on_request(self, endpoint: str) -> None:
        ...

    def on_sample(self, sample: Sample) -> None:
        ...


class NullObserver:
    """Observer that ignores every notification."""

    def on_section(self, title: str) -> None:
        pass

    def on_cache_clear_start(self) -> None:
        pass

    def on_cache_clear_done(self) -> None:
        pass

    def on_request(self, endpoint: str) -> None:
        pass

    def on_sample(self, sample: Sample) -> None:
        pass


def collect_sample(
    client: SupportsGet,
    endpoint: str,
    *,
    clock: Callable[[], int] = time.perf_counter_ns,
    observer: TrialObserver | None = None,
) -> Sample:
    """Issue exactly one request and time it.

    The clock is read immediately before and after ``client.get``. If the
    call raises, the exception propagates and no sample is produced.

    Args:
        client: Handle used for the request
        endpoint: Endpoint path, including any query string
        clock: Monotonic nanosecond clock
        observer: Progress observer, notified before and after the call

    Returns:
        The sample for this call

    """
    if observer is not None:
        observer.on_request(endpoint)

    start = clock()
    _ = client.get(endpoint)
    elapsed = clock() - start

    sample = Sample(endpoint=endpoint, duration_ns=elapsed)
    logger.debug("Sampled %s in %d ns", endpoint, elapsed)
    if observer is not None:
        observer.on_sample(sample)
    return sample
