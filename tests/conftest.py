# Copyright (c) Syntropy Systems
"""Pytest fixtures for contribcheck tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Union

import httpx
import pytest

from contribcheck.client import QrsSession
from contribcheck.config import ContribCheckConfig
from contribcheck.errors import TransportError

NS_PER_MS = 1_000_000

PlannedDuration = Union[int, list[int]]


class FakeClock:
    """Monotonic nanosecond clock advanced by hand."""

    def __init__(self, start: int = 1_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ns: int) -> None:
        self.now += ns


class RecordingTransport:
    """Fake user and admin handle that records every call.

    Each ``get`` advances the shared clock by the duration configured for
    its endpoint: an int is used for every call, a list is consumed in
    order.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: list[tuple[str, str | None]] = []
        self.durations: dict[str, PlannedDuration] = {}
        self.default_ns = NS_PER_MS
        self.fail_on: str | None = None

    def get(self, endpoint: str) -> bytes:
        self.calls.append(("get", endpoint))
        if self.fail_on == endpoint:
            msg = f"Server error: GET {endpoint} returned 500"
            raise TransportError(msg)
        planned = self.durations.get(endpoint, self.default_ns)
        ns = planned.pop(0) if isinstance(planned, list) else planned
        self.clock.advance(ns)
        return b"{}"

    def clear_computation_cache(self) -> None:
        self.calls.append(("clear", None))
        if self.fail_on == "clear":
            msg = "Server error: POST resetcache returned 403"
            raise TransportError(msg)

    @property
    def endpoints(self) -> list[str | None]:
        return [endpoint for kind, endpoint in self.calls if kind == "get"]


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at an arbitrary non-zero instant."""
    return FakeClock()


@pytest.fixture
def transport(clock: FakeClock) -> RecordingTransport:
    """A recording fake transport wired to the fake clock."""
    return RecordingTransport(clock)


@pytest.fixture
def config() -> ContribCheckConfig:
    """Default configuration pointing at a fake server."""
    return ContribCheckConfig(server_url="https://qrs.test:4242")


@pytest.fixture
def make_session() -> Callable[..., Callable[[ContribCheckConfig], QrsSession]]:
    """Build session factories backed by ``httpx.MockTransport``."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> Callable[[ContribCheckConfig], QrsSession]:
        def build(config: ContribCheckConfig) -> QrsSession:
            http_client = httpx.Client(transport=httpx.MockTransport(handler))
            return QrsSession(config, http_client=http_client)

        return build

    return factory
