# Copyright (c) Syntropy Systems
"""Top-level check flow.

``run_check`` is the only place that turns errors into exit codes. Below
it, every failure is a typed exception; nothing exits the process early.
"""
from __future__ import annotations

import dataclasses
import logging
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contribcheck.client import Identity, QrsSession
from contribcheck.config import ContribCheckConfig, load_config
from contribcheck.errors import (
    ArgumentError,
    ConfigurationError,
    ConnectivityError,
    TransportError,
    UndefinedMetricError,
)
from contribcheck.models.trial import Mode
from contribcheck.report import ConsoleReporter
from contribcheck.strategies import run_strategy

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from contribcheck.models.trial import StrategyResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


@dataclass(frozen=True)
class CheckArguments:
    """Validated command line arguments."""

    identity: Identity
    app_id: uuid.UUID
    mode: Mode


def parse_arguments(
    identity: str | None,
    app_id: str | None,
    mode: str | None,
) -> CheckArguments:
    """Validate the three positional arguments.

    Raises:
        ArgumentError: If any argument is missing or malformed

    """
    if identity is None or app_id is None or mode is None:
        msg = "Expected three arguments: identity, app id and mode"
        raise ArgumentError(msg)
    try:
        parsed_identity = Identity.parse(identity)
    except ValueError as e:
        raise ArgumentError(str(e)) from e
    try:
        parsed_app_id = uuid.UUID(app_id)
    except ValueError as e:
        msg = f"Invalid app id {app_id!r}: not a UUID"
        raise ArgumentError(msg) from e
    try:
        parsed_mode = Mode(mode)
    except ValueError as e:
        choices = ", ".join(m.value for m in Mode)
        msg = f"Unknown mode {mode!r}, expected one of: {choices}"
        raise ArgumentError(msg) from e
    return CheckArguments(
        identity=parsed_identity,
        app_id=parsed_app_id,
        mode=parsed_mode,
    )


def _prepare_config(
    config: ContribCheckConfig | None,
    config_path: Path | None,
    repeat_count: int | None,
    mode: Mode,
) -> tuple[ContribCheckConfig, Identity]:
    if config is None:
        config = load_config(config_path)
    if repeat_count is not None:
        config = dataclasses.replace(config, repeat_count=repeat_count)
    config.validate()
    if mode is Mode.OPTIONAL_FEATURE_CONTRIBUTION:
        config.validate_repeat_count()
    try:
        admin_identity = Identity.parse(config.admin_identity)
    except ValueError as e:
        msg = f"Invalid admin_identity: {e}"
        raise ConfigurationError(msg) from e
    return config, admin_identity


def _probe(
    session: QrsSession,
    admin_identity: Identity,
    config: ContribCheckConfig,
    reporter: ConsoleReporter,
) -> None:
    admin = session.admin_client(admin_identity, config.cache_clear_endpoint)
    reporter.probe_started()
    try:
        about = admin.probe()
    except TransportError as e:
        msg = f"Could not connect to {config.server_url}: {e}"
        raise ConnectivityError(msg) from e
    logger.info("Connected to repository %s", about.build_version)
    reporter.probe_succeeded(about)


def run_check(  # noqa: PLR0913
    identity: str | None,
    app_id: str | None,
    mode: str | None,
    *,
    config: ContribCheckConfig | None = None,
    config_path: Path | None = None,
    repeat_count: int | None = None,
    reporter: ConsoleReporter | None = None,
    session_factory: Callable[[ContribCheckConfig], QrsSession] | None = None,
    clock: Callable[[], int] = time.perf_counter_ns,
) -> int:
    """Run one check end to end and return the process exit code.

    Arguments are validated before anything touches the network. A failed
    probe stops the run before any trial. A transport failure during a
    trial aborts it without printing a summary.
    """
    reporter = reporter or ConsoleReporter()

    try:
        arguments = parse_arguments(identity, app_id, mode)
    except ArgumentError as e:
        reporter.usage(str(e))
        return EXIT_FAILURE

    try:
        config, admin_identity = _prepare_config(
            config, config_path, repeat_count, arguments.mode
        )
    except ConfigurationError as e:
        reporter.error(f"Configuration error: {e}")
        return EXIT_FAILURE

    reporter.startup(arguments.identity, arguments.app_id)

    try:
        session = (session_factory or QrsSession)(config)
    except ConfigurationError as e:
        reporter.error(f"Configuration error: {e}")
        return EXIT_FAILURE

    with session:
        try:
            _probe(session, admin_identity, config, reporter)
        except ConnectivityError as e:
            reporter.probe_failed(e)
            return EXIT_FAILURE

        try:
            result: StrategyResult = run_strategy(
                arguments.mode,
                session.user_client(arguments.identity),
                session.admin_client(admin_identity, config.cache_clear_endpoint),
                arguments.app_id,
                config,
                clock=clock,
                observer=reporter,
            )
        except TransportError as e:
            logger.debug("Trial aborted", exc_info=e)
            reporter.trial_aborted(e)
            return EXIT_FAILURE
        except UndefinedMetricError as e:
            reporter.error(f"Could not compute result: {e}")
            return EXIT_FAILURE

    reporter.summary(result)
    return EXIT_OK
