# Copyright (c) Syntropy Systems
"""Error taxonomy for contribcheck.

Everything raised on purpose derives from ContribCheckError. Only
``contribcheck.check.run_check`` turns these into process exit codes.
"""

from __future__ import annotations


class ContribCheckError(Exception):
    """Base class for contribcheck errors."""


class ArgumentError(ContribCheckError):
    """Malformed identity, app id or mode on the command line."""


class ConfigurationError(ContribCheckError):
    """Invalid configuration value or unreadable config file."""


class ConnectivityError(ContribCheckError):
    """The initial repository probe failed."""


class TransportError(ContribCheckError):
    """Error from repository communication."""


class UndefinedMetricError(ContribCheckError, ValueError):
    """A metric was requested for inputs it is not defined for."""
