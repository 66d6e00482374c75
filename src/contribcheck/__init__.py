"""
contribcheck - Repository latency contribution checks.

Time controlled requests, isolate a feature, see what it costs.
"""

from contribcheck.aggregate import compute_averaged, compute_contribution
from contribcheck.check import run_check
from contribcheck.collector import collect_sample

__version__ = "0.1.0"
__all__ = [
    "collect_sample",
    "compute_averaged",
    "compute_contribution",
    "run_check",
    "__version__",
]
