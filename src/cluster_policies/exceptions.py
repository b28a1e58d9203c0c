"""Error taxonomy for the policy families.

::

    PolicyError
    ├── InvalidParameter            (also a ValueError)
    │   ├── ConfigurationError      bad alpha / n / delta / beta / name
    │   └── PreconditionViolation   empty or non-descending spectrum
    └── DegenerateInput             (also an ArithmeticError)

Linkage policies raise none of these from ``combine``; they are total
functions on well-formed numeric input.
"""

from __future__ import annotations

__all__ = [
    "PolicyError",
    "InvalidParameter",
    "ConfigurationError",
    "PreconditionViolation",
    "DegenerateInput",
]


class PolicyError(Exception):
    """Base class for every error raised by :mod:`cluster_policies`."""


class InvalidParameter(PolicyError, ValueError):
    """A value handed to a policy is outside its accepted domain."""


class ConfigurationError(InvalidParameter):
    """A policy parameter (``alpha``, ``n``, a linkage name, …) is invalid."""


class PreconditionViolation(InvalidParameter):
    """The caller broke an input contract (empty or unsorted spectrum)."""


class DegenerateInput(PolicyError, ArithmeticError):
    """The spectrum carries no variance to partition (sum of eigenvalues <= 0)."""
