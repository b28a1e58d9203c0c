"""Eigenpair filters — split a descending spectrum into strong and weak.

Subspace and correlation clustering methods keep the *strong*
eigenvectors of a local covariance matrix as the cluster's subspace and
treat the *weak* ones as noise.  Every filter here consumes a spectrum
already sorted by eigenvalue (descending) and returns a
:class:`~cluster_policies.eigenpairs.FilteredEigenPairs` whose strong
half is a prefix of the input.  Filters never sort.

Filters
-------
* :class:`PercentageEigenPairFilter` — smallest prefix explaining at
  least ``alpha`` of the total variance (default ``alpha = 0.85``).
* :class:`FirstNEigenPairFilter` — a fixed number of strong pairs.
* :class:`LimitEigenPairFilter` — eigenvalue floor, absolute or
  relative to the largest eigenvalue.
* :class:`RelativeEigenPairFilter` — strong while an eigenvalue stands
  out against the mean of the pairs after it.
* :class:`SignificantEigenPairFilter` — cut at the largest drop between
  neighbouring eigenvalues.

The pure entry point :func:`percentage_split` performs no logging; the
filter objects log one ``DEBUG`` record per call.

Usage
-----
>>> f = PercentageEigenPairFilter(alpha=0.85)
>>> result = f.filter(SortedEigenPairs.from_decomposition(evals, evecs))
>>> result.strong_eigenvectors          # (d, n_strong) basis
>>> build_filter("relative").filter(pairs)
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import ClassVar, Dict, Sequence, Tuple, Type

from .eigenpairs import EigenPair, FilteredEigenPairs
from .exceptions import ConfigurationError, DegenerateInput, PreconditionViolation
from .parameters import (
    DEFAULT_ALPHA,
    DEFAULT_PARAMETERS,
    ParameterRegistry,
    validate_alpha,
    validate_parameter,
)

logger = logging.getLogger(__name__)

__all__ = [
    "EigenPairFilter",
    "PercentageEigenPairFilter",
    "FirstNEigenPairFilter",
    "LimitEigenPairFilter",
    "RelativeEigenPairFilter",
    "SignificantEigenPairFilter",
    "FILTERS",
    "build_filter",
    "percentage_split",
]


# ── helpers ──────────────────────────────────────────────────────

def _require_pairs(eigen_pairs: Sequence[EigenPair]) -> Tuple[EigenPair, ...]:
    pairs = tuple(eigen_pairs)
    if not pairs:
        raise PreconditionViolation("Cannot filter an empty eigenpair sequence")
    return pairs


def _split_at(pairs: Tuple[EigenPair, ...], n_strong: int) -> FilteredEigenPairs:
    return FilteredEigenPairs(strong=pairs[:n_strong], weak=pairs[n_strong:])


def _percentage_cut(eigenvalues: Sequence[float], alpha: float) -> int:
    """Number of strong pairs under the percentage rule."""
    total = 0.0
    for value in eigenvalues:
        total += value
    if not total > 0.0 or not math.isfinite(total):
        raise DegenerateInput(
            f"Eigenvalue sum is {total!r}; the spectrum carries no variance "
            f"to split")

    curr = 0.0
    for i, value in enumerate(eigenvalues):
        curr += value
        if curr / total >= alpha:
            # The pair that first reaches alpha is still strong.
            return i + 1
    return len(eigenvalues)


def percentage_split(
    eigen_pairs: Sequence[EigenPair],
    alpha: float = DEFAULT_ALPHA,
) -> FilteredEigenPairs:
    """Split a descending spectrum at the first pair reaching ``alpha``.

    Walks the pairs in order, accumulating eigenvalues.  Pairs are
    strong until the cumulative share of the total first reaches
    ``alpha``; the pair that crosses is strong too, everything after it
    is weak.

    Parameters
    ----------
    eigen_pairs : sequence of EigenPair
        Sorted by eigenvalue, descending.  Not re-sorted.
    alpha : float
        Required share of explained variance, ``0 < alpha < 1``.

    Returns
    -------
    FilteredEigenPairs

    Raises
    ------
    ConfigurationError
        If ``alpha`` is not strictly between 0 and 1.
    PreconditionViolation
        If ``eigen_pairs`` is empty.
    DegenerateInput
        If the eigenvalues sum to zero (or less).

    Notes
    -----
    If rounding in the running sum keeps the final share just below
    ``alpha``, no pair crosses and every pair is strong.

    >>> [p.eigenvalue for p in percentage_split(pairs_6_3_1, 0.85).strong]
    [6.0, 3.0]
    """
    alpha = validate_alpha(alpha)
    pairs = _require_pairs(eigen_pairs)
    n_strong = _percentage_cut([p.eigenvalue for p in pairs], alpha)
    return _split_at(pairs, n_strong)


# ═══════════════════════════════════════════════════════════════════
# EigenPairFilter — the shared contract
# ═══════════════════════════════════════════════════════════════════

class EigenPairFilter(ABC):
    """Base class for filters that keep a strong prefix of the spectrum.

    Subclasses implement :meth:`strong_count`; :meth:`filter` handles
    the empty-input check, the split, and the debug record.
    """

    name: ClassVar[str] = ""

    @abstractmethod
    def strong_count(self, eigenvalues: Sequence[float]) -> int:
        """Number of leading pairs that are strong (``1 <= k <= n``)."""

    def filter(self, eigen_pairs: Sequence[EigenPair]) -> FilteredEigenPairs:
        """Partition *eigen_pairs* into strong and weak.

        Raises
        ------
        PreconditionViolation
            If ``eigen_pairs`` is empty.
        """
        pairs = _require_pairs(eigen_pairs)
        result = _split_at(pairs, self.strong_count([p.eigenvalue for p in pairs]))
        logger.debug(
            f"{self!r}: {len(pairs)} eigenpairs → "
            f"{result.n_strong} strong, {result.n_weak} weak"
        )
        return result

    def __call__(self, eigen_pairs: Sequence[EigenPair]) -> FilteredEigenPairs:
        return self.filter(eigen_pairs)


# ═══════════════════════════════════════════════════════════════════
# Filters
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PercentageEigenPairFilter(EigenPairFilter):
    """Strong pairs explain a share of at least ``alpha`` of the variance.

    Parameters
    ----------
    alpha : float
        ``0 < alpha < 1``; default 0.85.

    Raises
    ------
    ConfigurationError
        On construction, for ``alpha`` outside ``(0, 1)``.
    DegenerateInput
        From :meth:`filter`, when the eigenvalues sum to zero.
    """

    alpha: float = DEFAULT_ALPHA

    name: ClassVar[str] = "percentage"

    def __post_init__(self):
        object.__setattr__(self, "alpha", validate_alpha(self.alpha))

    def strong_count(self, eigenvalues):
        return _percentage_cut(eigenvalues, self.alpha)


@dataclass(frozen=True)
class FirstNEigenPairFilter(EigenPairFilter):
    """The first ``n`` pairs are strong, the rest weak.

    An ``n`` at least as large as the spectrum makes every pair strong.
    """

    n: int = 2

    name: ClassVar[str] = "first_n"

    def __post_init__(self):
        validate_parameter("first_n.n", self.n)
        object.__setattr__(self, "n", int(self.n))

    def strong_count(self, eigenvalues):
        return min(self.n, len(eigenvalues))


@dataclass(frozen=True)
class LimitEigenPairFilter(EigenPairFilter):
    """Pairs with an eigenvalue of at least a limit are strong.

    The limit is ``delta`` itself when ``absolute`` is set, otherwise
    ``delta`` times the largest eigenvalue.  A relative ``delta`` must
    not exceed 1, or no pair could qualify.

    The largest pair is always kept strong so the subspace is never
    empty.
    """

    delta: float = 0.01
    absolute: bool = False

    name: ClassVar[str] = "limit"

    def __post_init__(self):
        validate_parameter("limit.delta", self.delta)
        if not self.absolute and self.delta > 1.0:
            raise ConfigurationError(
                f"Relative limit delta must be <= 1, got {self.delta!r}")

    def strong_count(self, eigenvalues):
        limit = self.delta if self.absolute else self.delta * max(eigenvalues)
        k = 1
        while k < len(eigenvalues) and eigenvalues[k] >= limit:
            k += 1
        return k


@dataclass(frozen=True)
class RelativeEigenPairFilter(EigenPairFilter):
    """Strong up to the last pair that stands out against its tail.

    Pair ``i`` stands out when ``λ_i >= ralpha · mean(λ_{i+1}, …, λ_{n-1})``.
    Scanning from the end, the first such ``i`` closes the strong
    prefix.  The final pair has no tail and is never tested; when no
    pair stands out, every pair is strong.
    """

    ralpha: float = 1.1

    name: ClassVar[str] = "relative"

    def __post_init__(self):
        validate_parameter("relative.ralpha", self.ralpha)

    def strong_count(self, eigenvalues):
        n = len(eigenvalues)
        tail = 0.0
        for i in range(n - 2, -1, -1):
            tail += eigenvalues[i + 1]
            if eigenvalues[i] >= self.ralpha * tail / (n - 1 - i):
                return i + 1
        return n


@dataclass(frozen=True)
class SignificantEigenPairFilter(EigenPairFilter):
    """Cut the spectrum at its largest drop.

    For each neighbouring pair the contrast ``λ_i / λ_{i+1}`` is
    computed, with the denominator raised to a noise floor of ``walpha``
    times the mean eigenvalue.  The strong prefix ends at the pair before
    the largest contrast (earliest wins on ties).  A drop onto a zero (or
    negative) eigenvalue with no floor counts as infinite.
    """

    walpha: float = 0.0

    name: ClassVar[str] = "significant"

    def __post_init__(self):
        validate_parameter("significant.walpha", self.walpha)

    def strong_count(self, eigenvalues):
        n = len(eigenvalues)
        if n == 1:
            return 1
        floor = self.walpha * sum(eigenvalues) / n
        best, best_contrast = n, -math.inf
        for i in range(n - 1):
            contrast = _contrast(eigenvalues[i], max(eigenvalues[i + 1], floor))
            if contrast > best_contrast:
                best, best_contrast = i + 1, contrast
        return best


def _contrast(upper: float, lower: float) -> float:
    if lower > 0.0:
        return upper / lower
    return math.inf if upper > 0.0 else 1.0


# ═══════════════════════════════════════════════════════════════════
# FILTERS — construction by name
# ═══════════════════════════════════════════════════════════════════

FILTERS: Dict[str, Type[EigenPairFilter]] = {
    cls.name: cls for cls in (
        PercentageEigenPairFilter,
        FirstNEigenPairFilter,
        LimitEigenPairFilter,
        RelativeEigenPairFilter,
        SignificantEigenPairFilter,
    )
}


def build_filter(
    name: str,
    parameters: ParameterRegistry = DEFAULT_PARAMETERS,
) -> EigenPairFilter:
    """Construct the filter *name* with settings read from *parameters*.

    Parameters
    ----------
    name : str
        One of ``percentage``, ``first_n``, ``limit``, ``relative``,
        ``significant``.
    parameters : ParameterRegistry
        Source of the filter's settings (``"<name>.<setting>"`` keys).
        Settings missing from the registry fall back to the filter's
        own defaults.

    Raises
    ------
    ConfigurationError
        If *name* is not a known filter.
    """
    cls = FILTERS.get(name)
    if cls is None:
        raise ConfigurationError(
            f"Unknown eigenpair filter {name!r}. Valid names: {sorted(FILTERS)}")

    accepted = {f.name for f in fields(cls)}
    kwargs: Dict[str, object] = {
        k: v for k, v in parameters.section(name).items() if k in accepted
    }
    if cls is FirstNEigenPairFilter and "n" in kwargs:
        kwargs["n"] = int(kwargs["n"])
    if cls is LimitEigenPairFilter and "absolute" in kwargs:
        kwargs["absolute"] = bool(kwargs["absolute"])
    return cls(**kwargs)
