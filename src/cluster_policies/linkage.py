"""Linkage policies — the Lance–Williams family of merge updates.

When an agglomerative driver merges clusters *X* and *Y*, it needs the
distance from the new cluster ``X ∪ Y`` to every remaining cluster *Z*.
All classic linkages can produce it from sizes and the three known
distances alone, via the generalised Lance–Williams recurrence

.. math::

    d(X \\cup Y, Z) = \\alpha_x d(X,Z) + \\alpha_y d(Y,Z)
                     + \\beta d(X,Y) + \\gamma |d(X,Z) - d(Y,Z)|

Each policy below is one coefficient choice.  The fixed classics
override ``combine`` with their closed form (``min`` for single linkage,
the centroid update for UPGMC, …).  The flexible strategy has no
cheaper form and runs the generic :func:`lance_williams` on its
``coefficients``.

::

    policy                   aliases           (αx, αy, β, γ)
    ──────────────────────   ───────────────   ──────────────────────────────
    SingleLinkage            single, min       ½, ½, 0, −½
    CompleteLinkage          complete, max     ½, ½, 0, ½
    GroupAverageLinkage      average, upgma    nx/n, ny/n, 0, 0
    WeightedAverageLinkage   weighted, wpgma   ½, ½, 0, 0
    CentroidLinkage          centroid, upgmc   nx/n, ny/n, −nx·ny/n², 0
    MedianLinkage            median, wpgmc     ½, ½, −¼, 0
    WardLinkage              ward              (nx+nz)/t, (ny+nz)/t, −nz/t, 0
    FlexibleBetaLinkage      flexible          (1−β)/2, (1−β)/2, β, 0

with ``n = nx + ny`` and ``t = nx + ny + nz``.

Preconditions
-------------
Sizes are positive integers, distances finite and non-negative.  Nothing
is checked on the hot path: NaN in, NaN out.  Centroid, median and Ward
are only geometrically meaningful on *squared* Euclidean distances.
Centroid and median linkage can produce reversals (a merge lower than
an earlier one); that is a property of the methods and is left as is.

Usage
-----
>>> from cluster_policies.linkage import get_linkage
>>> upgmc = get_linkage("upgmc")
>>> upgmc.combine(1, 4.0, 1, 2.0, 2, 0.0)
3.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .exceptions import ConfigurationError
from .parameters import DEFAULT_PARAMETERS, ParameterRegistry, validate_parameter

__all__ = [
    "LanceWilliamsCoefficients",
    "lance_williams",
    "Linkage",
    "SingleLinkage",
    "CompleteLinkage",
    "GroupAverageLinkage",
    "WeightedAverageLinkage",
    "CentroidLinkage",
    "MedianLinkage",
    "WardLinkage",
    "FlexibleBetaLinkage",
    "LINKAGES",
    "get_linkage",
    "build_linkage",
    "update_distances",
]


# ═══════════════════════════════════════════════════════════════════
# Generic recurrence
# ═══════════════════════════════════════════════════════════════════

class LanceWilliamsCoefficients(NamedTuple):
    """The four coefficients of one Lance–Williams update."""
    alpha_x: float
    alpha_y: float
    beta: float
    gamma: float


def lance_williams(
    coeffs: LanceWilliamsCoefficients,
    dist_x: float,
    dist_y: float,
    dist_xy: float,
) -> float:
    """Evaluate the generic recurrence for one set of coefficients."""
    return (coeffs.alpha_x * dist_x + coeffs.alpha_y * dist_y
            + coeffs.beta * dist_xy + coeffs.gamma * abs(dist_x - dist_y))


# ═══════════════════════════════════════════════════════════════════
# Linkage — the shared contract
# ═══════════════════════════════════════════════════════════════════

class Linkage(ABC):
    """One merge-update policy.

    Subclasses set ``name``, ``aliases`` and ``monotone`` and implement
    :meth:`coefficients`.  The default :meth:`combine` evaluates the
    generic recurrence; variants with a cheaper closed form override it.
    """

    name: ClassVar[str] = ""
    aliases: ClassVar[Tuple[str, ...]] = ()
    monotone: ClassVar[bool] = True

    @abstractmethod
    def coefficients(
        self, size_x: int, size_y: int, size_z: int = 1,
    ) -> LanceWilliamsCoefficients:
        """Lance–Williams coefficients for merging *X* and *Y* seen from *Z*."""

    def combine(
        self,
        size_x: int,
        dist_x: float,
        size_y: int,
        dist_y: float,
        size_xy: int,
        dist_xy: float,
        *,
        size_z: int = 1,
    ) -> float:
        """Distance from the merged cluster ``X ∪ Y`` to *Z*.

        Parameters
        ----------
        size_x, size_y : int
            Sizes of the two clusters being merged.
        dist_x, dist_y : float
            Distances ``d(X, Z)`` and ``d(Y, Z)``.
        size_xy : int
            Size of the merged cluster, ``size_x + size_y``.
        dist_xy : float
            Distance ``d(X, Y)`` of the merge being performed.
        size_z : int, optional
            Size of *Z*.  Only Ward's method depends on it.

        Returns
        -------
        float
            The updated distance ``d(X ∪ Y, Z)``.
        """
        return lance_williams(
            self.coefficients(size_x, size_y, size_z), dist_x, dist_y, dist_xy)


# ═══════════════════════════════════════════════════════════════════
# Variants
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SingleLinkage(Linkage):
    """Nearest-neighbour linkage: ``min(d(X,Z), d(Y,Z))``."""

    name: ClassVar[str] = "single"
    aliases: ClassVar[Tuple[str, ...]] = ("single", "single-link", "min", "nearest")

    def coefficients(self, size_x, size_y, size_z=1):
        return LanceWilliamsCoefficients(0.5, 0.5, 0.0, -0.5)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        return min(dist_x, dist_y)


@dataclass(frozen=True)
class CompleteLinkage(Linkage):
    """Farthest-neighbour linkage: ``max(d(X,Z), d(Y,Z))``."""

    name: ClassVar[str] = "complete"
    aliases: ClassVar[Tuple[str, ...]] = ("complete", "complete-link", "max", "farthest")

    def coefficients(self, size_x, size_y, size_z=1):
        return LanceWilliamsCoefficients(0.5, 0.5, 0.0, 0.5)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        return max(dist_x, dist_y)


@dataclass(frozen=True)
class GroupAverageLinkage(Linkage):
    """UPGMA (Sokal & Michener 1958): size-weighted mean of the two distances."""

    name: ClassVar[str] = "average"
    aliases: ClassVar[Tuple[str, ...]] = ("average", "upgma", "group-average")

    def coefficients(self, size_x, size_y, size_z=1):
        f = 1. / (size_x + size_y)
        return LanceWilliamsCoefficients(size_x * f, size_y * f, 0.0, 0.0)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        return (size_x * dist_x + size_y * dist_y) / (size_x + size_y)


@dataclass(frozen=True)
class WeightedAverageLinkage(Linkage):
    """WPGMA (McQuitty 1966): plain mean, ignoring cluster sizes."""

    name: ClassVar[str] = "weighted"
    aliases: ClassVar[Tuple[str, ...]] = ("weighted", "wpgma", "mcquitty")

    def coefficients(self, size_x, size_y, size_z=1):
        return LanceWilliamsCoefficients(0.5, 0.5, 0.0, 0.0)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        return 0.5 * (dist_x + dist_y)


@dataclass(frozen=True)
class CentroidLinkage(Linkage):
    """UPGMC: distance between cluster centroids (Jain & Dubes 1988).

    With ``f = 1 / (nx + ny)``::

        d = f * (nx·dx + ny·dy − nx·ny·f·dxy)

    Exact on squared Euclidean input.  Not monotone.
    """

    name: ClassVar[str] = "centroid"
    aliases: ClassVar[Tuple[str, ...]] = ("centroid", "upgmc")
    monotone: ClassVar[bool] = False

    def coefficients(self, size_x, size_y, size_z=1):
        f = 1. / (size_x + size_y)
        return LanceWilliamsCoefficients(
            size_x * f, size_y * f, -(size_x * size_y) * f * f, 0.0)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        f = 1. / (size_x + size_y)
        return (size_x * dist_x + size_y * dist_y - (size_x * size_y) * f * dist_xy) * f


@dataclass(frozen=True)
class MedianLinkage(Linkage):
    """WPGMC (Gower 1967): centroid linkage with both halves weighted equally.

    Not monotone.
    """

    name: ClassVar[str] = "median"
    aliases: ClassVar[Tuple[str, ...]] = ("median", "wpgmc", "gower")
    monotone: ClassVar[bool] = False

    def coefficients(self, size_x, size_y, size_z=1):
        return LanceWilliamsCoefficients(0.5, 0.5, -0.25, 0.0)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        return 0.5 * (dist_x + dist_y) - 0.25 * dist_xy


@dataclass(frozen=True)
class WardLinkage(Linkage):
    """Ward's minimum-variance method (Ward 1963, Wishart 1969).

    The only variant that needs the size of the third cluster; pass it
    as ``size_z``.  Exact on squared Euclidean input.
    """

    name: ClassVar[str] = "ward"
    aliases: ClassVar[Tuple[str, ...]] = ("ward", "minimum-variance")

    def coefficients(self, size_x, size_y, size_z=1):
        f = 1. / (size_x + size_y + size_z)
        return LanceWilliamsCoefficients(
            (size_x + size_z) * f, (size_y + size_z) * f, -size_z * f, 0.0)

    def combine(self, size_x, dist_x, size_y, dist_y, size_xy, dist_xy,
                *, size_z=1):
        f = 1. / (size_x + size_y + size_z)
        return ((size_x + size_z) * dist_x + (size_y + size_z) * dist_y
                - size_z * dist_xy) * f


@dataclass(frozen=True)
class FlexibleBetaLinkage(Linkage):
    """Lance & Williams' flexible strategy with a free ``beta``.

    ``beta = -0.25`` (the default) behaves close to Ward; ``beta = 0``
    is WPGMA.  Uses the inherited :meth:`Linkage.combine`.

    Raises
    ------
    ConfigurationError
        If ``beta`` is outside ``[-1, 1)``.
    """

    beta: float = -0.25

    name: ClassVar[str] = "flexible"
    aliases: ClassVar[Tuple[str, ...]] = ("flexible", "flexible-beta")

    def __post_init__(self):
        validate_parameter("flexible.beta", self.beta)

    def coefficients(self, size_x, size_y, size_z=1):
        a = 0.5 * (1. - self.beta)
        return LanceWilliamsCoefficients(a, a, self.beta, 0.0)


# ═══════════════════════════════════════════════════════════════════
# LINKAGES — alias lookup table
# ═══════════════════════════════════════════════════════════════════

_INSTANCES: Tuple[Linkage, ...] = (
    SingleLinkage(),
    CompleteLinkage(),
    GroupAverageLinkage(),
    WeightedAverageLinkage(),
    CentroidLinkage(),
    MedianLinkage(),
    WardLinkage(),
    FlexibleBetaLinkage(),
)

LINKAGES: Mapping[str, Linkage] = MappingProxyType({
    alias: linkage for linkage in _INSTANCES for alias in linkage.aliases
})
"""Read-only ``{alias: shared instance}`` table of every policy."""


def get_linkage(name: str) -> Linkage:
    """Look up a linkage policy by name or alias (case-insensitive).

    Raises
    ------
    ConfigurationError
        If *name* is not a known alias.
    """
    key = name.strip().lower().replace("_", "-")
    try:
        return LINKAGES[key]
    except KeyError:
        raise ConfigurationError(
            f"Unknown linkage {name!r}. Valid names: {sorted(LINKAGES)}"
        ) from None


def build_linkage(
    name: str,
    parameters: ParameterRegistry = DEFAULT_PARAMETERS,
) -> Linkage:
    """Resolve *name* like :func:`get_linkage`, reading settings from *parameters*.

    Only the flexible strategy is parametrised: it is rebuilt with
    ``parameters["flexible.beta"]`` when the key is present.  Every
    other alias returns its shared instance.

    Raises
    ------
    ConfigurationError
        If *name* is unknown or the registry's ``beta`` is out of range.
    """
    linkage = get_linkage(name)
    if isinstance(linkage, FlexibleBetaLinkage) and "flexible.beta" in parameters:
        return FlexibleBetaLinkage(beta=float(parameters["flexible.beta"]))
    return linkage


# ═══════════════════════════════════════════════════════════════════
# Row update — one merge step against every remaining cluster
# ═══════════════════════════════════════════════════════════════════

def update_distances(
    linkage: Linkage,
    size_x: int,
    dist_x: Sequence[float],
    size_y: int,
    dist_y: Sequence[float],
    dist_xy: float,
    sizes_z: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Apply ``linkage.combine`` across all remaining clusters *Z*.

    Parameters
    ----------
    linkage : Linkage
    size_x, size_y : int
        Sizes of the merging clusters.
    dist_x, dist_y : array-like, shape (m,)
        Distances from *X* and *Y* to each of the *m* other clusters.
    dist_xy : float
        Distance between *X* and *Y*.
    sizes_z : array-like of int, shape (m,), optional
        Sizes of the other clusters (defaults to ones).

    Returns
    -------
    np.ndarray, shape (m,)
        Distances from ``X ∪ Y`` to each *Z*, in input order.
    """
    dx = np.asarray(dist_x, dtype=np.float64)
    dy = np.asarray(dist_y, dtype=np.float64)
    nz = (np.ones(len(dx), dtype=np.int64) if sizes_z is None
          else np.asarray(sizes_z, dtype=np.int64))
    if dx.ndim != 1 or dx.shape != dy.shape or nz.shape != dx.shape:
        raise ValueError(
            f"Row shapes differ: dist_x {dx.shape}, dist_y {dy.shape}, "
            f"sizes_z {nz.shape}")

    size_xy = size_x + size_y
    out = np.empty_like(dx)
    for k in range(len(dx)):
        out[k] = linkage.combine(
            size_x, float(dx[k]), size_y, float(dy[k]), size_xy, dist_xy,
            size_z=int(nz[k]),
        )
    return out
