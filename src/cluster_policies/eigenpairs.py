"""Eigenpair containers consumed and produced by the filter family.

* :class:`EigenPair` — one eigenvalue with its eigenvector.
* :class:`SortedEigenPairs` — an immutable spectrum, eigenvalues
  non-increasing.
* :class:`FilteredEigenPairs` — the strong/weak split returned by every
  filter in :mod:`cluster_policies.filters`.

The decomposition itself happens upstream; :meth:`SortedEigenPairs.from_decomposition`
only reorders what ``numpy.linalg.eigh`` (ascending, eigenvectors as
columns) hands back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, Tuple, Union, overload

import numpy as np

from .exceptions import PreconditionViolation

__all__ = [
    "EigenPair",
    "SortedEigenPairs",
    "FilteredEigenPairs",
    "check_descending",
]


# ═══════════════════════════════════════════════════════════════════
# EigenPair
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class EigenPair:
    """An eigenvalue and its eigenvector.

    The vector is copied into a read-only float64 array, so a pair can
    be shared freely between results.  Equality is identity: two pairs
    with equal numbers are still two pairs.
    """

    eigenvalue: float
    eigenvector: np.ndarray = field(repr=False)

    def __post_init__(self):
        vec = np.array(self.eigenvector, dtype=np.float64).ravel()
        vec.setflags(write=False)
        object.__setattr__(self, "eigenvalue", float(self.eigenvalue))
        object.__setattr__(self, "eigenvector", vec)

    @property
    def dimensionality(self) -> int:
        return int(self.eigenvector.shape[0])

    def __repr__(self) -> str:
        return f"EigenPair({self.eigenvalue:.6g}, d={self.dimensionality})"


def check_descending(eigenvalues: Sequence[float]) -> None:
    """Raise :class:`PreconditionViolation` unless *eigenvalues* is non-increasing."""
    for i in range(1, len(eigenvalues)):
        if eigenvalues[i] > eigenvalues[i - 1]:
            raise PreconditionViolation(
                f"Eigenvalues must be sorted descending: "
                f"position {i} ({eigenvalues[i]!r}) exceeds "
                f"position {i - 1} ({eigenvalues[i - 1]!r})"
            )


# ═══════════════════════════════════════════════════════════════════
# SortedEigenPairs
# ═══════════════════════════════════════════════════════════════════

class SortedEigenPairs(Sequence[EigenPair]):
    """Immutable spectrum with non-increasing eigenvalues.

    Parameters
    ----------
    pairs : sequence of EigenPair
        Already in descending order.  Order is verified with one linear
        scan; nothing is re-sorted.

    Raises
    ------
    PreconditionViolation
        If the eigenvalues are not non-increasing.
    """

    def __init__(self, pairs: Sequence[EigenPair] = ()):
        self._pairs: Tuple[EigenPair, ...] = tuple(pairs)
        check_descending([p.eigenvalue for p in self._pairs])

    @classmethod
    def from_decomposition(
        cls, eigenvalues: Sequence[float], eigenvectors: np.ndarray,
    ) -> "SortedEigenPairs":
        """Build a spectrum from decomposition output in any order.

        Parameters
        ----------
        eigenvalues : array-like, shape (k,)
        eigenvectors : array-like, shape (d, k)
            Column ``j`` belongs to ``eigenvalues[j]``.

        Ties keep their input order.
        """
        evals = np.asarray(eigenvalues, dtype=np.float64).ravel()
        evecs = np.asarray(eigenvectors, dtype=np.float64)
        if evecs.ndim != 2 or evecs.shape[1] != evals.shape[0]:
            raise ValueError(
                f"Expected eigenvectors of shape (d, {evals.shape[0]}), "
                f"got {evecs.shape}")
        order = np.argsort(-evals, kind="stable")
        return cls(EigenPair(evals[j], evecs[:, j]) for j in order)

    # ── sequence protocol ───────────────────────────────────────

    def __len__(self) -> int:
        return len(self._pairs)

    @overload
    def __getitem__(self, index: int) -> EigenPair: ...

    @overload
    def __getitem__(self, index: slice) -> "SortedEigenPairs": ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return SortedEigenPairs(self._pairs[index])
        return self._pairs[index]

    def __iter__(self) -> Iterator[EigenPair]:
        return iter(self._pairs)

    def __repr__(self) -> str:
        vals = ", ".join(f"{p.eigenvalue:.4g}" for p in self._pairs)
        return f"SortedEigenPairs([{vals}])"

    # ── views ───────────────────────────────────────────────────

    @property
    def eigenvalues(self) -> np.ndarray:
        """Eigenvalues as a 1-D array, descending."""
        return np.array([p.eigenvalue for p in self._pairs], dtype=np.float64)

    @property
    def eigenvectors(self) -> np.ndarray:
        """Eigenvectors as columns of a ``(d, k)`` matrix."""
        return _as_columns(self._pairs)


def _as_columns(pairs: Sequence[EigenPair]) -> np.ndarray:
    if not pairs:
        return np.zeros((0, 0))
    return np.column_stack([p.eigenvector for p in pairs])


# ═══════════════════════════════════════════════════════════════════
# FilteredEigenPairs — strong/weak split
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FilteredEigenPairs:
    """Result of one filter call.

    ``strong + weak`` is the input spectrum, each pair exactly once,
    relative order preserved inside each half.

    Attributes
    ----------
    strong : tuple[EigenPair, ...]
        Directions treated as signal.
    weak : tuple[EigenPair, ...]
        Directions treated as noise.
    """

    strong: Tuple[EigenPair, ...]
    weak: Tuple[EigenPair, ...]

    def __post_init__(self):
        object.__setattr__(self, "strong", tuple(self.strong))
        object.__setattr__(self, "weak", tuple(self.weak))

    @property
    def n_strong(self) -> int:
        return len(self.strong)

    @property
    def n_weak(self) -> int:
        return len(self.weak)

    @property
    def strong_eigenvalues(self) -> np.ndarray:
        return np.array([p.eigenvalue for p in self.strong], dtype=np.float64)

    @property
    def weak_eigenvalues(self) -> np.ndarray:
        return np.array([p.eigenvalue for p in self.weak], dtype=np.float64)

    @property
    def strong_eigenvectors(self) -> np.ndarray:
        """Strong eigenvectors as columns, shape ``(d, n_strong)``."""
        return self._columns(self.strong)

    @property
    def weak_eigenvectors(self) -> np.ndarray:
        """Weak eigenvectors as columns, shape ``(d, n_weak)``."""
        return self._columns(self.weak)

    @property
    def explained_variance(self) -> float:
        """Share of the eigenvalue sum carried by the strong pairs."""
        total = float(self.strong_eigenvalues.sum() + self.weak_eigenvalues.sum())
        if total == 0.0:
            return 0.0
        return float(self.strong_eigenvalues.sum()) / total

    def _columns(self, pairs: Tuple[EigenPair, ...]) -> np.ndarray:
        if pairs:
            return _as_columns(pairs)
        dim = next((p.dimensionality for p in self.strong + self.weak), 0)
        return np.zeros((dim, 0))

    def summary(self) -> str:
        """One-line summary."""
        return (
            f"FilteredEigenPairs({self.n_strong} strong, {self.n_weak} weak, "
            f"explained={self.explained_variance:.3f})"
        )
