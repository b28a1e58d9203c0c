"""ParameterRegistry — every policy setting in one place.

Collects the tunable numbers of the filter family and the parametrised
linkage into a typed, immutable registry that can be:

* **inspected** — ``registry["percentage.alpha"]``
* **overridden** — ``registry.replace({"percentage.alpha": 0.9})``
* **diffed** — ``registry.diff(other)``
* **swept** — build one registry per alpha value

Every value is range-checked on construction and on ``replace()``, so a
registry that exists is always a valid configuration.  Parsing settings
out of command lines or files is left to the caller.

Usage
-----
>>> from cluster_policies.parameters import DEFAULT_PARAMETERS
>>> DEFAULT_PARAMETERS["percentage.alpha"]
0.85
>>> strict = DEFAULT_PARAMETERS.replace({"percentage.alpha": 0.95})
>>> strict.diff(DEFAULT_PARAMETERS)
{'percentage.alpha': (0.95, 0.85)}
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Optional, Tuple

from .exceptions import ConfigurationError

__all__ = [
    "ParameterRegistry",
    "DEFAULT_PARAMETERS",
    "DEFAULT_ALPHA",
    "validate_alpha",
    "validate_parameter",
]

DEFAULT_ALPHA: float = 0.85


# ── range conditions ─────────────────────────────────────────────

def _open(lo: float, hi: float) -> Callable[[float], bool]:
    return lambda v: lo < v < hi


def _half_open(lo: float, hi: float) -> Callable[[float], bool]:
    return lambda v: lo <= v < hi


def _at_least(lo: float) -> Callable[[float], bool]:
    return lambda v: v >= lo


def _positive(v: float) -> bool:
    return v > 0


def _integral(lo: int) -> Callable[[float], bool]:
    return lambda v: float(v).is_integer() and v >= lo


def _flag(v: float) -> bool:
    return v in (0.0, 1.0)


# key → (condition, human-readable domain)
_DOMAINS: Dict[str, Tuple[Callable[[float], bool], str]] = {
    "percentage.alpha": (_open(0.0, 1.0), "0 < alpha < 1"),
    "first_n.n": (_integral(1), "an integer >= 1"),
    "limit.delta": (_at_least(0.0), "delta >= 0"),
    "limit.absolute": (_flag, "0 (relative) or 1 (absolute)"),
    "relative.ralpha": (_positive, "ralpha > 0"),
    "significant.walpha": (_half_open(0.0, 1.0), "0 <= walpha < 1"),
    "flexible.beta": (_half_open(-1.0, 1.0), "-1 <= beta < 1"),
}


def validate_parameter(key: str, value: float) -> None:
    """Raise :class:`ConfigurationError` if *value* is outside the domain of *key*.

    Unknown keys pass unchecked.
    """
    domain = _DOMAINS.get(key)
    if domain is None:
        return
    condition, text = domain
    try:
        ok = math.isfinite(value) and condition(value)
    except TypeError:
        ok = False
    if not ok:
        raise ConfigurationError(
            f"Invalid value {value!r} for {key!r}: expected {text}")


def validate_alpha(alpha: float) -> float:
    """Return *alpha* as a float if ``0 < alpha < 1``.

    Raises
    ------
    ConfigurationError
        For 0, 1, anything outside the open interval, NaN or a
        non-numeric value.
    """
    try:
        value = float(alpha)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"alpha must be a number in (0, 1), got {alpha!r}") from None
    validate_parameter("percentage.alpha", value)
    return value


def _check_consistency(data: Mapping[str, float]) -> None:
    """Rules that span more than one key."""
    if not data.get("limit.absolute", 0.0) and data.get("limit.delta", 0.0) > 1.0:
        raise ConfigurationError(
            f"Invalid value {data['limit.delta']!r} for 'limit.delta': "
            f"expected delta <= 1 while 'limit.absolute' is 0 (relative)")


# ═══════════════════════════════════════════════════════════════════
# ParameterRegistry
# ═══════════════════════════════════════════════════════════════════

class ParameterRegistry(Mapping):
    """Immutable, validated mapping of dotted parameter keys → floats.

    Parameters
    ----------
    data : dict[str, float]
        ``{"section.name": value, ...}``.
    name : str, optional
        Human-readable label (e.g. ``"production"``, ``"sweep-07"``).

    Raises
    ------
    ConfigurationError
        If a known key carries a value outside its domain, or two keys
        contradict each other (a relative ``limit.delta`` above 1).

    Notes
    -----
    * Read-only: ``__setitem__`` raises ``TypeError``.
    * ``replace()`` returns a new registry.
    * Keys outside the known set are stored unchecked, so callers can
      carry settings for their own filters.
    * Keys are indexed by section (the text before the first dot), which
      is what :func:`~cluster_policies.filters.build_filter` reads.
    """

    def __init__(self, data: Mapping[str, float], *, name: str = "custom"):
        for key, value in data.items():
            validate_parameter(key, value)
        _check_consistency(data)
        self._data: Mapping[str, float] = MappingProxyType(dict(data))
        self._sections: Dict[str, Dict[str, float]] = {}
        for key, value in self._data.items():
            if "." in key:
                head, setting = key.split(".", 1)
                self._sections.setdefault(head, {})[setting] = value
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    # ── Mapping protocol ────────────────────────────────────────

    def __getitem__(self, key: str) -> float:
        return self._data[key]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __setitem__(self, key: str, value: float):
        raise TypeError(
            f"ParameterRegistry {self._name!r} is immutable; "
            f"use .replace({{{key!r}: ...}}) instead")

    def __repr__(self) -> str:
        return f"ParameterRegistry({self._name!r}, {len(self)} keys)"

    def to_dict(self) -> Dict[str, float]:
        """Return a mutable copy of the data."""
        return dict(self._data)

    # ── derived registries ──────────────────────────────────────

    def replace(
        self,
        overrides: Mapping[str, float],
        *,
        name: Optional[str] = None,
    ) -> "ParameterRegistry":
        """Return a new registry with selected keys overridden.

        The merged settings are validated as a whole, so an override
        that is fine alone but contradicts another key is rejected.

        Raises
        ------
        KeyError
            If any key in *overrides* is not in the registry.
        ConfigurationError
            If the merged settings are invalid.
        """
        unknown = sorted(set(overrides) - set(self._data))
        if unknown:
            raise KeyError(
                f"Unknown parameter key(s) {unknown}. Valid keys: {sorted(self._data)}")
        return ParameterRegistry(
            {**self._data, **overrides}, name=name or f"{self._name}+")

    def diff(
        self, other: Mapping[str, float],
    ) -> Dict[str, Tuple[Optional[float], Optional[float]]]:
        """Return ``{key: (self_value, other_value)}`` for differing keys.

        A key present on one side only is paired with ``None``.
        """
        keys = sorted(set(self) | set(other))
        return {
            k: (self.get(k), other.get(k)) for k in keys
            if self.get(k) != other.get(k)
        }

    # ── sections ────────────────────────────────────────────────

    def section(self, prefix: str) -> Dict[str, float]:
        """Settings of one section, keyed without the prefix.

        >>> DEFAULT_PARAMETERS.section("limit")
        {'delta': 0.01, 'absolute': 0.0}
        """
        return dict(self._sections.get(prefix, {}))

    @property
    def sections(self) -> Tuple[str, ...]:
        """Sorted section names."""
        return tuple(sorted(self._sections))


# ═══════════════════════════════════════════════════════════════════
# DEFAULT_PARAMETERS — the production config
# ═══════════════════════════════════════════════════════════════════

_DEFAULT_DATA: Dict[str, float] = {
    # percentage — strong pairs explain at least alpha of the variance
    "percentage.alpha": DEFAULT_ALPHA,

    # first_n — fixed subspace dimensionality
    "first_n.n": 2.0,

    # limit — eigenvalue floor, relative to λ_max unless absolute
    "limit.delta": 0.01,
    "limit.absolute": 0.0,

    # relative — λ_i against the mean of the remaining tail
    "relative.ralpha": 1.1,

    # significant — noise floor for the largest-drop search
    "significant.walpha": 0.0,

    # flexible — Lance & Williams' flexible strategy
    "flexible.beta": -0.25,
}


DEFAULT_PARAMETERS: ParameterRegistry = ParameterRegistry(
    _DEFAULT_DATA, name="production",
)
"""The production parameter registry."""
