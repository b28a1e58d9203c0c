"""Tests for the ParameterRegistry.

Covers:
1. ParameterRegistry — read, immutability, replace, diff, section
2. Validation — domains of the known keys, validate_alpha
3. DEFAULT_PARAMETERS — structure and coverage
"""

from collections.abc import Mapping

import pytest

from cluster_policies.exceptions import ConfigurationError
from cluster_policies.filters import build_filter
from cluster_policies.parameters import (
    DEFAULT_ALPHA,
    DEFAULT_PARAMETERS,
    ParameterRegistry,
    validate_alpha,
    validate_parameter,
)


# ═══════════════════════════════════════════════════════════════════
# 1. ParameterRegistry core behaviour
# ═══════════════════════════════════════════════════════════════════

class TestParameterRegistryRead:

    def test_getitem(self):
        reg = ParameterRegistry({"a.b": 1.0, "a.c": 2.0})
        assert reg["a.b"] == 1.0
        assert reg["a.c"] == 2.0

    def test_getitem_missing_raises(self):
        reg = ParameterRegistry({"a.b": 1.0})
        with pytest.raises(KeyError):
            _ = reg["z.z"]

    def test_get_with_default(self):
        reg = ParameterRegistry({"a.b": 1.0})
        assert reg.get("a.b") == 1.0
        assert reg.get("z.z") is None
        assert reg.get("z.z", -1.0) == -1.0

    def test_contains_len_iter(self):
        reg = ParameterRegistry({"a.b": 1.0, "x.y": 3.0})
        assert "a.b" in reg
        assert "z.z" not in reg
        assert len(reg) == 2
        assert sorted(reg) == ["a.b", "x.y"]

    def test_is_a_read_only_mapping(self):
        reg = ParameterRegistry({"a.b": 1.0, "a.c": 2.0})
        assert isinstance(reg, Mapping)
        assert dict(reg) == {"a.b": 1.0, "a.c": 2.0}
        assert reg == ParameterRegistry({"a.c": 2.0, "a.b": 1.0}, name="other")
        assert reg.section("a") == {"b": 1.0, "c": 2.0}

    def test_to_dict_returns_copy(self):
        reg = ParameterRegistry({"a.b": 1.0})
        d = reg.to_dict()
        d["a.b"] = 999.0
        assert reg["a.b"] == 1.0

    def test_repr_and_name(self):
        reg = ParameterRegistry({"a.b": 1.0}, name="test")
        assert reg.name == "test"
        assert "test" in repr(reg)
        assert "1 keys" in repr(reg)
        assert ParameterRegistry({}).name == "custom"


class TestParameterRegistryImmutability:

    def test_setitem_raises(self):
        reg = ParameterRegistry({"a.b": 1.0})
        with pytest.raises(TypeError, match="immutable"):
            reg["a.b"] = 2.0

    def test_constructor_does_not_alias(self):
        data = {"a.b": 1.0}
        reg = ParameterRegistry(data)
        data["a.b"] = 999.0
        assert reg["a.b"] == 1.0


class TestParameterRegistryReplace:

    def test_replace_single_key(self):
        reg = DEFAULT_PARAMETERS.replace({"percentage.alpha": 0.9})
        assert reg["percentage.alpha"] == 0.9
        assert reg["relative.ralpha"] == DEFAULT_PARAMETERS["relative.ralpha"]
        assert DEFAULT_PARAMETERS["percentage.alpha"] == 0.85

    def test_replace_unknown_key_raises(self):
        with pytest.raises(KeyError, match="Unknown parameter key"):
            DEFAULT_PARAMETERS.replace({"percentage.beta": 0.5})

    def test_replace_validates(self):
        with pytest.raises(ConfigurationError, match="percentage.alpha"):
            DEFAULT_PARAMETERS.replace({"percentage.alpha": 1.0})

    def test_replace_names(self):
        assert DEFAULT_PARAMETERS.replace({}).name == "production+"
        assert DEFAULT_PARAMETERS.replace({}, name="sweep-1").name == "sweep-1"

    def test_replace_empty_is_equal(self):
        assert DEFAULT_PARAMETERS.replace({}) == DEFAULT_PARAMETERS


class TestParameterRegistryDiff:

    def test_diff_no_change(self):
        assert DEFAULT_PARAMETERS.diff(DEFAULT_PARAMETERS) == {}

    def test_diff_changed_value(self):
        strict = DEFAULT_PARAMETERS.replace({"percentage.alpha": 0.95})
        assert strict.diff(DEFAULT_PARAMETERS) == {"percentage.alpha": (0.95, 0.85)}

    def test_diff_missing_keys(self):
        a = ParameterRegistry({"a.b": 1.0})
        b = ParameterRegistry({"a.c": 2.0})
        assert a.diff(b) == {"a.b": (1.0, None), "a.c": (None, 2.0)}

    def test_eq_other_type(self):
        assert (DEFAULT_PARAMETERS == {"percentage.alpha": 0.85}) is False


class TestParameterRegistrySection:

    def test_section_strips_prefix(self):
        assert DEFAULT_PARAMETERS.section("limit") == {"delta": 0.01, "absolute": 0.0}

    def test_section_unknown(self):
        assert DEFAULT_PARAMETERS.section("nope") == {}

    def test_section_does_not_match_partial_prefix(self):
        reg = ParameterRegistry({"lim.x": 1.0, "limit.y": 2.0})
        assert reg.section("lim") == {"x": 1.0}

    def test_sections(self):
        assert DEFAULT_PARAMETERS.sections == (
            "first_n", "flexible", "limit", "percentage", "relative", "significant",
        )


# ═══════════════════════════════════════════════════════════════════
# 2. Validation
# ═══════════════════════════════════════════════════════════════════

class TestValidation:

    @pytest.mark.parametrize("key, value", [
        ("percentage.alpha", 0.0),
        ("percentage.alpha", 1.0),
        ("first_n.n", 0.0),
        ("first_n.n", 2.5),
        ("limit.delta", -0.01),
        ("limit.absolute", 0.5),
        ("relative.ralpha", 0.0),
        ("significant.walpha", 1.0),
        ("flexible.beta", 1.0),
        ("percentage.alpha", float("nan")),
    ])
    def test_out_of_domain(self, key, value):
        with pytest.raises(ConfigurationError, match="expected"):
            validate_parameter(key, value)

    def test_constructor_validates(self):
        with pytest.raises(ConfigurationError):
            ParameterRegistry({"relative.ralpha": -1.0})

    def test_unknown_keys_unchecked(self):
        validate_parameter("mine.anything", -1e9)
        assert ParameterRegistry({"mine.anything": -1e9})["mine.anything"] == -1e9

    def test_relative_limit_delta_above_one_rejected_on_replace(self):
        with pytest.raises(ConfigurationError, match="limit.delta"):
            DEFAULT_PARAMETERS.replace({"limit.delta": 2.0})

    def test_relative_limit_delta_above_one_rejected_on_construction(self):
        with pytest.raises(ConfigurationError, match="limit.absolute"):
            ParameterRegistry({"limit.delta": 1.5})

    def test_absolute_limit_delta_above_one_accepted(self):
        reg = DEFAULT_PARAMETERS.replace({"limit.delta": 2.0, "limit.absolute": 1.0})
        assert reg["limit.delta"] == 2.0
        assert build_filter("limit", reg).delta == 2.0

    def test_relative_limit_delta_of_one_accepted(self):
        reg = DEFAULT_PARAMETERS.replace({"limit.delta": 1.0})
        assert build_filter("limit", reg).delta == 1.0

    def test_non_numeric_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_parameter("limit.delta", "big")

    @pytest.mark.parametrize("alpha", [1e-9, 0.5, 0.85, 1 - 1e-9])
    def test_validate_alpha_accepts_open_interval(self, alpha):
        assert validate_alpha(alpha) == alpha

    def test_validate_alpha_coerces(self):
        assert validate_alpha("0.25") == 0.25

    @pytest.mark.parametrize("alpha", [0, 1, -0.5, 2, None, "x"])
    def test_validate_alpha_rejects(self, alpha):
        with pytest.raises(ConfigurationError):
            validate_alpha(alpha)


# ═══════════════════════════════════════════════════════════════════
# 3. DEFAULT_PARAMETERS
# ═══════════════════════════════════════════════════════════════════

class TestDefaultParameters:

    def test_name(self):
        assert DEFAULT_PARAMETERS.name == "production"

    def test_default_alpha(self):
        assert DEFAULT_PARAMETERS["percentage.alpha"] == DEFAULT_ALPHA == 0.85

    def test_all_values_are_floats(self):
        for key, value in DEFAULT_PARAMETERS.items():
            assert isinstance(value, float), key

    def test_every_key_is_sectioned(self):
        for key in DEFAULT_PARAMETERS:
            assert "." in key
