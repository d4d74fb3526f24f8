"""Tests for configuration validation."""

import tempfile
import warnings
from pathlib import Path

import numpy as np
import pytest

from catenv import CategoricalEnvironment
from catenv.config import ConfigValidator
from catenv.errors import ConfigurationError


class TestTypeValidation:
    def test_integer_params_accept_int(self):
        ConfigValidator._validate_types({"no_locations": 4, "n_workers": 2})

    def test_integer_params_reject_float(self):
        with pytest.raises(ConfigurationError, match="must be int"):
            ConfigValidator._validate_types({"no_locations": 4.0})

    def test_integer_params_reject_bool(self):
        with pytest.raises(ConfigurationError, match="must be int"):
            ConfigValidator._validate_types({"n_workers": True})

    def test_float_params_accept_int(self):
        ConfigValidator._validate_types({"min_age": 15, "max_age": 40.5})

    def test_float_params_reject_string(self):
        with pytest.raises(ConfigurationError, match="must be float"):
            ConfigValidator._validate_types({"min_age": "15"})

    def test_string_params(self):
        with pytest.raises(ConfigurationError, match="must be str"):
            ConfigValidator._validate_types({"mate_fallback": 1})

    def test_seed_accepts_generator(self):
        ConfigValidator._validate_types({"seed": np.random.default_rng(0)})

    def test_seed_accepts_numpy_integer(self):
        ConfigValidator._validate_types({"seed": np.int64(3)})

    def test_seed_rejects_bool(self):
        with pytest.raises(ConfigurationError, match="seed"):
            ConfigValidator._validate_types({"seed": True})

    def test_seed_rejects_string(self):
        with pytest.raises(ConfigurationError, match="seed"):
            ConfigValidator._validate_types({"seed": "42"})

    def test_edges_must_be_numbers(self):
        with pytest.raises(ConfigurationError, match="age_bracket_edges"):
            ConfigValidator._validate_types({"age_bracket_edges": ["a", "b"]})


class TestRangeValidation:
    @pytest.mark.parametrize(
        "key", ["no_locations", "no_age_categories", "no_sociobehavioural_categories"]
    )
    def test_dimensions_positive(self, key):
        with pytest.raises(ConfigurationError, match=f"'{key}' must be >= 1"):
            ConfigValidator._validate_ranges({key: 0})

    def test_negative_age(self):
        with pytest.raises(ConfigurationError, match="min_age"):
            ConfigValidator._validate_ranges({"min_age": -1.0})

    def test_unknown_fallback(self):
        with pytest.raises(ConfigurationError, match="mate_fallback"):
            ConfigValidator._validate_ranges({"mate_fallback": "widen"})

    def test_unknown_sex(self):
        with pytest.raises(ConfigurationError, match="eligible_sex"):
            ConfigValidator._validate_ranges({"eligible_sex": "any"})

    def test_sex_case_insensitive(self):
        ConfigValidator._validate_ranges({"eligible_sex": "Female"})


class TestRelationshipValidation:
    def test_window_order(self):
        with pytest.raises(ConfigurationError, match="must be < max_age"):
            ConfigValidator._validate_relationships({"min_age": 40, "max_age": 40})

    def test_mixing_matrix_size(self):
        with pytest.raises(ConfigurationError, match="2x2"):
            ConfigValidator._validate_relationships(
                {"no_locations": 2, "mixing_matrix": [[1, 0, 0], [0, 1, 0], [0, 0, 1]]}
            )

    def test_mixing_matrix_zero_row_names_row(self):
        with pytest.raises(ConfigurationError, match="row 2"):
            ConfigValidator._validate_relationships(
                {"no_locations": 3, "mixing_matrix": [[1, 1, 0], [0, 1, 1], [0, 0, 0]]}
            )

    def test_self_only_location_warns(self):
        with pytest.warns(UserWarning, match=r"Locations \[1\]"):
            ConfigValidator._validate_relationships(
                {"no_locations": 2, "mixing_matrix": [[1, 1], [0, 3]]}
            )

    def test_no_warning_for_single_location(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            ConfigValidator._validate_relationships(
                {"no_locations": 1, "mixing_matrix": [[1.0]]}
            )

    def test_edges_count(self):
        with pytest.raises(ConfigurationError, match="needs 3 values"):
            ConfigValidator.validate_age_bracket_edges([15, 40], 2, 15, 40)

    def test_edges_ascending(self):
        with pytest.raises(ConfigurationError, match="strictly ascending"):
            ConfigValidator.validate_age_bracket_edges([15, 30, 30, 40], 3, 15, 40)

    def test_edges_span_window(self):
        with pytest.raises(ConfigurationError, match="start at min_age"):
            ConfigValidator.validate_age_bracket_edges([16, 30, 40], 2, 15, 40)
        with pytest.raises(ConfigurationError, match="end at max_age"):
            ConfigValidator.validate_age_bracket_edges([15, 30, 39], 2, 15, 40)


class TestLoggingValidation:
    def test_valid(self):
        ConfigValidator._validate_logging(
            {"default_level": "debug", "components": {"mixing": "DEEP_DEBUG"}}
        )

    def test_invalid_default_level(self):
        with pytest.raises(ConfigurationError, match="Invalid log level"):
            ConfigValidator._validate_logging({"default_level": "LOUD"})

    def test_components_must_be_dict(self):
        with pytest.raises(ConfigurationError, match="components must be dict"):
            ConfigValidator._validate_logging({"components": ["mixing"]})

    def test_component_level_checked(self):
        with pytest.raises(ConfigurationError, match="component 'index'"):
            ConfigValidator._validate_logging({"components": {"index": "LOUD"}})


class TestInit:
    def test_defaults(self):
        env = CategoricalEnvironment.init(seed=0)

        assert env.config.no_locations == 3
        assert env.min_age == 15.0
        assert env.max_age == 40.0
        # null mixing matrix means uniform mixing
        np.testing.assert_allclose(env.mixing.probabilities, np.full((3, 3), 1 / 3))

    def test_kwargs_override(self):
        env = CategoricalEnvironment.init(
            no_locations=2, mixing_matrix=[[3, 1], [1, 3]], mate_fallback="retry"
        )
        assert env.config.mixing_matrix == ((3.0, 1.0), (1.0, 3.0))
        assert env.config.mate_fallback == "retry"

    def test_yaml_file_then_kwargs(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "env.yml"
            path.write_text(
                "no_locations: 2\n"
                "mixing_matrix: [[1, 0], [0.5, 0.5]]\n"
                "min_age: 18\n"
                "max_age: 50\n"
            )
            env = CategoricalEnvironment.init(path, max_age=45)

        assert env.config.no_locations == 2
        assert env.min_age == 18.0
        assert env.max_age == 45.0

    def test_yaml_root_must_be_mapping(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.yml"
            path.write_text("- 1\n- 2\n")
            with pytest.raises(TypeError, match="mapping"):
                CategoricalEnvironment.init(path)

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown config parameters"):
            CategoricalEnvironment.init(n_firms=3)

    def test_invalid_value_rejected(self):
        with pytest.raises(ConfigurationError):
            CategoricalEnvironment.init(
                no_locations=2, mixing_matrix=[[1, -1], [0, 1]]
            )

    def test_generator_seed_used_verbatim(self):
        rng = np.random.default_rng(1)
        env = CategoricalEnvironment.init(seed=rng)
        assert env.rng is rng

    def test_numpy_integer_seed_matches_plain_int(self):
        a = CategoricalEnvironment.init(seed=np.int64(3))
        b = CategoricalEnvironment.init(seed=3)
        assert a.rng.random() == b.rng.random()

    def test_edges_converted_to_tuple(self):
        env = CategoricalEnvironment.init(
            no_age_categories=2, age_bracket_edges=[15, 25, 40]
        )
        assert env.config.age_bracket_edges == (15.0, 25.0, 40.0)
