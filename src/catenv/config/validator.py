"""Centralized configuration validation for catenv."""

from __future__ import annotations

import warnings
from numbers import Integral
from typing import Any

import numpy as np

from catenv.core.mixing import validate_mixing_matrix
from catenv.errors import ConfigurationError


class ConfigValidator:
    """
    Centralized validation for environment configuration.

    All validation happens once at CategoricalEnvironment.init() to ensure:
    - Type correctness
    - Valid parameter ranges
    - Relationship constraints between parameters
    - Clear error messages naming the offending key or matrix row
    """

    VALID_LOG_LEVELS = {"DEEP_DEBUG", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    VALID_FALLBACKS = {"no_match", "retry"}
    VALID_SEXES = {"female", "male"}

    @staticmethod
    def validate_config(cfg: dict[str, Any]) -> None:
        """
        Validate all configuration parameters.

        Parameters
        ----------
        cfg : dict
            Configuration dictionary to validate.

        Raises
        ------
        ConfigurationError
            If any validation check fails.
        """
        # Type checking
        ConfigValidator._validate_types(cfg)

        # Range validation
        ConfigValidator._validate_ranges(cfg)

        # Relationship constraints
        ConfigValidator._validate_relationships(cfg)

        # Logging configuration
        if "logging" in cfg:
            ConfigValidator._validate_logging(cfg["logging"])

    @staticmethod
    def _validate_types(cfg: dict[str, Any]) -> None:
        """
        Ensure correct types for configuration parameters.

        Raises
        ------
        ConfigurationError
            If any parameter has incorrect type.
        """
        int_params = [
            "no_locations",
            "no_age_categories",
            "no_sociobehavioural_categories",
            "max_mate_retries",
            "n_workers",
            "initial_bucket_capacity",
        ]
        float_params = ["min_age", "max_age"]
        str_params = ["eligible_sex", "mate_fallback"]

        for key in int_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, int):
                raise ConfigurationError(
                    f"Config parameter '{key}' must be int, got {type(val).__name__}"
                )

        # accept int or float
        for key in float_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ConfigurationError(
                    f"Config parameter '{key}' must be float, got {type(val).__name__}"
                )

        for key in str_params:
            if key not in cfg:
                continue
            val = cfg[key]
            if not isinstance(val, str):
                raise ConfigurationError(
                    f"Config parameter '{key}' must be str, got {type(val).__name__}"
                )

        # seed: any integer (numpy ints included), numpy Generator or None
        if "seed" in cfg:
            val = cfg["seed"]
            if val is not None and (
                isinstance(val, bool)
                or not isinstance(val, (Integral, np.random.Generator))
            ):
                raise ConfigurationError(
                    "Config parameter 'seed' must be int, Generator or None, "
                    f"got {type(val).__name__}"
                )

        if cfg.get("age_bracket_edges") is not None:
            edges = cfg["age_bracket_edges"]
            if not isinstance(edges, (list, tuple)) or not all(
                isinstance(e, (int, float)) and not isinstance(e, bool)
                for e in edges
            ):
                raise ConfigurationError(
                    "Config parameter 'age_bracket_edges' must be a list of numbers"
                )

    @staticmethod
    def _validate_ranges(cfg: dict[str, Any]) -> None:
        """
        Ensure parameters are in valid ranges.

        Raises
        ------
        ConfigurationError
            If any parameter is out of valid range.
        """
        # (min_val, max_val); None means unbounded
        constraints = {
            "no_locations": (1, None),
            "no_age_categories": (1, None),
            "no_sociobehavioural_categories": (1, None),
            "max_mate_retries": (0, None),
            "n_workers": (1, None),
            "initial_bucket_capacity": (0, None),
            "min_age": (0.0, None),
            "max_age": (0.0, None),
        }

        for key, (min_val, max_val) in constraints.items():
            if key not in cfg:
                continue
            val = cfg[key]
            if val is None:
                continue
            if min_val is not None and val < min_val:
                raise ConfigurationError(
                    f"Config parameter '{key}' must be >= {min_val}, got {val}"
                )
            if max_val is not None and val > max_val:
                raise ConfigurationError(
                    f"Config parameter '{key}' must be <= {max_val}, got {val}"
                )

        if "mate_fallback" in cfg:
            if cfg["mate_fallback"] not in ConfigValidator.VALID_FALLBACKS:
                raise ConfigurationError(
                    f"Invalid mate_fallback '{cfg['mate_fallback']}'. "
                    f"Must be one of {sorted(ConfigValidator.VALID_FALLBACKS)}"
                )

        if "eligible_sex" in cfg:
            if cfg["eligible_sex"].lower() not in ConfigValidator.VALID_SEXES:
                raise ConfigurationError(
                    f"Invalid eligible_sex '{cfg['eligible_sex']}'. "
                    f"Must be one of {sorted(ConfigValidator.VALID_SEXES)}"
                )

    @staticmethod
    def _validate_relationships(cfg: dict[str, Any]) -> None:
        """
        Validate cross-parameter constraints.

        Raises
        ------
        ConfigurationError
            Empty eligibility window, mismatched bracket edges, or a mixing
            matrix that does not fit ``no_locations``.
        """
        min_age = cfg.get("min_age")
        max_age = cfg.get("max_age")
        if min_age is not None and max_age is not None and min_age >= max_age:
            raise ConfigurationError(
                f"min_age ({min_age}) must be < max_age ({max_age})"
            )

        edges = cfg.get("age_bracket_edges")
        if edges is not None:
            ConfigValidator.validate_age_bracket_edges(
                edges,
                cfg.get("no_age_categories", 1),
                min_age,
                max_age,
            )

        if cfg.get("mixing_matrix") is not None:
            mat = ConfigValidator.validate_mixing_matrix(
                cfg["mixing_matrix"], cfg.get("no_locations")
            )
            # Warn about locations that only ever mix with themselves
            isolated = [
                i
                for i in range(mat.shape[0])
                if mat.shape[0] > 1 and mat[i].sum() == mat[i, i]
            ]
            if isolated:
                warnings.warn(
                    f"Locations {isolated} only mix with themselves. "
                    "Partners will never be sought elsewhere for them.",
                    UserWarning,
                    stacklevel=3,
                )

    @staticmethod
    def validate_mixing_matrix(raw: Any, no_locations: int | None = None) -> Any:
        """
        Validate a raw mixing matrix.

        Returns
        -------
        Float2D
            The matrix as a float array.

        Raises
        ------
        ConfigurationError
            Wrong shape, negative or non-finite weights, or an all-zero row.
        """
        return validate_mixing_matrix(raw, no_locations)

    @staticmethod
    def validate_age_bracket_edges(
        edges: Any,
        no_age_categories: int,
        min_age: float | None,
        max_age: float | None,
    ) -> None:
        """
        Validate explicit age-bracket edges.

        Raises
        ------
        ConfigurationError
            Wrong count, not strictly ascending, or not spanning the window.
        """
        edges = list(edges)
        if len(edges) != no_age_categories + 1:
            raise ConfigurationError(
                f"age_bracket_edges needs {no_age_categories + 1} values "
                f"(no_age_categories + 1), got {len(edges)}"
            )
        if any(b <= a for a, b in zip(edges, edges[1:])):
            raise ConfigurationError(
                f"age_bracket_edges must be strictly ascending, got {edges}"
            )
        if min_age is not None and edges[0] != min_age:
            raise ConfigurationError(
                f"age_bracket_edges must start at min_age ({min_age}), got {edges[0]}"
            )
        if max_age is not None and edges[-1] != max_age:
            raise ConfigurationError(
                f"age_bracket_edges must end at max_age ({max_age}), got {edges[-1]}"
            )

    @staticmethod
    def _validate_logging(log_config: dict[str, Any]) -> None:
        """
        Validate logging configuration.

        Parameters
        ----------
        log_config : dict
            Logging configuration dictionary with keys:
            - default_level: str (e.g., 'INFO', 'DEBUG')
            - components: dict[str, str] (per-module overrides)

        Raises
        ------
        ConfigurationError
            If logging configuration is invalid.
        """
        if not isinstance(log_config, dict):
            raise ConfigurationError(
                f"Logging config must be dict, got {type(log_config).__name__}"
            )

        if "default_level" in log_config:
            level = log_config["default_level"]
            if not isinstance(level, str):
                raise ConfigurationError(
                    f"Logging default_level must be str, got {type(level).__name__}"
                )
            if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                raise ConfigurationError(
                    f"Invalid log level '{level}'. "
                    f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                )

        if "components" in log_config:
            components = log_config["components"]
            if not isinstance(components, dict):
                raise ConfigurationError(
                    f"Logging components must be dict, got {type(components).__name__}"
                )

            for name, level in components.items():
                if not isinstance(name, str):
                    raise ConfigurationError(
                        f"Component name must be str, got {type(name).__name__}"
                    )
                if not isinstance(level, str):
                    raise ConfigurationError(
                        f"Log level for component '{name}' must be str, "
                        f"got {type(level).__name__}"
                    )
                if level.upper() not in ConfigValidator.VALID_LOG_LEVELS:
                    raise ConfigurationError(
                        f"Invalid log level '{level}' for component '{name}'. "
                        f"Must be one of {ConfigValidator.VALID_LOG_LEVELS}"
                    )
