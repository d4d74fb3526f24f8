"""
Configuration dataclass for the categorical environment.

Config instances are created by `CategoricalEnvironment.init()` after merging
package defaults, user config and keyword overrides, and after
`ConfigValidator` has accepted the merged mapping.

Design Notes
------------
- Immutable (frozen=True) to prevent accidental modification
- Memory-efficient (slots=True)
- Simple dataclass, no methods - validation happens in ConfigValidator

See Also
--------
ConfigValidator : Centralized validation for configuration parameters
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Config:
    """
    Immutable configuration for a CategoricalEnvironment.

    Parameters
    ----------
    min_age : float
        Lower bound (inclusive) of the mating eligibility window.
    max_age : float
        Upper bound (exclusive) of the mating eligibility window.
    no_locations : int
        Number of locations ``L``.
    no_age_categories : int
        Number of age brackets ``A`` inside the eligibility window.
    no_sociobehavioural_categories : int
        Number of risk-behaviour classes ``S``.
    mixing_matrix : tuple[tuple[float, ...], ...]
        Raw ``L×L`` location mixing weights (rows need not be normalised).
    age_bracket_edges : tuple[float, ...] or None, optional
        ``A+1`` ascending bracket edges spanning ``[min_age, max_age]``.
        If None, brackets have equal width.
    eligible_sex : str, optional
        Which sex is indexed: "female" or "male". Default: "female".
    mate_fallback : str, optional
        What `find_mate` does when the sampled location has no eligible
        agent: "no_match" (give up) or "retry" (draw another location up to
        `max_mate_retries` times). Default: "no_match".
    max_mate_retries : int, optional
        Extra location draws under the "retry" policy. Default: 3.
    n_workers : int, optional
        Threads used to classify the population during a rebuild. Default: 1.
    initial_bucket_capacity : int, optional
        Pre-allocated slots per bucket. Default: 0.

    Examples
    --------
    >>> from catenv.config import Config
    >>> cfg = Config(
    ...     min_age=15.0,
    ...     max_age=40.0,
    ...     no_locations=2,
    ...     no_age_categories=1,
    ...     no_sociobehavioural_categories=1,
    ...     mixing_matrix=((0.9, 0.1), (0.2, 0.8)),
    ... )
    >>> cfg.mate_fallback
    'no_match'
    """

    # Eligibility window
    min_age: float
    max_age: float

    # Index dimensions
    no_locations: int
    no_age_categories: int
    no_sociobehavioural_categories: int

    # Location mixing
    mixing_matrix: tuple[tuple[float, ...], ...]

    # Optional parameters
    age_bracket_edges: tuple[float, ...] | None = None
    eligible_sex: str = "female"
    mate_fallback: str = "no_match"
    max_mate_retries: int = 3
    n_workers: int = 1
    initial_bucket_capacity: int = 0
