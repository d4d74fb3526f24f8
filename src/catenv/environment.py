# src/catenv/environment.py
"""
CategoricalEnvironment – per-step index of eligible partners.

Each simulation step runs two strictly ordered phases:

1. **Rebuild** – `update(population)` clears the index, filters the eligible
   agents, classifies them into (location, age_bracket, risk_class) and
   inserts them.
2. **Query** – any number of `find_mate` / `get_random_agent_from_index` /
   `get_num_agents_at_index` calls against the now-stable index.

Partner search combines both models:

    target = MixingModel.sample_target_location(own_location, u)
    ref    = CategoricalIndex.get_random_agent_from_index(target, age, sb)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from importlib import resources
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import yaml
from numpy.random import Generator, default_rng

from catenv import logging as cat_logging
from catenv.config import Config, ConfigValidator
from catenv.core.agent import AgentRef
from catenv.core.environment import Environment
from catenv.core.index import CategoricalIndex
from catenv.core.indexer import CompoundIndexer
from catenv.core.mixing import MixingModel
from catenv.errors import ConfigurationError
from catenv.logging import getLogger
from catenv.population import Population, Sex
from catenv.typing import Float1D, Float2D, Int1D, Int3D

__all__ = ["CategoricalEnvironment"]

log = getLogger(__name__)


# helpers
# ---------------------------------------------------------------------------
def _read_yaml(obj: str | Path | Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a plain dict – {} if *obj* is None."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    p = Path(obj)
    with p.open("rt", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"config root must be mapping, got {type(data)!r}")
    return dict(data)


def _package_defaults() -> dict[str, Any]:
    """Load catenv/defaults.yml"""
    txt = resources.files("catenv").joinpath("defaults.yml").read_text()
    return yaml.safe_load(txt) or {}


# CategoricalEnvironment
# ---------------------------------------------------------------------------
class CategoricalEnvironment(Environment):
    """
    Facade over a `CategoricalIndex` and a `MixingModel`.

    Parameters
    ----------
    config : Config
        Validated configuration.
    rng : Generator, optional
        Source of randomness for location draws and bucket picks.
        Defaults to an unseeded `numpy.random.default_rng()`.

    Examples
    --------
    >>> import catenv
    >>> env = catenv.CategoricalEnvironment.init(
    ...     no_locations=2, mixing_matrix=[[0.9, 0.1], [0.5, 0.5]], seed=1
    ... )
    >>> env.update(population)          # once per step
    >>> mate = env.find_mate(location=0, age_bracket=0, risk_class=0)
    >>> if mate is not None:
    ...     partner_id = env.resolve(mate)
    """

    def __init__(self, config: Config, *, rng: Generator | None = None) -> None:
        self.config = config
        self.rng: Generator = rng if rng is not None else default_rng()

        self._min_age = float(config.min_age)
        self._max_age = float(config.max_age)
        self._check_window(self._min_age, self._max_age)

        self.indexer = CompoundIndexer(
            no_locations=config.no_locations,
            no_age_categories=config.no_age_categories,
            no_sociobehavioural_categories=config.no_sociobehavioural_categories,
        )
        self.index = CategoricalIndex(
            self.indexer, initial_bucket_capacity=config.initial_bucket_capacity
        )
        self.mixing = MixingModel(config.mixing_matrix)
        if self.mixing.no_locations != config.no_locations:
            raise ConfigurationError(
                f"mixing matrix has {self.mixing.no_locations} locations, "
                f"expected no_locations={config.no_locations}"
            )

        self._edges: Float1D | None = None
        if config.age_bracket_edges is not None:
            ConfigValidator.validate_age_bracket_edges(
                config.age_bracket_edges,
                config.no_age_categories,
                self._min_age,
                self._max_age,
            )
            self._edges = np.asarray(config.age_bracket_edges, dtype=np.float64)

        sex = config.eligible_sex.lower()
        if sex not in ConfigValidator.VALID_SEXES:
            raise ConfigurationError(f"Invalid eligible_sex '{config.eligible_sex}'")
        self._eligible_sex = Sex.FEMALE if sex == "female" else Sex.MALE

        if config.mate_fallback not in ConfigValidator.VALID_FALLBACKS:
            raise ConfigurationError(f"Invalid mate_fallback '{config.mate_fallback}'")

    # Constructor
    # ---------------------------------------------------------------------
    @classmethod
    def init(
        cls,
        config: str | Path | Mapping[str, Any] | None = None,
        **overrides: Any,  # anything here wins last
    ) -> "CategoricalEnvironment":
        """
        Build a CategoricalEnvironment.

        Order of precedence (later overrides earlier):

            1. package defaults  (catenv/defaults.yml)
            2. *config*  (Path / str / Mapping / None)
            3. explicit keyword arguments (**overrides)
        """
        cfg_dict: dict[str, Any] = _package_defaults()
        cfg_dict.update(_read_yaml(config))
        cfg_dict.update(overrides)

        ConfigValidator.validate_config(cfg_dict)

        log_config = cfg_dict.pop("logging", None)
        if log_config:
            cat_logging.configure(log_config)

        # Random-seed handling
        seed_val = cfg_dict.pop("seed", None)
        rng: Generator = (
            seed_val if isinstance(seed_val, Generator) else default_rng(seed_val)
        )

        unknown = set(cfg_dict) - set(Config.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown config parameters: {sorted(unknown)}")

        n_loc = int(cfg_dict["no_locations"])
        if cfg_dict.get("mixing_matrix") is None:
            cfg_dict["mixing_matrix"] = np.ones((n_loc, n_loc)).tolist()
        cfg_dict["mixing_matrix"] = tuple(
            tuple(float(w) for w in row) for row in cfg_dict["mixing_matrix"]
        )
        if cfg_dict.get("age_bracket_edges") is not None:
            cfg_dict["age_bracket_edges"] = tuple(
                float(e) for e in cfg_dict["age_bracket_edges"]
            )
        cfg_dict["min_age"] = float(cfg_dict["min_age"])
        cfg_dict["max_age"] = float(cfg_dict["max_age"])

        return cls(Config(**cfg_dict), rng=rng)

    # Eligibility window
    # ---------------------------------------------------------------------
    @staticmethod
    def _check_window(min_age: float, max_age: float) -> None:
        if not min_age < max_age:
            raise ConfigurationError(
                f"min_age ({min_age}) must be < max_age ({max_age})"
            )

    @property
    def min_age(self) -> float:
        return self._min_age

    @property
    def max_age(self) -> float:
        return self._max_age

    def set_min_age(self, min_age: float) -> None:
        """Move the lower window bound; takes effect at the next `update`."""
        self._check_window(float(min_age), self._max_age)
        if self._edges is not None:
            raise ConfigurationError(
                "cannot move the eligibility window with explicit age_bracket_edges"
            )
        self._min_age = float(min_age)

    def set_max_age(self, max_age: float) -> None:
        """Move the upper window bound; takes effect at the next `update`."""
        self._check_window(self._min_age, float(max_age))
        if self._edges is not None:
            raise ConfigurationError(
                "cannot move the eligibility window with explicit age_bracket_edges"
            )
        self._max_age = float(max_age)

    # Rebuild phase
    # ---------------------------------------------------------------------
    def eligible_mask(self, population: Population) -> np.ndarray:
        """Boolean mask of agents that belong in the index."""
        return (
            population.available  # type: ignore[operator]
            & (population.sex == self._eligible_sex)
            & (population.age >= self._min_age)
            & (population.age < self._max_age)
        )

    def age_brackets(self, age: Float1D) -> Int1D:
        """
        Bracket of each age; ages are assumed to lie in the window.

        With explicit edges, bracket ``k`` covers ``[edges[k], edges[k+1])``.
        Otherwise the window is split into equal-width brackets.
        """
        n_age = self.config.no_age_categories
        if n_age == 1:
            return np.zeros(age.shape, dtype=np.int64)
        if self._edges is not None:
            brackets = np.searchsorted(self._edges, age, side="right") - 1
        else:
            width = (self._max_age - self._min_age) / n_age
            brackets = np.floor((age - self._min_age) / width)
        return np.clip(brackets, 0, n_age - 1).astype(np.int64)

    def _classify(
        self, population: Population
    ) -> tuple[Int1D, Int1D, Int1D, Int1D]:
        mask = self.eligible_mask(population)
        return (
            population.ids[mask],
            population.location[mask],
            self.age_brackets(population.age[mask]),
            population.risk_class[mask],
        )

    def _classify_parallel(
        self, population: Population
    ) -> tuple[Int1D, Int1D, Int1D, Int1D]:
        n_workers = self.config.n_workers
        n = len(population)
        bounds = np.linspace(0, n, n_workers + 1, dtype=np.int64)
        chunks = [
            population.slice(int(lo), int(hi)) for lo, hi in zip(bounds, bounds[1:])
        ]
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            parts = list(pool.map(self._classify, chunks))
        # per-chunk results merged in chunk order
        return tuple(  # type: ignore[return-value]
            np.concatenate([part[k] for part in parts]) for k in range(4)
        )

    def update(self, population: Population) -> None:
        """
        Rebuild the index from *population*.

        Agents outside the eligibility window, of the other sex or marked
        unavailable are never inserted. Calling `update` twice with the same
        snapshot yields the same occupancy.

        Raises
        ------
        CategoryKeyError
            An eligible agent has a location or risk class outside the
            configured range. The index is left unqueryable.
        """
        if self.config.n_workers > 1 and len(population) >= 2 * self.config.n_workers:
            ids, loc, age, sb = self._classify_parallel(population)
        else:
            ids, loc, age, sb = self._classify(population)

        with self.index.rebuild():
            self.index.add_agents_to_index(ids, loc, age, sb)

        log.debug(
            "Rebuild %d: %d of %d agents eligible",
            self.index.epoch,
            ids.size,
            len(population),
        )

    # Query phase
    # ---------------------------------------------------------------------
    def get_num_agents_at_index(
        self, location: int, age_bracket: int, risk_class: int
    ) -> int:
        return self.index.get_num_agents_at_index(location, age_bracket, risk_class)

    def get_random_agent_from_index(
        self, location: int, age_bracket: int, risk_class: int
    ) -> AgentRef | None:
        """Uniformly random agent of a category, ``None`` if it is empty."""
        return self.index.get_random_agent_from_index(
            location, age_bracket, risk_class, self.rng
        )

    def sample_target_location(self, source: int, draw: float | None = None) -> int:
        """
        Location where an agent at *source* looks for a partner.

        *draw* defaults to a fresh uniform number from the environment's rng.
        """
        if draw is None:
            draw = float(self.rng.random())
        return self.mixing.sample_target_location(source, draw)

    def find_mate(
        self, location: int, age_bracket: int, risk_class: int
    ) -> AgentRef | None:
        """
        Random eligible partner for an agent living at *location*.

        Draws a target location from the mixing model, then picks uniformly
        in the (target, age_bracket, risk_class) bucket. If that bucket is
        empty, the configured fallback decides:

        - ``"no_match"``: return None.
        - ``"retry"``: draw a new target location, at most
          ``max_mate_retries`` more times, then return None.

        A successful match is counted in the mate-location frequencies.
        """
        attempts = 1
        if self.config.mate_fallback == "retry":
            attempts += self.config.max_mate_retries

        for attempt in range(attempts):
            target = self.sample_target_location(location)
            ref = self.get_random_agent_from_index(target, age_bracket, risk_class)
            if ref is not None:
                self.mixing.record_observed_pair(location, target)
                log.deep(
                    "mate %d found at location %d for source %d (attempt %d)",
                    ref.id,
                    target,
                    location,
                    attempt + 1,
                )
                return ref
        log.deep(
            "no mate for source %d in (age=%d, sb=%d) after %d attempt(s)",
            location,
            age_bracket,
            risk_class,
            attempts,
        )
        return None

    def is_valid(self, ref: AgentRef) -> bool:
        return self.index.is_valid(ref)

    def resolve(self, ref: AgentRef) -> int:
        """Engine id behind a reference from the current step."""
        return self.index.resolve(ref)

    # Mixing model passthroughs
    # ---------------------------------------------------------------------
    def set_mixing_matrix(self, raw_weights: Any) -> None:
        self.mixing.set_mixing_matrix(raw_weights)

    def mate_location_distribution(self, location: int) -> Float1D:
        return self.mixing.mate_location_distribution(location)

    def record_observed_pair(self, source: int, target: int) -> None:
        self.mixing.record_observed_pair(source, target)

    def normalize_mate_location_frequencies(self) -> Float2D:
        return self.mixing.normalize_frequencies()

    # Diagnostics
    # ---------------------------------------------------------------------
    def occupancy(self) -> Int3D:
        return self.index.occupancy()

    def describe_population(self) -> str:
        """
        Eligible agents per location, age bracket and risk class.

        The table is logged at INFO and returned.
        """
        occ = self.index.occupancy()
        n_loc, n_age, n_sb = occ.shape
        lines = [
            f"Eligible population in [{self._min_age:g}, {self._max_age:g}) "
            f"at epoch {self.index.epoch}:"
        ]
        for loc in range(n_loc):
            cells = "  ".join(
                f"a{age}/s{sb}={occ[loc, age, sb]}"
                for sb in range(n_sb)
                for age in range(n_age)
            )
            lines.append(f"  location {loc:>3d}: {cells}  (total {occ[loc].sum()})")
        lines.append(f"  total: {occ.sum()}")
        text = "\n".join(lines)
        log.info("%s", text)
        return text

    def print_mate_location_frequencies(self) -> str:
        """
        Log the observed mate-location counts and proportions, then reset them.
        """
        counts = self.mixing.describe_frequencies()
        props = self.mixing.normalize_frequencies()
        rows = [
            f"{i:>7d}" + "".join(f"{p:>8.3f}" for p in row)
            for i, row in enumerate(props)
        ]
        text = (
            "Mate location counts:\n"
            + counts
            + "\nMate location proportions (row-normalised):\n"
            + "\n".join(rows)
        )
        log.info("%s", text)
        return text

    def __repr__(self) -> str:
        return (
            f"CategoricalEnvironment(shape={self.indexer.shape}, "
            f"window=[{self._min_age:g}, {self._max_age:g}), "
            f"epoch={self.index.epoch})"
        )
