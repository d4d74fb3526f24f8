"""
catenv - Categorical Mate-Selection Environment
===============================================

catenv indexes the eligible part of an agent-based epidemic population by
(location, age bracket, risk class) once per simulation step and serves
random partner lookups that first pick *where* to search through a
location mixing matrix.

Quick Start
-----------
>>> import numpy as np
>>> import catenv
>>> env = catenv.CategoricalEnvironment.init(
...     no_locations=3,
...     mixing_matrix=[[0.2, 0.3, 0.5], [0.0, 1.0, 0.0], [0.1, 0.1, 0.8]],
...     seed=42,
... )
>>> pop = catenv.Population(
...     ids=np.arange(4),
...     age=np.array([22.0, 31.0, 45.0, 19.0]),
...     sex=np.array([1, 1, 1, 0]),
...     location=np.array([0, 2, 2, 1]),
...     risk_class=np.zeros(4, dtype=np.int64),
... )
>>> env.update(pop)
>>> env.get_num_agents_at_index(2, 0, 0)
1
>>> mate = env.find_mate(location=1, age_bracket=0, risk_class=0)

Key Concepts
------------
**Rebuild / query phases**
  `update()` rebuilds the whole index every step; queries in between see a
  stable snapshot. References handed out carry the rebuild epoch and go
  stale at the next `update()`.

**Compound category**
  One bucket per (location, age_bracket, risk_class), addressed through a
  dense linear id.

**Mixing model**
  Row-cumulative location distributions; a uniform draw maps to a target
  location by inverse-CDF lookup.

**Deterministic RNG**
  A fixed seed gives reproducible partner choices.
"""

from catenv import logging
from catenv.config import Config, ConfigValidator
from catenv.core import (
    AgentBucket,
    AgentRef,
    CategoricalIndex,
    CompoundIndexer,
    Environment,
    MixingModel,
)
from catenv.environment import CategoricalEnvironment
from catenv.errors import CategoryKeyError, ConfigurationError, PreconditionError
from catenv.population import Population, Sex

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "logging",
    "Config",
    "ConfigValidator",
    "AgentRef",
    "AgentBucket",
    "CompoundIndexer",
    "CategoricalIndex",
    "MixingModel",
    "Environment",
    "CategoricalEnvironment",
    "Population",
    "Sex",
    "ConfigurationError",
    "PreconditionError",
    "CategoryKeyError",
]
