# tests/__init__.py

from tests.helpers.factories import females_at, make_population
from tests.helpers.fixed_rng import FixedRNG

__all__ = [
    "make_population",
    "females_at",
    "FixedRNG",
]
