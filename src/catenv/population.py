# src/catenv/population.py
"""Column-oriented population snapshot handed over by the host engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from catenv.typing import Bool1D, Float1D, Int1D

__all__ = ["Population", "Sex"]


class Sex(IntEnum):
    """Sex codes used in `Population.sex`."""

    MALE = 0
    FEMALE = 1


@dataclass(slots=True)
class Population:
    """
    Live agents of one simulation step, one array entry per agent.

    Parameters
    ----------
    ids : Int1D
        Engine-side agent identifiers (non-negative).
    age : Float1D
        Age in years.
    sex : Int1D
        `Sex` codes.
    location : Int1D
        Categorical location id.
    risk_class : Int1D
        Socio-behavioural risk category.
    available : Bool1D, optional
        Engine-side eligibility (adult, not excluded by partnership state,
        ...). Defaults to all True.

    Examples
    --------
    >>> pop = Population(
    ...     ids=np.arange(3),
    ...     age=np.array([17.0, 25.0, 61.0]),
    ...     sex=np.array([1, 1, 0]),
    ...     location=np.array([0, 2, 1]),
    ...     risk_class=np.zeros(3, dtype=np.int64),
    ... )
    >>> len(pop)
    3
    """

    ids: Int1D
    age: Float1D
    sex: Int1D
    location: Int1D
    risk_class: Int1D
    available: Bool1D | None = field(default=None)

    def __post_init__(self) -> None:
        self.ids = np.asarray(self.ids, dtype=np.int64)
        self.age = np.asarray(self.age, dtype=np.float64)
        self.sex = np.asarray(self.sex, dtype=np.int64)
        self.location = np.asarray(self.location, dtype=np.int64)
        self.risk_class = np.asarray(self.risk_class, dtype=np.int64)
        n = self.ids.shape[0] if self.ids.ndim == 1 else -1
        if self.available is None:
            self.available = np.ones(max(n, 0), dtype=np.bool_)
        else:
            self.available = np.asarray(self.available, dtype=np.bool_)

        for name in ("ids", "age", "sex", "location", "risk_class", "available"):
            arr = getattr(self, name)
            if arr.ndim != 1 or arr.shape[0] != n:
                raise ValueError(
                    f"{name!s} must be length-{n} 1-D array (got shape={arr.shape})"
                )
        if n and self.ids.min() < 0:
            raise ValueError("agent ids must be non-negative")

    def __len__(self) -> int:
        return int(self.ids.shape[0])

    def slice(self, start: int, stop: int) -> "Population":
        """Contiguous sub-population (views, no copies)."""
        return Population(
            ids=self.ids[start:stop],
            age=self.age[start:stop],
            sex=self.sex[start:stop],
            location=self.location[start:stop],
            risk_class=self.risk_class[start:stop],
            available=self.available[start:stop],  # type: ignore[index]
        )
