# src/catenv/core/bucket.py
"""AgentBucket: the storage unit behind one compound category."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator

from catenv.errors import PreconditionError
from catenv.typing import Int1D


@dataclass(slots=True)
class AgentBucket:
    """
    Append/clear container of agent ids for exactly one compound category.

    Ids live in a pre-allocated ``int64`` array; only the first `size`
    entries are live. `clear` resets `size` and keeps the backing array, so a
    bucket that is refilled every step stops allocating once it has seen its
    peak occupancy.

    Notes
    -----
    - **Append-Only Write Pattern:** agents are appended in constant time.
    - **Dynamic Resize:** capacity doubles when full (amortised O(1)).
    - Order of ids inside a bucket carries no meaning.
    """

    ids: Int1D = field(default_factory=lambda: np.empty(0, np.int64))
    size: int = 0
    capacity: int = 0

    @classmethod
    def with_capacity(cls, capacity: int) -> "AgentBucket":
        """Return an empty bucket whose backing array holds *capacity* ids."""
        capacity = max(int(capacity), 0)
        return cls(ids=np.empty(capacity, np.int64), size=0, capacity=capacity)

    def __len__(self) -> int:
        return self.size

    @property
    def agents(self) -> Int1D:
        """View of the live ids (no copy)."""
        return self.ids[: self.size]

    def _ensure_capacity(self, extra: int) -> None:
        needed = self.size + extra
        if needed <= self.capacity:
            return
        new_cap = max(self.capacity * 2, needed, 8)
        self.ids = np.resize(self.ids, new_cap)
        self.capacity = new_cap

    def add_agent(self, agent_id: int) -> None:
        """Append a single agent id."""
        self._ensure_capacity(1)
        self.ids[self.size] = agent_id
        self.size += 1

    def add_agents(self, agent_ids: Int1D) -> None:
        """Append a batch of agent ids."""
        n_new = agent_ids.size
        if n_new == 0:
            return
        self._ensure_capacity(n_new)
        self.ids[self.size : self.size + n_new] = agent_ids
        self.size += n_new

    def clear(self) -> None:
        """Drop all entries; the backing storage is kept."""
        self.size = 0

    def get_random_agent(self, rng: Generator) -> int:
        """
        Return a uniformly random id from the live entries.

        Raises
        ------
        PreconditionError
            If the bucket is empty. Callers check occupancy first.
        """
        if self.size == 0:
            raise PreconditionError("get_random_agent() called on an empty bucket")
        return int(self.ids[int(rng.integers(0, self.size))])
