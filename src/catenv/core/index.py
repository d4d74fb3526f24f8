# src/catenv/core/index.py
"""
CategoricalIndex – flat array of AgentBuckets keyed by compound category.

The index is rebuilt from scratch every simulation step:

    with index.rebuild():
        index.add_agents_to_index(ids, loc, age, sb)

Entering the context clears every bucket; leaving it bumps the epoch and
opens the index for queries. Queries issued before the first completed
rebuild, or while a rebuild is in flight, are precondition violations.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import numpy as np
from numpy.random import Generator

from catenv.core.agent import AgentRef
from catenv.core.bucket import AgentBucket
from catenv.core.indexer import CompoundIndexer
from catenv.errors import PreconditionError
from catenv.logging import getLogger
from catenv.typing import Int1D, Int3D

__all__ = ["CategoricalIndex"]

log = getLogger(__name__)


class CategoricalIndex:
    """
    Category-scoped storage of agent ids with O(1) occupancy and random pick.

    The index does not classify agents; it stores each id under the
    (location, age_bracket, risk_class) it is given.

    Parameters
    ----------
    indexer : CompoundIndexer
        Dimension sizes and id mapping.
    initial_bucket_capacity : int, default 0
        Pre-allocated slots per bucket.

    Attributes
    ----------
    epoch : int
        Number of completed rebuilds. Stamped on every `AgentRef` handed out.
        Never decreases, so a ref from an earlier step stays stale for good.
    """

    __slots__ = ("indexer", "buckets", "epoch", "_rebuilding", "_built")

    def __init__(
        self, indexer: CompoundIndexer, *, initial_bucket_capacity: int = 0
    ) -> None:
        self.indexer = indexer
        self.buckets = [
            AgentBucket.with_capacity(initial_bucket_capacity)
            for _ in range(indexer.size)
        ]
        self.epoch = 0
        self._rebuilding = False
        self._built = False

    def __repr__(self) -> str:
        return (
            f"CategoricalIndex(shape={self.indexer.shape}, "
            f"total={self.total}, epoch={self.epoch})"
        )

    # ------------------------------------------------------------------ #
    #   Lifecycle                                                         #
    # ------------------------------------------------------------------ #
    @property
    def is_built(self) -> bool:
        """True once a rebuild has completed and none is in flight."""
        return self._built and not self._rebuilding

    def clear(self) -> None:
        """Empty every bucket without releasing its storage. Idempotent."""
        for bucket in self.buckets:
            bucket.clear()

    def begin_rebuild(self) -> None:
        """Clear all buckets and accept insertions."""
        if self._rebuilding:
            raise PreconditionError("rebuild already in progress")
        self.clear()
        self._built = False
        self._rebuilding = True

    def end_rebuild(self) -> None:
        """Close the insertion window, advance the epoch and open queries."""
        if not self._rebuilding:
            raise PreconditionError("end_rebuild() without begin_rebuild()")
        self._rebuilding = False
        self._built = True
        self.epoch += 1
        log.debug("Index epoch %d built with %d agents", self.epoch, self.total)

    @contextmanager
    def rebuild(self) -> Iterator["CategoricalIndex"]:
        """
        Context manager wrapping `begin_rebuild` / `end_rebuild`.

        If the body raises, the index is left empty and unqueryable until the
        next successful rebuild.
        """
        self.begin_rebuild()
        try:
            yield self
        except BaseException:
            self.clear()
            self._rebuilding = False
            raise
        self.end_rebuild()

    # ------------------------------------------------------------------ #
    #   Insertion                                                         #
    # ------------------------------------------------------------------ #
    def _require_rebuilding(self) -> None:
        if not self._rebuilding:
            raise PreconditionError(
                "agents can only be added inside a rebuild (see rebuild())"
            )

    def add_agent_to_index(
        self, agent_id: int, location: int, age_bracket: int, risk_class: int
    ) -> None:
        """Append *agent_id* to the bucket of the given category."""
        self._require_rebuilding()
        cid = self.indexer.compute(location, age_bracket, risk_class)
        self.buckets[cid].add_agent(agent_id)

    def add_agents_to_index(
        self,
        agent_ids: Int1D,
        locations: Int1D,
        age_brackets: Int1D,
        risk_classes: Int1D,
    ) -> None:
        """
        Vectorised bulk insertion.

        Ids are grouped by compound id with one stable sort, then each group
        is appended to its bucket in a single slice assignment.
        """
        self._require_rebuilding()
        agent_ids = np.asarray(agent_ids, dtype=np.int64)
        cids = self.indexer.compute_many(locations, age_brackets, risk_classes)
        if agent_ids.shape != cids.shape:
            raise ValueError(
                f"agent_ids shape {agent_ids.shape} does not match key shape "
                f"{cids.shape}"
            )
        self._insert_grouped(agent_ids, cids)

    def _insert_grouped(self, agent_ids: Int1D, cids: Int1D) -> None:
        if cids.size == 0:
            return
        order = np.argsort(cids, kind="stable")
        sorted_cids = cids[order]
        sorted_ids = agent_ids[order]
        present, starts = np.unique(sorted_cids, return_index=True)
        stops = np.append(starts[1:], sorted_cids.size)
        for cid, lo, hi in zip(present, starts, stops):
            self.buckets[int(cid)].add_agents(sorted_ids[lo:hi])

    # ------------------------------------------------------------------ #
    #   Queries                                                           #
    # ------------------------------------------------------------------ #
    def _require_built(self) -> None:
        if self._rebuilding:
            raise PreconditionError("index queried while a rebuild is in flight")
        if not self._built:
            raise PreconditionError(
                "index queried before the first rebuild or after a failed one"
            )

    def get_num_agents_at_index(
        self, location: int, age_bracket: int, risk_class: int
    ) -> int:
        """Occupancy of one compound category."""
        self._require_built()
        return len(self.buckets[self.indexer.compute(location, age_bracket, risk_class)])

    def get_random_agent_from_index(
        self,
        location: int,
        age_bracket: int,
        risk_class: int,
        rng: Generator,
    ) -> AgentRef | None:
        """
        Uniformly random agent of one category, or ``None`` if it is empty.
        """
        self._require_built()
        bucket = self.buckets[self.indexer.compute(location, age_bracket, risk_class)]
        if bucket.size == 0:
            return None
        return AgentRef(id=bucket.get_random_agent(rng), epoch=self.epoch)

    def agents_at_index(
        self, location: int, age_bracket: int, risk_class: int
    ) -> Int1D:
        """Copy of the ids stored in one category."""
        self._require_built()
        cid = self.indexer.compute(location, age_bracket, risk_class)
        return self.buckets[cid].agents.copy()

    def occupancy(self) -> Int3D:
        """Bucket sizes shaped ``(L, A, S)``."""
        self._require_built()
        flat = np.fromiter(
            (len(b) for b in self.buckets), dtype=np.int64, count=len(self.buckets)
        )
        n_loc, n_age, n_sb = self.indexer.shape
        # flat id = age + A*loc + A*L*sb  ->  C-order (sb, loc, age)
        return flat.reshape(n_sb, n_loc, n_age).transpose(1, 2, 0).copy()

    @property
    def total(self) -> int:
        """Number of agents currently stored."""
        return sum(len(b) for b in self.buckets)

    # ------------------------------------------------------------------ #
    #   Reference validity                                                #
    # ------------------------------------------------------------------ #
    def is_valid(self, ref: AgentRef) -> bool:
        """True if *ref* was produced by the current, completed rebuild."""
        return self.is_built and ref.epoch == self.epoch

    def resolve(self, ref: AgentRef) -> int:
        """
        Return the engine id behind *ref*.

        Raises
        ------
        PreconditionError
            If *ref* was captured before the latest rebuild.
        """
        if not self.is_valid(ref):
            raise PreconditionError(
                f"stale agent reference {ref!r} (index epoch {self.epoch})"
            )
        return ref.id
