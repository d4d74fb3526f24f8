"""Agent reference definition."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class AgentRef:
    """
    Non-owning handle to an agent managed by the host simulation engine.

    The handle stores the engine's agent id together with the rebuild epoch
    of the index that produced it. It is valid only until the next rebuild;
    see `CategoricalIndex.is_valid` and `CategoricalIndex.resolve`.

    Parameters
    ----------
    id : int
        Engine-side agent identifier.
    epoch : int
        Rebuild counter of the index at capture time.

    Examples
    --------
    >>> ref = AgentRef(id=17, epoch=3)
    >>> ref.id
    17
    """

    id: int
    epoch: int

    def __post_init__(self) -> None:
        """Validate agent ID is non-negative."""
        if self.id < 0:
            raise ValueError(f"Agent ID must be non-negative, got {self.id}")
