"""Environment (host-engine hook) base class definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catenv.population import Population


class Environment(ABC):
    """
    Base class for environments driven by the host simulation engine.

    The engine calls `update` exactly once per simulation step, before any
    behaviour queries the environment in that step. Everything else is an
    optional diagnostic hook with a no-op default.

    Design Guidelines
    -----------------
    - Implement `update()`; receive the population snapshot as an argument
      instead of reaching into global simulation state
    - Keep query methods free of side effects on the indexed contents
    """

    @abstractmethod
    def update(self, population: Population) -> None:
        """
        Rebuild internal state from the live population of this step.

        Parameters
        ----------
        population : Population
            Snapshot of the agents alive in the current step.
        """

    def clear(self) -> None:
        """Release per-step state. No-op by default."""

    def describe_population(self) -> str:
        """Human-readable summary for logs. Empty by default."""
        return ""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
