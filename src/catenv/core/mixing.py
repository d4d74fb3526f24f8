# src/catenv/core/mixing.py
"""
MixingModel – where does an agent look for a partner?

The configured L×L weight matrix is turned into one cumulative distribution
per source location; a uniform draw is mapped to a target location by
inverse-CDF lookup.

A parallel frequency matrix counts the (source, target) pairs that actually
produced a match. It is diagnostic only and never feeds back into sampling.
"""

from __future__ import annotations

import threading
from typing import Any

import numpy as np

from catenv.core.indexer import check_category
from catenv.errors import ConfigurationError, PreconditionError
from catenv.logging import getLogger
from catenv.typing import Float1D, Float2D

__all__ = ["MixingModel", "validate_mixing_matrix"]

log = getLogger(__name__)

ROW_SUM_TOL = 1e-6


def validate_mixing_matrix(raw: Any, no_locations: int | None = None) -> Float2D:
    """
    Return *raw* as a checked ``float64`` square matrix.

    Raises
    ------
    ConfigurationError
        Not square / wrong size, non-finite or negative entries, or a row
        with no positive weight. The message names the offending row.
    """
    try:
        mat = np.array(raw, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"mixing matrix is not numeric: {exc}") from exc

    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        raise ConfigurationError(
            f"mixing matrix must be square 2-D, got shape={mat.shape}"
        )
    if no_locations is not None and mat.shape[0] != no_locations:
        raise ConfigurationError(
            f"mixing matrix must be {no_locations}x{no_locations} "
            f"(one row per location), got shape={mat.shape}"
        )
    if mat.shape[0] == 0:
        raise ConfigurationError("mixing matrix must have at least one location")

    bad_rows = np.flatnonzero(~np.isfinite(mat).all(axis=1))
    if bad_rows.size:
        raise ConfigurationError(
            f"mixing matrix row {bad_rows[0]} contains non-finite weights: "
            f"{mat[bad_rows[0]].tolist()}"
        )
    bad_rows = np.flatnonzero((mat < 0.0).any(axis=1))
    if bad_rows.size:
        raise ConfigurationError(
            f"mixing matrix row {bad_rows[0]} contains negative weights: "
            f"{mat[bad_rows[0]].tolist()}"
        )
    bad_rows = np.flatnonzero(mat.sum(axis=1) <= 0.0)
    if bad_rows.size:
        raise ConfigurationError(
            f"mixing matrix row {bad_rows[0]} has no positive weight; "
            "every source location needs at least one target"
        )
    return mat


class MixingModel:
    """
    Location × location mixing probabilities plus observed mate-location counts.

    Parameters
    ----------
    raw_weights : array_like
        Non-negative ``(L, L)`` weights; row ``i`` gives the relative
        preference of agents at location ``i`` for partners at each location.
        Rows need not sum to one.

    Examples
    --------
    >>> mm = MixingModel([[0.2, 0.3, 0.5], [1, 0, 0], [0, 0, 1]])
    >>> mm.mate_location_distribution(0)
    array([0.2, 0.5, 1. ])
    >>> mm.sample_target_location(0, 0.4)
    1
    """

    def __init__(self, raw_weights: Any) -> None:
        self._lock = threading.Lock()
        self.set_mixing_matrix(raw_weights)
        self.frequencies: Float2D = np.zeros(
            (self.no_locations, self.no_locations), dtype=np.float64
        )

    # ------------------------------------------------------------------ #
    #   Mixing matrix                                                     #
    # ------------------------------------------------------------------ #
    def set_mixing_matrix(self, raw_weights: Any) -> None:
        """
        Validate and normalise a new weight matrix.

        The location count cannot change after construction; accumulated
        frequencies are kept.
        """
        expected = getattr(self, "no_locations", None)
        mat = validate_mixing_matrix(raw_weights, expected)

        probs = mat / mat.sum(axis=1, keepdims=True)
        cdf = np.minimum(np.cumsum(probs, axis=1), 1.0)
        # pin the tail so float round-off can never leave a draw unmatched
        for row in range(cdf.shape[0]):
            last_positive = np.flatnonzero(probs[row] > 0.0)[-1]
            cdf[row, last_positive:] = 1.0

        self.no_locations: int = mat.shape[0]
        self._probabilities: Float2D = probs
        self._cdf: Float2D = cdf
        log.debug("Mixing matrix set for %d locations", self.no_locations)

    @property
    def probabilities(self) -> Float2D:
        """Row-normalised mixing probabilities (copy)."""
        return self._probabilities.copy()

    def mate_location_distribution(self, source: int) -> Float1D:
        """Cumulative target distribution for *source* (copy)."""
        self._check_location("source", source)
        return self._cdf[source].copy()

    def _check_location(self, name: str, loc: int) -> None:
        check_category(name, loc, self.no_locations)

    def sample_target_location(self, source: int, uniform_draw: float) -> int:
        """
        Map a uniform draw in ``[0, 1]`` to a target location.

        Returns the first target whose cumulative probability is >= the
        draw. Targets with zero weight are never returned, including for a
        draw of exactly 0.

        Raises
        ------
        PreconditionError
            If *uniform_draw* is outside ``[0, 1]``.
        CategoryKeyError
            If *source* is not a valid location.
        """
        self._check_location("source", source)
        if not 0.0 <= uniform_draw <= 1.0:
            raise PreconditionError(
                f"uniform_draw must lie in [0, 1], got {uniform_draw}"
            )
        cdf = self._cdf[source]
        target = int(np.searchsorted(cdf, uniform_draw, side="left"))
        if self._probabilities[source, target] == 0.0:
            # only reachable for a draw on a flat leading segment (draw == 0)
            target = int(np.searchsorted(cdf, uniform_draw, side="right"))
        log.deep("source=%d draw=%.6f -> target=%d", source, uniform_draw, target)
        return target

    # ------------------------------------------------------------------ #
    #   Observed frequencies                                              #
    # ------------------------------------------------------------------ #
    def record_observed_pair(self, source: int, target: int) -> None:
        """Count one match between *source* and *target* locations."""
        self._check_location("source", source)
        self._check_location("target", target)
        with self._lock:
            self.frequencies[source, target] += 1.0

    def merge_frequencies(self, counts: Any) -> None:
        """
        Add a block of counts (e.g. thread-local tallies) in one step.
        """
        counts = np.asarray(counts, dtype=np.float64)
        if counts.shape != self.frequencies.shape:
            raise ValueError(
                f"counts shape {counts.shape} does not match "
                f"{self.frequencies.shape}"
            )
        if (counts < 0.0).any():
            raise ValueError("counts must be non-negative")
        with self._lock:
            self.frequencies += counts

    @property
    def total_observed(self) -> int:
        """Number of pairs recorded since the last reset."""
        return int(round(self.frequencies.sum()))

    def reset_frequencies(self) -> None:
        with self._lock:
            self.frequencies.fill(0.0)

    def normalize_frequencies(self, *, reset: bool = True) -> Float2D:
        """
        Row-normalised observed proportions.

        Rows without observations stay zero. With ``reset=True`` (default)
        the counts are cleared afterwards.
        """
        with self._lock:
            counts = self.frequencies.copy()
            if reset:
                self.frequencies.fill(0.0)
        row_sums = counts.sum(axis=1, keepdims=True)
        return np.divide(
            counts, row_sums, out=np.zeros_like(counts), where=row_sums > 0.0
        )

    def describe_frequencies(self) -> str:
        """Text table of the current counts; does not modify state."""
        counts = self.frequencies.copy()
        width = max(6, len(f"{counts.max():.0f}") + 2) if counts.size else 6
        header = "src\\tgt" + "".join(f"{j:>{width}d}" for j in range(counts.shape[1]))
        lines = [header]
        for i, row in enumerate(counts):
            lines.append(f"{i:>7d}" + "".join(f"{v:>{width}.0f}" for v in row))
        lines.append(f"total observed: {counts.sum():.0f}")
        return "\n".join(lines)
