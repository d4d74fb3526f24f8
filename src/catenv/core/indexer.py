# src/catenv/core/indexer.py
"""
CompoundIndexer – (location, age_bracket, risk_class) ↔ flat bucket id.

    id = age + A · location + (A · L) · risk

The mapping is a dense bijection onto ``[0, A·L·S)`` so bucket storage can be
a flat list without gaps.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral

import numpy as np

from catenv.errors import CategoryKeyError, ConfigurationError
from catenv.typing import Int1D

__all__ = ["CompoundIndexer", "check_category"]

_NOT_INTEGER = "is not an integer category"


def check_category(component: str, value: object, size: int) -> None:
    """Raise `CategoryKeyError` unless *value* is an int in ``[0, size)``."""
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise CategoryKeyError(component, value, size, reason=_NOT_INTEGER)
    if not 0 <= value < size:
        raise CategoryKeyError(component, value, size)


def _key_array(values: Int1D, component: str, size: int) -> Int1D:
    arr = np.asarray(values)
    if arr.dtype.kind not in "iu" and arr.size:
        raise CategoryKeyError(component, arr.ravel()[0], size, reason=_NOT_INTEGER)
    return arr.astype(np.int64, copy=False)


@dataclass(slots=True, frozen=True)
class CompoundIndexer:
    """
    Pure mapping between category triples and linear ids.

    Parameters
    ----------
    no_locations : int
        Number of locations ``L``.
    no_age_categories : int
        Number of age brackets ``A``.
    no_sociobehavioural_categories : int
        Number of risk-behaviour classes ``S``.

    Examples
    --------
    >>> ix = CompoundIndexer(no_locations=3, no_age_categories=2,
    ...                      no_sociobehavioural_categories=2)
    >>> ix.compute(location=1, age_bracket=1, risk_class=1)
    9
    >>> ix.decode(9)
    (1, 1, 1)
    """

    no_locations: int
    no_age_categories: int
    no_sociobehavioural_categories: int

    def __post_init__(self) -> None:
        for name in (
            "no_locations",
            "no_age_categories",
            "no_sociobehavioural_categories",
        ):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, (int, np.integer)):
                raise ConfigurationError(
                    f"{name} must be int, got {type(val).__name__}"
                )
            if val < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {val}")

    @property
    def shape(self) -> tuple[int, int, int]:
        """Dimension sizes as ``(L, A, S)``."""
        return (
            self.no_locations,
            self.no_age_categories,
            self.no_sociobehavioural_categories,
        )

    @property
    def size(self) -> int:
        """Total number of compound categories ``A·L·S``."""
        return (
            self.no_locations
            * self.no_age_categories
            * self.no_sociobehavioural_categories
        )

    def check_key(self, location: int, age_bracket: int, risk_class: int) -> None:
        """Raise `CategoryKeyError` naming the first invalid component."""
        check_category("location", location, self.no_locations)
        check_category("age_bracket", age_bracket, self.no_age_categories)
        check_category("risk_class", risk_class, self.no_sociobehavioural_categories)

    def compute(self, location: int, age_bracket: int, risk_class: int) -> int:
        """Return the compound id of a category triple."""
        self.check_key(location, age_bracket, risk_class)
        a = self.no_age_categories
        return int(age_bracket + a * location + (a * self.no_locations) * risk_class)

    def compute_many(
        self, locations: Int1D, age_brackets: Int1D, risk_classes: Int1D
    ) -> Int1D:
        """
        Vectorised `compute` for equal-length arrays.

        Raises
        ------
        CategoryKeyError
            For a non-integer array, or the first row holding an out-of-range
            component.
        """
        locations = _key_array(locations, "location", self.no_locations)
        age_brackets = _key_array(age_brackets, "age_bracket", self.no_age_categories)
        risk_classes = _key_array(
            risk_classes, "risk_class", self.no_sociobehavioural_categories
        )
        if not (locations.shape == age_brackets.shape == risk_classes.shape):
            raise ValueError(
                "locations, age_brackets and risk_classes must share a shape, got "
                f"{locations.shape}, {age_brackets.shape}, {risk_classes.shape}"
            )

        for arr, name, n in (
            (locations, "location", self.no_locations),
            (age_brackets, "age_bracket", self.no_age_categories),
            (risk_classes, "risk_class", self.no_sociobehavioural_categories),
        ):
            bad = np.flatnonzero((arr < 0) | (arr >= n))
            if bad.size:
                raise CategoryKeyError(name, int(arr[bad[0]]), n)

        a = self.no_age_categories
        return age_brackets + a * locations + (a * self.no_locations) * risk_classes

    def decode(self, compound_id: int) -> tuple[int, int, int]:
        """Inverse of `compute`: return ``(location, age_bracket, risk_class)``."""
        check_category("compound_id", compound_id, self.size)
        a = self.no_age_categories
        risk_class, rest = divmod(int(compound_id), a * self.no_locations)
        location, age_bracket = divmod(rest, a)
        return location, age_bracket, risk_class
