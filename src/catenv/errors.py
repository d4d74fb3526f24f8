"""
Exception taxonomy for catenv.

Two kinds of failure are fatal and abort the responsible call immediately:

- ConfigurationError : malformed configuration detected at construction
  (negative mixing weights, all-zero mixing rows, invalid dimensions).
- PreconditionError : a caller bug (query before the first rebuild, stale
  agent reference, out-of-range category key).

An empty bucket for a valid category is *not* an error: sampling returns
``None`` and the caller decides what to do.
"""

from __future__ import annotations

__all__ = ["ConfigurationError", "PreconditionError", "CategoryKeyError"]


class ConfigurationError(ValueError):
    """Invalid configuration supplied at construction time."""


class PreconditionError(RuntimeError):
    """An operation was called in a state or with arguments it does not accept."""


class CategoryKeyError(PreconditionError, IndexError):
    """
    A (location, age_bracket, risk_class) component is not a valid category.

    Parameters
    ----------
    component : str
        Name of the offending key component.
    value : object
        The value that was passed.
    size : int
        Configured number of categories for that component.
    reason : str, optional
        Replaces the default "out of range" wording, e.g. for a key that is
        not an integer at all.
    """

    def __init__(
        self, component: str, value: object, size: int, reason: str | None = None
    ) -> None:
        self.component = component
        self.value = value
        self.size = size
        if reason is None:
            reason = f"out of range, must be in [0, {size})"
        super().__init__(f"{component}={value} {reason}")
