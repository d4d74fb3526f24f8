"""
Custom logging configuration for catenv.

Extends Python's standard logging with a custom DEEP_DEBUG level (5)
for very verbose output such as per-sample tracing during mate selection.

Log Levels
----------
- CRITICAL (50): Critical errors
- ERROR (40): Errors
- WARNING (30): Warnings
- INFO (20): Diagnostic dumps (population, mate-location frequencies)
- DEBUG (10): Rebuild summaries
- DEEP_DEBUG (5): Per-sample tracing

Examples
--------
>>> from catenv import logging
>>> logger = logging.getLogger("catenv.environment")
>>> logger.debug("Rebuilt index with %d agents", 120)
>>> logger.deep("Sampled target location %d", 2)

Configure per-component log levels:

>>> import catenv
>>> log_config = {
...     "default_level": "INFO",
...     "components": {"environment": "DEBUG", "mixing": "DEEP_DEBUG"},
... }
>>> env = catenv.CategoricalEnvironment.init(logging=log_config)

See Also
--------
catenv.config.ConfigValidator : Validates the ``logging`` config section
"""

import logging
from typing import Any

(CRITICAL, ERROR, WARNING, INFO, DEBUG) = (
    logging.CRITICAL,
    logging.ERROR,
    logging.WARNING,
    logging.INFO,
    logging.DEBUG,
)
DEEP_DEBUG = 5
logging.addLevelName(DEEP_DEBUG, "DEEP")

LEVELS = {
    "CRITICAL": CRITICAL,
    "ERROR": ERROR,
    "WARNING": WARNING,
    "INFO": INFO,
    "DEBUG": DEBUG,
    "DEEP_DEBUG": DEEP_DEBUG,
}


class CatLogger(logging.Logger):
    """
    Custom logger with DEEP_DEBUG level support.

    Extends Python's Logger to add the `deep()` method for very verbose
    debugging output (level 5).

    Examples
    --------
    >>> logger = CatLogger("test")
    >>> logger.setLevel(5)  # DEEP_DEBUG
    >>> logger.deep("Very verbose message")
    """

    def deep(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """
        Log message at DEEP_DEBUG level (5).

        Parameters
        ----------
        msg : str
            Message format string.
        *args : Any
            Arguments for message formatting.
        **kwargs : Any
            Additional logging kwargs.
        """
        if self.isEnabledFor(DEEP_DEBUG):
            self._log(DEEP_DEBUG, msg, args, **kwargs)


# Make the logging module hand out our subclass from now on
logging.setLoggerClass(CatLogger)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)


def getLogger(name: str | None = None) -> CatLogger:
    """
    Get a CatLogger instance.

    Parameters
    ----------
    name : str, optional
        Logger name. If None, returns root logger.

    Returns
    -------
    CatLogger
        Logger instance with deep() method.
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def configure(log_config: dict[str, Any]) -> None:
    """
    Apply levels from a ``logging`` config section.

    Parameters
    ----------
    log_config : dict
        Mapping with keys:
        - default_level: str (applied to the ``catenv`` logger)
        - components: dict[str, str] (per-module overrides, e.g.
          ``{"mixing": "DEBUG"}`` targets ``catenv.core.mixing``)
    """
    default_level = log_config.get("default_level", "INFO")
    logging.getLogger("catenv").setLevel(LEVELS[default_level.upper()])

    for component, level in log_config.get("components", {}).items():
        logging.getLogger(_component_logger_name(component)).setLevel(
            LEVELS[level.upper()]
        )


_CORE_MODULES = {"agent", "bucket", "indexer", "index", "mixing"}


def _component_logger_name(component: str) -> str:
    """Map a short component name to its module logger name."""
    if component.startswith("catenv"):
        return component
    if component in _CORE_MODULES:
        return f"catenv.core.{component}"
    return f"catenv.{component}"
