"""Tests for logging configuration and behavior."""

import logging

from catenv import CategoricalEnvironment
from catenv.logging import DEEP_DEBUG, CatLogger, configure, getLogger


class TestCatLogger:
    def test_catlogger_has_deep_method(self):
        logger = getLogger("test")
        assert isinstance(logger, CatLogger)
        assert callable(logger.deep)

    def test_deep_level_exists(self):
        assert DEEP_DEBUG == 5
        assert logging.getLevelName(DEEP_DEBUG) == "DEEP"

    def test_deep_logging_when_enabled(self, caplog):
        logger = getLogger("test.deep")
        logger.setLevel(DEEP_DEBUG)

        with caplog.at_level(DEEP_DEBUG, logger="test.deep"):
            logger.deep("Deep debug message")

        assert "Deep debug message" in caplog.text

    def test_deep_logging_when_disabled(self, caplog):
        logger = getLogger("test.deep_disabled")
        logger.setLevel(logging.INFO)

        with caplog.at_level(logging.INFO, logger="test.deep_disabled"):
            logger.deep("Should not appear")

        assert "Should not appear" not in caplog.text

    def test_module_loggers_are_catloggers(self):
        assert isinstance(getLogger("catenv.core.mixing"), CatLogger)
        assert isinstance(getLogger("catenv.environment"), CatLogger)


class TestLoggingConfiguration:
    def test_configure_default_level(self):
        configure({"default_level": "WARNING"})
        assert logging.getLogger("catenv").level == logging.WARNING

    def test_configure_component_levels(self):
        configure(
            {
                "default_level": "ERROR",
                "components": {"mixing": "DEEP_DEBUG", "environment": "debug"},
            }
        )
        assert logging.getLogger("catenv.core.mixing").level == DEEP_DEBUG
        assert logging.getLogger("catenv.environment").level == logging.DEBUG

        for name in ("catenv.core.mixing", "catenv.environment"):
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_init_applies_logging_section(self):
        CategoricalEnvironment.init(
            logging={"default_level": "ERROR", "components": {"index": "WARNING"}}
        )
        assert logging.getLogger("catenv.core.index").level == logging.WARNING
        logging.getLogger("catenv.core.index").setLevel(logging.NOTSET)

    def test_describe_population_logged_at_info(self, caplog, three_location_env):
        from tests.helpers.factories import females_at

        three_location_env.update(females_at({0: 2}))
        logging.getLogger("catenv").setLevel(logging.INFO)
        with caplog.at_level(logging.INFO, logger="catenv"):
            three_location_env.describe_population()

        assert "Eligible population" in caplog.text

    def test_rebuild_summary_logged_at_debug(self, caplog, three_location_env):
        from tests.helpers.factories import females_at

        logging.getLogger("catenv").setLevel(logging.DEBUG)
        with caplog.at_level(logging.DEBUG, logger="catenv"):
            three_location_env.update(females_at({0: 2, 2: 1}))

        assert "3 of 3 agents eligible" in caplog.text
