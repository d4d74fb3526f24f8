"""Pytest configuration and fixtures for catenv tests."""

import os

import numpy as np
import pytest

from catenv import logging
from catenv.environment import CategoricalEnvironment
from tests.helpers.factories import make_population


@pytest.fixture
def three_location_env() -> CategoricalEnvironment:
    """L=3, A=1, S=1 environment with the [0.2, 0.3, 0.5] mixing row."""
    return CategoricalEnvironment.init(
        no_locations=3,
        no_age_categories=1,
        no_sociobehavioural_categories=1,
        mixing_matrix=[[0.2, 0.3, 0.5], [0.0, 1.0, 0.0], [0.1, 0.1, 0.8]],
        seed=123,
    )


@pytest.fixture
def small_population():
    """200 agents spread over 3 locations, one risk class, ages 0-80."""
    return make_population(200, n_locations=3, n_risk=1, seed=7)


@pytest.fixture
def rng():
    return np.random.default_rng(2024)


@pytest.fixture(autouse=True)
def mute_catenv_logs(caplog):
    # DEBUG in the coverage run so every logging branch executes
    if os.environ.get("COVERAGE_RUN") == "true":
        level = logging.DEBUG
    else:
        level = logging.ERROR

    caplog.set_level(level, logger="catenv")
    logging.getLogger("catenv").setLevel(level)
