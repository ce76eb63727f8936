"""Shared fixtures for the gnuplotter test suite."""

from __future__ import annotations

import random

import pytest

from gnuplotter.config import GnuplotConfig, set_config
from gnuplotter.session import close_shared_session


@pytest.fixture(autouse=True)
def linux_config():
    """Pin platform-dependent defaults and restore them after each test."""
    config = GnuplotConfig(executable="/nonexistent/gnuplot", platform="linux")
    set_config(config)
    yield config
    close_shared_session()
    set_config(None)


@pytest.fixture
def rng():
    return random.Random(1234)
