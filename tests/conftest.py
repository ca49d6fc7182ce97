"""Shared fixtures for lanpool tests."""

from dataclasses import fields

import pytest

from lanpool.config import PoolConfig, config
from tests.fakes import make_context


@pytest.fixture(autouse=True)
def reset_config():
    """Commands mutate the global config; restore defaults after each test."""
    defaults = PoolConfig()
    yield
    for f in fields(PoolConfig):
        setattr(config, f.name, getattr(defaults, f.name))


@pytest.fixture
def lan_context():
    return make_context()
