"""Shared fixtures for tracemodel tests."""

import pytest

from tracemodel import runtime_config


@pytest.fixture(autouse=True)
def _reset_runtime_config():
    """Keep runtime configuration changes local to each test."""
    runtime_config.reset()
    yield
    runtime_config.reset()
