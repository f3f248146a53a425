"""Shared pytest fixtures for slotbind tests."""

import pytest

import slotbind


@pytest.fixture(autouse=True)
def _fresh_default_context():
    """Every test starts (and leaves) with no default context."""
    slotbind.reset_default_context()
    yield
    slotbind.reset_default_context()
