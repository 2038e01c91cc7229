"""Shared fixtures for the strata-em test suite."""

import pytest

from strata_em import FDTDSolver


@pytest.fixture
def small_solver():
    """Create a small solver for fast tests."""
    return FDTDSolver(60, 50)


@pytest.fixture
def silent_solver():
    """Free-space solver whose source injects nothing (0 GHz)."""
    return FDTDSolver(160, 160, frequency_ghz=0.0)
