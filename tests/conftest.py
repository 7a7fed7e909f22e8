"""
Shared test fixtures and pytest configuration.
"""

import pytest
import numpy as np
import torch


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure test reproducibility."""
    np.random.seed(42)
    torch.manual_seed(42)
    yield


@pytest.fixture
def atm_scenario():
    """ATM one-year option used for the convergence checks."""
    return dict(S=100.0, K=100.0, T=1.0, r=0.01, sigma=0.2)


@pytest.fixture
def batch_scenario():
    """Three independent scenarios with different strikes, maturities and vols."""
    return dict(
        S=np.array([100.0, 100.0, 100.0]),
        K=np.array([90.0, 100.0, 110.0]),
        T=np.array([0.5, 1.0, 1.5]),
        sigma=np.array([0.25, 0.20, 0.30]),
        r=0.01,
    )
