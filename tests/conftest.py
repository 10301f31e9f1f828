"""Shared fixtures for the standardisation tests."""

import numpy as np
import pytest

from core.vectors import DenseVector


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def worked_example():
    return [DenseVector([1.0, 0.0]), DenseVector([3.0, 0.0]), DenseVector([5.0, 0.0])]


@pytest.fixture
def dense_matrix(rng):
    loc = rng.uniform(-50, 50, size=6)
    scale = rng.uniform(0.1, 20, size=6)
    return loc + scale * rng.standard_normal((200, 6))


@pytest.fixture
def sparse_matrix(rng):
    X = rng.standard_normal((150, 8)) * 3.0 + 2.0
    X[rng.random(X.shape) < 0.8] = 0.0
    return X
