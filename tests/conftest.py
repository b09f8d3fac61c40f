import numpy as np
import pytest

from matrix_formats import COOMatrix


@pytest.fixture
def scenario_dense():
    """The 3×3 example: A, B and the expected product C."""
    A = np.array([[0, 2, 0], [0, 0, 0], [5, 0, 1]], dtype=np.int64)
    B = np.array([[1, 0, 0], [0, 0, 3], [0, 4, 0]], dtype=np.int64)
    C = np.array([[0, 0, 6], [0, 0, 0], [5, 4, 0]], dtype=np.int64)
    return A, B, C


@pytest.fixture
def empty_coo():
    return COOMatrix.empty((5, 5))
