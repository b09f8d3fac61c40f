import numpy as np


# Worker counts covering single-thread, prime counts and counts above the data size
WORKER_COUNTS = [1, 2, 3, 7, 8, 64]


def random_sparse_dense(n, density, seed, low=-5, high=6):
    """Dense matrix with roughly density * n² non-zeros, including negatives."""
    rng = np.random.default_rng(seed)
    mask = rng.random((n, n)) < density
    values = rng.integers(low, high, size=(n, n))
    return np.where(mask, values, 0).astype(np.int64)


def entries(coo):
    """Order-independent view of a COO matrix."""
    return sorted(coo.iter_entries())
