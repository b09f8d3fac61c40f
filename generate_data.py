"""
Sparse Matrix Data Generator
Fills square integer matrices with a sparse random pattern for benchmarking.

Features:
- Each cell is non-zero with probability 1/n, so about n non-zeros per n×n matrix
- Non-zero values are uniform integers in [1, 100]
- Rows split into contiguous blocks, one thread per block
- Independent random stream per worker (SeedSequence.spawn), never shared
- Optional seed for reproducible runs
"""

import logging
from typing import Optional

import numpy as np

from matrix_formats import check_square, new_dense_matrix
from partitioning import resolve_num_workers, run_partitioned


logger = logging.getLogger(__name__)

# Inclusive range of generated non-zero values
MIN_VALUE = 1
MAX_VALUE = 100


class SparseMatrixGenerator:
    """Generate sparse square matrices with a per-cell Bernoulli(1/n) pattern."""

    def __init__(self, num_workers: Optional[int] = None, seed: Optional[int] = None):
        """
        Args:
            num_workers: Number of worker threads (default: CPU count)
            seed: Random seed for reproducibility (None = OS entropy)
        """
        self.num_workers = resolve_num_workers(num_workers)
        self.seed_sequence = np.random.SeedSequence(seed)

    @staticmethod
    def estimate_memory(n: int) -> dict:
        """
        Estimate memory needed for one dense operand and its COO form.

        Args:
            n: Matrix dimension

        Returns:
            Dictionary with memory estimates in MB
        """
        # Dense cell: 8 bytes (int64)
        dense_mb = (n * n * 8) / (1024 * 1024)

        # Expected n nonzeros, each row + col + value = 24 bytes
        coo_mb = (n * 24) / (1024 * 1024)

        return {
            'dense_mb': dense_mb,
            'coo_mb': coo_mb,
            'total_mb': dense_mb + coo_mb
        }

    def fill(self, matrix: np.ndarray):
        """
        Populate a zero-initialized n×n matrix in place.

        Each worker owns a disjoint row block and draws from its own
        generator, so no cell and no random state is shared between threads.

        Args:
            matrix: Dense n×n integer array to fill
        """
        n = check_square(matrix)
        if n == 0:
            return

        prob = 1.0 / n
        # A fresh set of child seeds per call: successive fills differ,
        # while a generator built with the same seed replays the same sequence
        worker_seeds = self.seed_sequence.spawn(self.num_workers)

        def fill_rows(worker_id: int, row_start: int, row_end: int):
            rng = np.random.default_rng(worker_seeds[worker_id])
            for i in range(row_start, row_end):
                hits = rng.random(n) < prob
                num_hits = int(np.count_nonzero(hits))
                if num_hits:
                    matrix[i, hits] = rng.integers(MIN_VALUE, MAX_VALUE + 1, size=num_hits)

        run_partitioned(fill_rows, n, self.num_workers)

        logger.debug(f"Generated {n}×{n} sparse matrix: {int(np.count_nonzero(matrix)):,} nonzeros")

    def generate(self, n: int) -> np.ndarray:
        """
        Allocate and fill a new n×n sparse matrix.

        Args:
            n: Matrix dimension

        Returns:
            Populated int64 NumPy array
        """
        matrix = new_dense_matrix(n)
        self.fill(matrix)
        return matrix


def generate_sparse_matrix(matrix: np.ndarray, n: int,
                           num_workers: Optional[int] = None,
                           seed: Optional[int] = None):
    """
    Fill matrix (n×n, zero-initialized) with a sparse random pattern in place.

    Args:
        matrix: Target dense matrix
        n: Matrix dimension
        num_workers: Number of worker threads (default: CPU count)
        seed: Random seed (None = OS entropy)
    """
    if matrix.shape != (n, n):
        raise ValueError(f"Expected a {n}×{n} matrix, got shape {matrix.shape}")

    SparseMatrixGenerator(num_workers=num_workers, seed=seed).fill(matrix)


def new_sparse_matrix(n: int, num_workers: Optional[int] = None,
                      seed: Optional[int] = None) -> np.ndarray:
    """Allocate and fill a new n×n sparse matrix."""
    return SparseMatrixGenerator(num_workers=num_workers, seed=seed).generate(n)
