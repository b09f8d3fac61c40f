"""
Parallel Sparse Matrix Multiplication Module
Multi-threaded COO × COO multiplication with per-worker accumulators.

Key Features:
- A's entries split into W contiguous index ranges (first nnz % W ranges get one extra)
- Each worker joins its slice of A against all of B into its own accumulator
- No shared mutable state while workers run - accumulators are worker-local
- Single-threaded merge after the join barrier; integer sums are order independent
- Same result as sparse_multiplication.sparse_multiply for every worker count

Usage:
    from sparse_multiplication_parallel import multiply_matrices_parallel

    result = multiply_matrices_parallel(coo_a, coo_b, num_workers=8)
"""

import logging
from typing import List, Optional

from matrix_formats import COOMatrix
from partitioning import resolve_num_workers, run_partitioned
from sparse_multiplication import (
    Accumulator,
    accumulate_products,
    accumulator_to_coo,
    check_compatible,
)


# ============================================================================
# Parallel Matrix Multiplication Class
# ============================================================================

class ParallelSparseMultiplication:
    """
    Parallel sparse matrix multiplication using worker threads.

    Partitions the non-zero entries of A across workers; every call is
    stateless apart from the configured worker count.
    """

    def __init__(self,
                 num_workers: Optional[int] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Args:
            num_workers: Number of parallel workers (default: CPU count)
            logger: Optional logger instance
        """
        self.num_workers = resolve_num_workers(num_workers)
        self.logger = logger or logging.getLogger(__name__)

    def multiply(self, coo_a: COOMatrix, coo_b: COOMatrix) -> COOMatrix:
        """
        Parallel multiplication: C = A × B.

        Args:
            coo_a: Matrix A in COO format
            coo_b: Matrix B in COO format

        Returns:
            COOMatrix result (unordered, no zero entries)
        """
        result_shape = check_compatible(coo_a, coo_b)

        self.logger.debug(f"Parallel sparse multiplication: A({coo_a.shape}, nnz={coo_a.nnz():,}) × "
                          f"B({coo_b.shape}, nnz={coo_b.nnz():,}), {self.num_workers} workers")

        partials = self._multiply_partitioned(coo_a, coo_b)
        merged = self._merge_partial_results(partials)
        result = accumulator_to_coo(merged, result_shape)

        self.logger.debug(f"Result has {result.nnz():,} nonzeros")

        return result

    def _multiply_partitioned(self, coo_a: COOMatrix, coo_b: COOMatrix) -> List[Accumulator]:
        """
        Distribute contiguous slices of A's entries across parallel workers.
        Workers with an empty slice return an empty accumulator.
        """
        def multiply_slice(worker_id: int, start: int, end: int) -> Accumulator:
            return accumulate_products(coo_a, coo_b, start, end)

        return run_partitioned(multiply_slice, coo_a.nnz(), self.num_workers)

    def _merge_partial_results(self, partials: List[Accumulator]) -> Accumulator:
        """
        Sum worker accumulators key by key. Runs on the calling thread only,
        after every worker has finished.
        """
        merged: Accumulator = {}
        for local in partials:
            for i, col_map in local.items():
                row = merged.setdefault(i, {})
                for j, value in col_map.items():
                    row[j] = row.get(j, 0) + value

        self.logger.debug(f"Merged {len(partials)} partial results into {len(merged):,} rows")

        return merged


# ============================================================================
# Convenience Function
# ============================================================================

def multiply_matrices_parallel(coo_a: COOMatrix, coo_b: COOMatrix,
                               num_workers: Optional[int] = None) -> COOMatrix:
    """
    Parallel sparse matrix multiplication using multiple threads.

    Args:
        coo_a: Matrix A in COO format
        coo_b: Matrix B in COO format
        num_workers: Number of threads to use (default: all available)

    Returns:
        COOMatrix result
    """
    multiplier = ParallelSparseMultiplication(num_workers=num_workers)
    return multiplier.multiply(coo_a, coo_b)
