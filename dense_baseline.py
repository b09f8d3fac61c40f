"""
Dense Matrix Operations - Baseline for Comparison
Implements the classical triple-loop multiplication for dense matrices.

Purpose: Provide baseline to show sparse algorithms are faster, and a
reference result the sparse multipliers can be checked against.

Time Complexity:
- Multiplication: O(n³) - three nested loops, regardless of sparsity

This is much slower than sparse algorithms for sparse matrices!
"""

import logging
from typing import Optional

import numba
import numpy as np

from matrix_formats import COOMatrix
from partitioning import resolve_num_workers, run_partitioned


logger = logging.getLogger(__name__)


# ============================================================================
# Numba-Accelerated Triple Loop
# ============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def _multiply_rows(A, B, C, row_start, row_end):
    """
    Accumulate rows [row_start, row_end) of C = A × B in place.

    This is the textbook algorithm:
    C[i,j] = sum over k of A[i,k] * B[k,j]
    """
    n = A.shape[1]
    p = B.shape[1]

    for i in range(row_start, row_end):
        for j in range(p):
            for k in range(n):
                C[i, j] += A[i, k] * B[k, j]


def _prepare_operands(A: np.ndarray, B: np.ndarray):
    """Check dimensions and return int64 operands plus a zeroed result."""
    if A.ndim != 2 or B.ndim != 2 or A.shape[1] != B.shape[0]:
        raise ValueError(f"Incompatible dimensions: {A.shape} × {B.shape}")

    A = np.ascontiguousarray(A, dtype=np.int64)
    B = np.ascontiguousarray(B, dtype=np.int64)
    C = np.zeros((A.shape[0], B.shape[1]), dtype=np.int64)
    return A, B, C


# ============================================================================
# Dense Matrix Multiplication
# ============================================================================

def dense_multiply_naive(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Dense matrix multiplication using 3 nested loops, single-threaded.
    O(n³) complexity - very slow!

    Args:
        A: m × n matrix
        B: n × p matrix

    Returns:
        C: m × p matrix
    """
    A, B, C = _prepare_operands(A, B)
    _multiply_rows(A, B, C, 0, A.shape[0])
    return C


def dense_multiply_threaded(A: np.ndarray, B: np.ndarray,
                            num_workers: Optional[int] = None) -> np.ndarray:
    """
    Dense 3-loop multiplication with rows of C split across threads.

    Each worker owns a contiguous block of result rows, so no two workers
    write the same cell.

    Args:
        A: m × n matrix
        B: n × p matrix
        num_workers: Number of threads (default: CPU count)

    Returns:
        C: m × p matrix
    """
    num_workers = resolve_num_workers(num_workers)
    A, B, C = _prepare_operands(A, B)

    def multiply_block(worker_id: int, row_start: int, row_end: int):
        _multiply_rows(A, B, C, row_start, row_end)

    run_partitioned(multiply_block, A.shape[0], num_workers)

    logger.debug(f"Threaded dense multiplication done with {num_workers} workers")

    return C


def dense_multiply_numpy(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Dense matrix multiplication using NumPy (highly optimized).

    Args:
        A: m × n matrix
        B: n × p matrix

    Returns:
        C: m × p matrix
    """
    A, B, _ = _prepare_operands(A, B)
    return A @ B


# ============================================================================
# Conversion Helpers
# ============================================================================

def coo_to_dense(coo: COOMatrix) -> np.ndarray:
    """
    Convert sparse COO matrix to dense NumPy array.

    WARNING: Only use for small matrices!
    A 10,000 × 10,000 dense int64 matrix needs 800 MB RAM.

    Args:
        coo: COOMatrix

    Returns:
        Dense NumPy array
    """
    return coo.to_dense()
