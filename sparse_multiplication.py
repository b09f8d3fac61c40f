"""
Sparse Matrix Multiplication (A × B) in COO Format
Sequential naive-join algorithm with Numba acceleration.

Algorithm: COO × COO Pair Join
1. For every entry (i, k, a) of A, find every entry (k, j, b) of B
2. Accumulate a * b into accumulator[i][j]
3. Emit one (i, j, sum) triple per accumulated cell whose sum is non-zero

Time Complexity: O(nnz(A) × nnz(B)) pair comparisons
The join is intentionally naive - it is the sparse baseline being benchmarked.
Output order is unspecified; use COOMatrix.sorted() to compare results.
"""

import logging
from typing import Dict, Optional, Tuple

import numba
import numpy as np

from matrix_formats import COOMatrix


logger = logging.getLogger(__name__)

# row -> (col -> accumulated value)
Accumulator = Dict[int, Dict[int, int]]


# ============================================================================
# Numba-Accelerated Pair Join
# ============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def _join_products(rows_a, cols_a, vals_a, rows_b, cols_b, vals_b, start, end):
    """
    Products of A entries [start, end) with every B entry where rowB == colA.

    Args:
        rows_a, cols_a, vals_a: Left operand (COO arrays)
        rows_b, cols_b, vals_b: Right operand (COO arrays)
        start, end: Slice of A's entries to join

    Returns:
        (rows, cols, products) for each matching pair, in join order
    """
    nnz_b = len(rows_b)

    count = 0
    for i in range(start, end):
        col_a = cols_a[i]
        for j in range(nnz_b):
            if rows_b[j] == col_a:
                count += 1

    out_rows = np.empty(count, dtype=np.int64)
    out_cols = np.empty(count, dtype=np.int64)
    out_vals = np.empty(count, dtype=np.int64)

    k = 0
    for i in range(start, end):
        row_a = rows_a[i]
        col_a = cols_a[i]
        val_a = vals_a[i]
        for j in range(nnz_b):
            if rows_b[j] == col_a:
                out_rows[k] = row_a
                out_cols[k] = cols_b[j]
                out_vals[k] = val_a * vals_b[j]
                k += 1

    return out_rows, out_cols, out_vals


# ============================================================================
# Accumulation Helpers
# ============================================================================

def check_compatible(coo_a: COOMatrix, coo_b: COOMatrix) -> Tuple[int, int]:
    """
    Check that A × B is defined.

    Returns:
        Result shape (A rows, B cols)
    """
    if coo_a.shape[1] != coo_b.shape[0]:
        raise ValueError(
            f"Incompatible dimensions: A is {coo_a.shape}, B is {coo_b.shape}. "
            f"A's columns ({coo_a.shape[1]}) must equal B's rows ({coo_b.shape[0]})"
        )
    return coo_a.shape[0], coo_b.shape[1]


def accumulate_products(coo_a: COOMatrix, coo_b: COOMatrix,
                        start: int = 0, end: Optional[int] = None) -> Accumulator:
    """
    Join A's entries [start, end) against all of B into a fresh accumulator.

    Args:
        coo_a: Left operand
        coo_b: Right operand
        start, end: Slice of A's entries (default: all)

    Returns:
        Accumulator mapping row -> col -> summed product
    """
    if end is None:
        end = coo_a.nnz()

    rows, cols, products = _join_products(
        coo_a.rows, coo_a.cols, coo_a.vals,
        coo_b.rows, coo_b.cols, coo_b.vals,
        start, end
    )

    accumulator: Accumulator = {}
    for i, j, v in zip(rows.tolist(), cols.tolist(), products.tolist()):
        row = accumulator.setdefault(i, {})
        row[j] = row.get(j, 0) + v

    return accumulator


def accumulator_to_coo(accumulator: Accumulator, shape: Tuple[int, int]) -> COOMatrix:
    """
    Emit one triple per accumulated cell, dropping cells that sum to zero.

    Args:
        accumulator: row -> col -> value
        shape: Result shape

    Returns:
        COOMatrix with no zero values
    """
    rows, cols, vals = [], [], []
    for i, col_map in accumulator.items():
        for j, value in col_map.items():
            if value != 0:
                rows.append(i)
                cols.append(j)
                vals.append(value)

    return COOMatrix(shape, rows, cols, vals)


# ============================================================================
# Main Multiplication Function
# ============================================================================

def sparse_multiply(coo_a: COOMatrix, coo_b: COOMatrix) -> COOMatrix:
    """
    Multiply sparse matrices: C = A × B, single-threaded.

    Args:
        coo_a: Matrix A in COO format
        coo_b: Matrix B in COO format

    Returns:
        COOMatrix result (unordered, no zero entries)
    """
    result_shape = check_compatible(coo_a, coo_b)

    logger.debug(f"Sparse multiplication: A({coo_a.shape}, nnz={coo_a.nnz():,}) × "
                 f"B({coo_b.shape}, nnz={coo_b.nnz():,})")

    accumulator = accumulate_products(coo_a, coo_b)
    result = accumulator_to_coo(accumulator, result_shape)

    logger.debug(f"Result has {result.nnz():,} nonzeros")

    return result


# ============================================================================
# Verification Against scipy
# ============================================================================

def verify_multiplication_scipy(coo_a: COOMatrix, coo_b: COOMatrix, result: COOMatrix) -> bool:
    """
    Verify multiplication result against scipy.sparse.

    Args:
        coo_a, coo_b: Input matrices
        result: Our result

    Returns:
        True if correct
    """
    expected = (coo_a.to_scipy_sparse().tocsr() @ coo_b.to_scipy_sparse().tocsr()).tocsr()
    ours = result.to_scipy_sparse().tocsr()

    if ours.shape != expected.shape:
        logger.error(f"✗ Shape mismatch: ours={ours.shape}, scipy={expected.shape}")
        return False

    diff = ours - expected
    max_diff = np.abs(diff.data).max() if diff.nnz > 0 else 0

    if max_diff != 0:
        logger.error(f"✗ Verification failed: max difference = {max_diff}")
        return False

    logger.debug("✓ Verification passed! Result matches scipy.sparse")
    return True
