"""
Matrix Formats for Dense vs Sparse Benchmarking
Dense n×n integer matrices and the coordinate (COO) sparse format.

Key Design:
- Dense matrices are plain int64 NumPy arrays, zero-initialized
- COOMatrix holds three equal-length int64 arrays (rows, cols, vals), read-only after construction
- Dense -> COO extraction is split by row blocks across threads
- Numba JIT (nogil) scan kernel so worker threads really run concurrently
- scipy.sparse for verification and comparison
"""

import logging
from typing import Iterable, Iterator, Optional, Tuple

import numba
import numpy as np
from scipy import sparse as sp

from partitioning import resolve_num_workers, run_partitioned


logger = logging.getLogger(__name__)


# ============================================================================
# Numba-Accelerated Helper Functions
# ============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def _scan_row_block(matrix, row_start, row_end):
    """
    Collect the non-zero cells of rows [row_start, row_end).

    Scan order is row-major, then column-major within a row.

    Args:
        matrix: Dense 2-D integer array
        row_start: First row (inclusive)
        row_end: Last row (exclusive)

    Returns:
        (rows, cols, vals) arrays for the block
    """
    num_cols = matrix.shape[1]

    # Count first so the output is allocated once
    count = 0
    for i in range(row_start, row_end):
        for j in range(num_cols):
            if matrix[i, j] != 0:
                count += 1

    rows = np.empty(count, dtype=np.int64)
    cols = np.empty(count, dtype=np.int64)
    vals = np.empty(count, dtype=np.int64)

    k = 0
    for i in range(row_start, row_end):
        for j in range(num_cols):
            if matrix[i, j] != 0:
                rows[k] = i
                cols[k] = j
                vals[k] = matrix[i, j]
                k += 1

    return rows, cols, vals


def _frozen_int_array(values) -> np.ndarray:
    """Copy integer values into a 1-D read-only int64 array."""
    arr = np.asarray(values)
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"COO arrays must hold integers, got dtype {arr.dtype}")

    arr = np.array(arr, dtype=np.int64).reshape(-1)
    arr.setflags(write=False)
    return arr


# ============================================================================
# Dense Matrix
# ============================================================================

def new_dense_matrix(n: int) -> np.ndarray:
    """
    Allocate a zero-filled n×n integer matrix.

    Args:
        n: Matrix dimension

    Returns:
        int64 NumPy array of shape (n, n)
    """
    if n < 0:
        raise ValueError(f"Matrix size must be non-negative, got {n}")
    return np.zeros((n, n), dtype=np.int64)


def check_square(matrix: np.ndarray, name: str = "Matrix") -> int:
    """
    Check that matrix is a square 2-D integer array.

    Returns:
        The dimension n
    """
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"{name} must be square, got shape {matrix.shape}")
    if not np.issubdtype(matrix.dtype, np.integer):
        raise ValueError(f"{name} must hold integers, got dtype {matrix.dtype}")
    return matrix.shape[0]


# ============================================================================
# COO Matrix
# ============================================================================

class COOMatrix:
    """
    Coordinate (COO) format: parallel arrays of (row, col, value) triples.

    Index k is the entry at (rows[k], cols[k]) with value vals[k]. The three
    arrays always have the same length and are read-only, so a COOMatrix
    handed out by a conversion or multiplication never changes afterwards.
    Entry order carries no meaning unless documented by the producer.
    """

    def __init__(self, shape: Tuple[int, int], rows, cols, vals):
        """
        Args:
            shape: (num_rows, num_cols)
            rows: Row index of each entry
            cols: Column index of each entry
            vals: Value of each entry
        """
        self.shape = (int(shape[0]), int(shape[1]))
        self.rows = _frozen_int_array(rows)
        self.cols = _frozen_int_array(cols)
        self.vals = _frozen_int_array(vals)

        if not (len(self.rows) == len(self.cols) == len(self.vals)):
            raise ValueError(
                f"COO arrays must have equal length: rows={len(self.rows)}, "
                f"cols={len(self.cols)}, vals={len(self.vals)}"
            )

    @classmethod
    def empty(cls, shape: Tuple[int, int]) -> 'COOMatrix':
        """Create a COOMatrix with no stored entries."""
        return cls(shape, [], [], [])

    @classmethod
    def from_entries(cls, entries: Iterable[Tuple[int, int, int]],
                     shape: Tuple[int, int]) -> 'COOMatrix':
        """
        Create COOMatrix from (row, col, value) triples.

        Args:
            entries: Iterable of (i, j, v) triples
            shape: (num_rows, num_cols)

        Returns:
            COOMatrix instance
        """
        entries = list(entries)
        rows = [i for i, j, v in entries]
        cols = [j for i, j, v in entries]
        vals = [v for i, j, v in entries]
        return cls(shape, rows, cols, vals)

    def __len__(self) -> int:
        return len(self.vals)

    def __repr__(self) -> str:
        return f"COOMatrix(shape={self.shape}, nnz={self.nnz()})"

    def nnz(self) -> int:
        """Return number of stored entries."""
        return len(self.vals)

    def iter_entries(self) -> Iterator[Tuple[int, int, int]]:
        """
        Iterate over stored entries as plain Python ints.

        Yields:
            (row, col, value) tuples in storage order
        """
        for i, j, v in zip(self.rows.tolist(), self.cols.tolist(), self.vals.tolist()):
            yield i, j, v

    def sorted(self) -> 'COOMatrix':
        """
        Return a copy with entries in canonical row-major order.

        Multipliers leave their output unordered; use this when a
        reproducible order is needed (comparisons, printing).
        """
        order = np.lexsort((self.cols, self.rows))
        return COOMatrix(self.shape, self.rows[order], self.cols[order], self.vals[order])

    def to_dense(self) -> np.ndarray:
        """
        Rebuild the dense matrix. Duplicate coordinates are summed and
        absent coordinates are zero.

        WARNING: Only use for small matrices!

        Returns:
            int64 NumPy array of shape self.shape
        """
        dense = np.zeros(self.shape, dtype=np.int64)
        np.add.at(dense, (self.rows, self.cols), self.vals)
        return dense

    def to_scipy_sparse(self) -> sp.coo_matrix:
        """
        Convert to scipy.sparse.coo_matrix for verification.

        Returns:
            scipy.sparse.coo_matrix
        """
        # scipy may sum duplicates in place, so hand it writable copies
        return sp.coo_matrix(
            (self.vals.copy(), (self.rows.copy(), self.cols.copy())),
            shape=self.shape
        )


# ============================================================================
# Dense -> COO Conversion
# ============================================================================

def dense_to_coo(matrix: np.ndarray, num_workers: Optional[int] = None) -> COOMatrix:
    """
    Convert a dense square matrix to COO format using parallel row blocks.

    Algorithm:
    1. Split rows into contiguous blocks (first n % W blocks get one extra row)
    2. Each worker scans its block into worker-local buffers
    3. After all workers join, buffers are concatenated in worker order

    The output order is therefore a full row-major scan, independent of
    the worker count. Every non-zero cell appears exactly once.

    Args:
        matrix: Dense n×n integer array
        num_workers: Number of threads (default: CPU count)

    Returns:
        COOMatrix with one entry per non-zero cell
    """
    num_workers = resolve_num_workers(num_workers)
    n = check_square(matrix)
    matrix = np.ascontiguousarray(matrix, dtype=np.int64)

    logger.debug(f"Converting {n}×{n} dense matrix to COO with {num_workers} workers")

    def scan_rows(worker_id: int, row_start: int, row_end: int):
        return _scan_row_block(matrix, row_start, row_end)

    blocks = run_partitioned(scan_rows, n, num_workers)

    rows = np.concatenate([block[0] for block in blocks])
    cols = np.concatenate([block[1] for block in blocks])
    vals = np.concatenate([block[2] for block in blocks])

    logger.debug(f"COO extracted: {len(vals):,} nonzeros")

    return COOMatrix((n, n), rows, cols, vals)


# ============================================================================
# Utility Functions
# ============================================================================

def sparsity(nnz: int, shape: Tuple[int, int]) -> float:
    """Percentage of stored entries relative to shape[0] * shape[1]."""
    total_entries = shape[0] * shape[1]
    return (nnz / total_entries * 100) if total_entries > 0 else 0.0


def print_matrix_info(matrix, name: str = "Matrix"):
    """
    Log statistics about a matrix.

    Args:
        matrix: COOMatrix or dense NumPy array
        name: Name to display
    """
    if isinstance(matrix, COOMatrix):
        nnz = matrix.nnz()
        logger.info(f"{name} (COO): shape={matrix.shape}, nnz={nnz:,}")
    else:
        nnz = int(np.count_nonzero(matrix))
        logger.info(f"{name} (dense): shape={matrix.shape}, nnz={nnz:,}")

    total_entries = matrix.shape[0] * matrix.shape[1]
    logger.info(f"  Sparsity: {sparsity(nnz, matrix.shape):.4f}% ({nnz:,} / {total_entries:,})")
