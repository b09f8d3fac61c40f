"""
Dense vs Sparse Multiplication Benchmark
Times every stage of the pipeline for two random sparse n×n matrices.

Stages:
1. Generation of both operands (parallel, probability 1/n per cell)
2. Dense -> COO conversion of both operands (parallel row blocks)
3. Classical triple-loop multiplication, single-threaded
4. Classical triple-loop multiplication, multi-threaded
5. COO multiplication, single-threaded
6. COO multiplication, multi-threaded

Usage:
    python benchmark.py --size 500
    python benchmark.py --size 2000 --workers 8 --skip-dense --repeat 5
    python benchmark.py                # asks for the size on stdin
"""

import argparse
import logging
import sys
import time
from typing import Callable, Dict, List, Optional

import numpy as np
from tabulate import tabulate
from tqdm import tqdm

from dense_baseline import dense_multiply_naive, dense_multiply_numpy, dense_multiply_threaded
from generate_data import SparseMatrixGenerator
from matrix_formats import COOMatrix, dense_to_coo, print_matrix_info
from partitioning import NUM_WORKERS, resolve_num_workers
from sparse_multiplication import sparse_multiply, verify_multiplication_scipy
from sparse_multiplication_parallel import ParallelSparseMultiplication


logger = logging.getLogger(__name__)

STAGE_GENERATION = "Generation"
STAGE_CONVERSION = "COO conversion"
STAGE_DENSE_SINGLE = "Singlethreaded classical multiplication"
STAGE_DENSE_THREADED = "Multithreaded classical multiplication"
STAGE_COO_SINGLE = "COO multiplication"
STAGE_COO_THREADED = "Multithreaded COO multiplication"

STAGES = [
    STAGE_GENERATION,
    STAGE_CONVERSION,
    STAGE_DENSE_SINGLE,
    STAGE_DENSE_THREADED,
    STAGE_COO_SINGLE,
    STAGE_COO_THREADED,
]

# Above this size operands and results are not printed
MAX_PRINT_SIZE = 20


# ============================================================================
# Warmup
# ============================================================================

def warm_up_kernels():
    """
    Compile the numba kernels on a tiny input so JIT time stays out of the
    timed stages. Goes through the public functions so the compiled
    signatures (read-only COO arrays included) match the timed calls.
    """
    tiny = np.array([[1, 0], [0, 2]], dtype=np.int64)
    coo = dense_to_coo(tiny, 1)
    sparse_multiply(coo, coo)
    dense_multiply_naive(tiny, tiny)


# ============================================================================
# Presentation Helpers
# ============================================================================

def print_matrix(matrix: np.ndarray, file=None):
    """Print a dense matrix as '| a | b | c | ' rows."""
    file = file or sys.stdout
    for row in matrix.tolist():
        print("| " + "".join(f"{value} | " for value in row), file=file)


def prompt_size() -> int:
    """Ask for the matrix size on stdin."""
    raw = input("Choose your matrices size\n")
    return parse_size(raw)


def parse_size(raw) -> int:
    """Parse and validate a matrix size."""
    try:
        size = int(str(raw).strip())
    except ValueError:
        raise ValueError(f"Matrix size must be an integer, got {raw!r}") from None

    if size < 0:
        raise ValueError(f"Matrix size must be non-negative, got {size}")

    return size


# ============================================================================
# Benchmark Class
# ============================================================================

class MatrixBenchmark:
    """
    One benchmark run: generate, convert, multiply, time and (optionally) verify.
    """

    def __init__(self,
                 size: int,
                 num_workers: Optional[int] = None,
                 seed: Optional[int] = None,
                 skip_dense: bool = False,
                 verify: bool = False,
                 show: bool = False,
                 logger: Optional[logging.Logger] = None):
        """
        Args:
            size: Matrix dimension n
            num_workers: Number of worker threads (default: CPU count)
            seed: Random seed for the operands (None = OS entropy)
            skip_dense: Skip the O(n³) classical multiplications
            verify: Check every product against the NumPy/scipy reference
            show: Print operands and results (small sizes only)
            logger: Optional logger instance
        """
        self.size = parse_size(size)
        self.num_workers = resolve_num_workers(num_workers)
        self.seed = seed
        self.skip_dense = skip_dense
        self.verify = verify
        self.show = show and self.size <= MAX_PRINT_SIZE
        self.logger = logger or logging.getLogger(__name__)
        self.benchmarks: Dict[str, float] = {}

    def _timed(self, stage: str, func: Callable, *args):
        """Run func(*args), record and log its elapsed time under stage."""
        start = time.perf_counter()
        result = func(*args)
        elapsed = time.perf_counter() - start

        self.benchmarks[stage] = self.benchmarks.get(stage, 0.0) + elapsed
        self.logger.info(f"{stage} time: {elapsed * 1000:.3f} ms")

        return result

    def run(self) -> dict:
        """
        Execute every stage once.

        Returns:
            Report dictionary with timings, nonzero counts and verification status
        """
        n = self.size
        self.logger.info(f"Benchmark: {n}×{n} matrices, {self.num_workers} workers")

        estimates = SparseMatrixGenerator.estimate_memory(n)
        self.logger.info(f"Memory estimate: {2 * estimates['total_mb']:.1f} MB for both operands")

        # Warmup
        warm_up_kernels()

        generator = SparseMatrixGenerator(num_workers=self.num_workers, seed=self.seed)

        def generate_operands():
            return generator.generate(n), generator.generate(n)

        def convert_operands():
            return (dense_to_coo(dense_a, self.num_workers),
                    dense_to_coo(dense_b, self.num_workers))

        dense_a, dense_b = self._timed(STAGE_GENERATION, generate_operands)
        coo_a, coo_b = self._timed(STAGE_CONVERSION, convert_operands)

        print_matrix_info(coo_a, "A")
        print_matrix_info(coo_b, "B")

        dense_results = {}
        if not self.skip_dense:
            dense_results[STAGE_DENSE_SINGLE] = self._timed(
                STAGE_DENSE_SINGLE, dense_multiply_naive, dense_a, dense_b)
            dense_results[STAGE_DENSE_THREADED] = self._timed(
                STAGE_DENSE_THREADED, dense_multiply_threaded, dense_a, dense_b, self.num_workers)
        else:
            self.logger.info("Classical multiplication: SKIPPED")

        parallel = ParallelSparseMultiplication(num_workers=self.num_workers, logger=self.logger)
        sparse_results = {
            STAGE_COO_SINGLE: self._timed(STAGE_COO_SINGLE, sparse_multiply, coo_a, coo_b),
            STAGE_COO_THREADED: self._timed(STAGE_COO_THREADED, parallel.multiply, coo_a, coo_b),
        }

        if self.show:
            self._show(dense_a, dense_b, sparse_results[STAGE_COO_SINGLE])

        verified = None
        if self.verify:
            verified = self._verify(dense_a, dense_b, coo_a, coo_b, dense_results, sparse_results)

        return {
            'size': n,
            'num_workers': self.num_workers,
            'timings': dict(self.benchmarks),
            'nnz': {
                'A': coo_a.nnz(),
                'B': coo_b.nnz(),
                'C': sparse_results[STAGE_COO_SINGLE].nnz(),
            },
            'verified': verified,
        }

    def _verify(self, dense_a, dense_b, coo_a, coo_b,
                dense_results: Dict[str, np.ndarray],
                sparse_results: Dict[str, COOMatrix]) -> bool:
        """Compare every product with the NumPy reference and scipy."""
        expected = dense_multiply_numpy(dense_a, dense_b)
        ok = True

        for stage, result in dense_results.items():
            if not np.array_equal(result, expected):
                self.logger.error(f"✗ {stage}: result differs from NumPy reference")
                ok = False

        for stage, result in sparse_results.items():
            if not np.array_equal(result.to_dense(), expected):
                self.logger.error(f"✗ {stage}: result differs from NumPy reference")
                ok = False
            elif not verify_multiplication_scipy(coo_a, coo_b, result):
                ok = False

        if ok:
            self.logger.info("✓ All products match the reference")
        return ok

    def _show(self, dense_a, dense_b, result: COOMatrix):
        print("A:")
        print_matrix(dense_a)
        print("B:")
        print_matrix(dense_b)
        print("A × B:")
        print_matrix(result.to_dense())


def run_benchmark(size: int,
                  num_workers: Optional[int] = None,
                  seed: Optional[int] = None,
                  skip_dense: bool = False,
                  verify: bool = False,
                  show: bool = False) -> dict:
    """
    Run one benchmark and return its report.

    Args:
        size: Matrix dimension n
        num_workers: Number of worker threads (default: CPU count)
        seed: Random seed (None = OS entropy)
        skip_dense: Skip the classical O(n³) multiplications
        verify: Check every product against the reference
        show: Print operands and result (small sizes only)

    Returns:
        Report dictionary (see MatrixBenchmark.run)
    """
    benchmark = MatrixBenchmark(size, num_workers=num_workers, seed=seed,
                                skip_dense=skip_dense, verify=verify, show=show)
    return benchmark.run()


# ============================================================================
# Summary
# ============================================================================

def summarize(reports: List[dict]) -> str:
    """
    Build a summary table (mean and best time per stage) for one or more runs.

    Returns:
        Table as text
    """
    headers = ["Stage", "Mean (ms)", "Best (ms)", "Runs"]
    table_data = []

    for stage in STAGES:
        times = [report['timings'][stage] for report in reports if stage in report['timings']]
        if not times:
            continue
        table_data.append([
            stage,
            float(np.mean(times)) * 1000,
            min(times) * 1000,
            len(times),
        ])

    return tabulate(table_data, headers=headers, tablefmt="grid", floatfmt=".3f")


# ============================================================================
# Main Function
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Benchmark dense vs sparse (COO) multiplication of random sparse matrices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Small run with verification and printed matrices
  python benchmark.py --size 8 --verify --print

  # Sparse-only timings, averaged over 5 runs
  python benchmark.py --size 5000 --skip-dense --repeat 5
        """
    )

    parser.add_argument('--size', '-n', type=int, help='Matrix dimension (prompted when omitted)')
    parser.add_argument('--workers', '-w', type=int, default=NUM_WORKERS,
                        help=f'Number of worker threads (default: {NUM_WORKERS})')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--repeat', type=int, default=1, help='Number of benchmark runs')
    parser.add_argument('--skip-dense', action='store_true', help='Skip classical O(n³) multiplication')
    parser.add_argument('--verify', action='store_true', help='Verify every product against NumPy/scipy')
    parser.add_argument('--print', dest='show', action='store_true',
                        help=f'Print matrices (only for size <= {MAX_PRINT_SIZE})')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for the benchmark."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s: %(message)s'
    )

    if args.repeat < 1:
        parser.error("--repeat must be at least 1")

    try:
        size = args.size if args.size is not None else prompt_size()
        size = parse_size(size)
        num_workers = resolve_num_workers(args.workers)
    except ValueError as e:
        parser.error(str(e))

    reports = []
    for run in tqdm(range(args.repeat), desc="Benchmark runs", unit=" run", disable=args.repeat == 1):
        seed = None if args.seed is None else args.seed + run
        reports.append(run_benchmark(
            size,
            num_workers=num_workers,
            seed=seed,
            skip_dense=args.skip_dense,
            verify=args.verify,
            show=args.show and run == 0,
        ))

    print(summarize(reports))

    if args.verify and not all(report['verified'] for report in reports):
        logger.error("✗ Verification failed")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
