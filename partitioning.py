"""
Work Partitioning for Multi-threaded Matrix Operations
Splits an index range into contiguous blocks and fans work out across threads.

Key Design:
- Contiguous range partition: count // W per block, first (count % W) blocks get one extra
- One fresh thread pool per call (fan-out, join, done) - no persistent pool
- Results always returned in worker-index order after the join barrier
- Worker count derived once from hardware concurrency
"""

import logging
from multiprocessing import cpu_count
from multiprocessing.pool import ThreadPool
from typing import Callable, List, Optional, Tuple, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Hardware parallelism, fixed for the lifetime of the process
NUM_WORKERS = cpu_count()


# ============================================================================
# Partition Helpers
# ============================================================================

def resolve_num_workers(num_workers: Optional[int] = None) -> int:
    """
    Validate a worker count, falling back to the hardware default.

    Args:
        num_workers: Requested number of workers (None = NUM_WORKERS)

    Returns:
        Positive worker count
    """
    if num_workers is None:
        return NUM_WORKERS

    if isinstance(num_workers, bool) or not isinstance(num_workers, int):
        raise ValueError(f"Worker count must be an integer, got {num_workers!r}")
    if num_workers < 1:
        raise ValueError(f"Worker count must be at least 1, got {num_workers}")

    return num_workers


def contiguous_ranges(count: int, num_workers: int) -> List[Tuple[int, int]]:
    """
    Split [0, count) into num_workers nearly-equal contiguous blocks.

    The first (count % num_workers) blocks receive one extra index, so block
    sizes never differ by more than one. When count < num_workers the
    trailing blocks are empty.

    Example:
        contiguous_ranges(10, 3) -> [(0, 4), (4, 7), (7, 10)]

    Args:
        count: Number of indices to split (rows, entries, ...)
        num_workers: Number of blocks

    Returns:
        List of half-open (start, end) ranges in increasing order
    """
    num_workers = resolve_num_workers(num_workers)
    if count < 0:
        raise ValueError(f"Cannot partition a negative count: {count}")

    per_worker, remainder = divmod(count, num_workers)

    ranges = []
    start = 0
    for t in range(num_workers):
        end = start + per_worker + (1 if t < remainder else 0)
        ranges.append((start, end))
        start = end

    return ranges


# ============================================================================
# Fan-out / Join
# ============================================================================

def run_partitioned(task: Callable[[int, int, int], T],
                    count: int,
                    num_workers: Optional[int] = None) -> List[T]:
    """
    Run task(worker_index, start, end) once per contiguous range, in parallel.

    A new pool of num_workers threads is created for the call and joined
    before returning, so every worker write is visible to the caller. If any
    worker raises, the exception propagates once the pool is torn down.

    Args:
        task: Worker function taking (worker_index, start, end)
        count: Size of the index range to split
        num_workers: Number of threads (default: NUM_WORKERS)

    Returns:
        Task results in worker-index order
    """
    num_workers = resolve_num_workers(num_workers)
    ranges = contiguous_ranges(count, num_workers)
    work_items = [(t, start, end) for t, (start, end) in enumerate(ranges)]

    logger.debug(f"Fan-out: {count:,} items across {num_workers} workers")

    if num_workers == 1:
        return [task(*work_items[0])]

    with ThreadPool(processes=num_workers) as pool:
        results = pool.starmap(task, work_items)

    return results
