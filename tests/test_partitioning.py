import threading

import pytest

from partitioning import NUM_WORKERS, contiguous_ranges, resolve_num_workers, run_partitioned


def test_contiguous_ranges_example():
    assert contiguous_ranges(10, 3) == [(0, 4), (4, 7), (7, 10)]


def test_contiguous_ranges_remainder_goes_to_first_blocks():
    sizes = [end - start for start, end in contiguous_ranges(11, 4)]
    assert sizes == [3, 3, 3, 2]


@pytest.mark.parametrize("count", [0, 1, 2, 5, 17, 100, 1001])
@pytest.mark.parametrize("num_workers", [1, 2, 3, 7, 8, 13, 64])
def test_contiguous_ranges_cover_every_index_once(count, num_workers):
    ranges = contiguous_ranges(count, num_workers)
    assert len(ranges) == num_workers

    covered = [i for start, end in ranges for i in range(start, end)]
    assert covered == list(range(count))

    # Contiguous, increasing, sizes differ by at most one
    for (_, end), (start, _) in zip(ranges, ranges[1:]):
        assert end == start
    sizes = [end - start for start, end in ranges]
    assert max(sizes) - min(sizes) <= 1


def test_more_workers_than_items_gives_empty_trailing_ranges():
    ranges = contiguous_ranges(2, 5)
    assert ranges == [(0, 1), (1, 2), (2, 2), (2, 2), (2, 2)]


@pytest.mark.parametrize("bad", [0, -1, 2.5, True])
def test_resolve_num_workers_rejects_invalid(bad):
    with pytest.raises(ValueError):
        resolve_num_workers(bad)


def test_resolve_num_workers_defaults_to_hardware():
    assert resolve_num_workers(None) == NUM_WORKERS
    assert NUM_WORKERS >= 1


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        contiguous_ranges(-1, 2)


def test_run_partitioned_returns_results_in_worker_order():
    results = run_partitioned(lambda t, start, end: (t, start, end), 10, 4)
    assert results == [(0, 0, 3), (1, 3, 6), (2, 6, 8), (3, 8, 10)]


def test_run_partitioned_uses_separate_threads():
    seen = set()
    lock = threading.Lock()
    barrier = threading.Barrier(3, timeout=10)

    def task(t, start, end):
        # All three workers must be alive at once to pass the barrier
        barrier.wait()
        with lock:
            seen.add(threading.get_ident())

    run_partitioned(task, 3, 3)
    assert len(seen) == 3


def test_run_partitioned_propagates_worker_errors():
    def task(t, start, end):
        if t == 1:
            raise RuntimeError("worker failed")
        return t

    with pytest.raises(RuntimeError, match="worker failed"):
        run_partitioned(task, 4, 2)
