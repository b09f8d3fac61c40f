import numpy as np
import pytest

from generate_data import new_sparse_matrix
from helpers import WORKER_COUNTS, random_sparse_dense
from matrix_formats import COOMatrix, dense_to_coo, new_dense_matrix, sparsity


def test_coo_arrays_read_only():
    coo = COOMatrix((2, 2), [0, 1], [1, 0], [3, 4])
    with pytest.raises(ValueError):
        coo.vals[0] = 9


def test_coo_copies_input():
    vals = np.array([3, 4], dtype=np.int64)
    coo = COOMatrix((2, 2), [0, 1], [1, 0], vals)
    vals[0] = 100
    assert coo.vals[0] == 3


def test_coo_length_mismatch_rejected():
    with pytest.raises(ValueError):
        COOMatrix((2, 2), [0, 1], [1], [3, 4])


def test_coo_rejects_float_values():
    with pytest.raises(ValueError):
        COOMatrix.from_entries([(0, 0, 2.7)], (1, 1))


def test_coo_rejects_float_indices():
    with pytest.raises(ValueError):
        COOMatrix((2, 2), np.array([0.5]), [1], [3])


def test_coo_from_entries_and_iter():
    coo = COOMatrix.from_entries([(2, 1, 4), (0, 2, 6)], (3, 3))
    assert coo.nnz() == len(coo) == 2
    assert list(coo.iter_entries()) == [(2, 1, 4), (0, 2, 6)]
    assert all(type(x) is int for entry in coo.iter_entries() for x in entry)


def test_sorted_is_row_major():
    coo = COOMatrix.from_entries([(2, 1, 4), (0, 2, 6), (2, 0, 5)], (3, 3))
    assert list(coo.sorted().iter_entries()) == [(0, 2, 6), (2, 0, 5), (2, 1, 4)]


def test_to_dense_sums_duplicates():
    coo = COOMatrix.from_entries([(0, 0, 1), (0, 0, 2), (1, 1, 5)], (2, 2))
    np.testing.assert_array_equal(coo.to_dense(), [[3, 0], [0, 5]])


def test_to_scipy_sparse():
    coo = COOMatrix.from_entries([(0, 1, 7)], (2, 3))
    np.testing.assert_array_equal(coo.to_scipy_sparse().toarray(), [[0, 7, 0], [0, 0, 0]])


def test_dense_to_coo_scenario(scenario_dense):
    A, _, _ = scenario_dense
    coo = dense_to_coo(A, num_workers=2)
    assert list(coo.iter_entries()) == [(0, 1, 2), (2, 0, 5), (2, 2, 1)]
    assert coo.shape == (3, 3)


@pytest.mark.parametrize("num_workers", WORKER_COUNTS)
def test_round_trip(num_workers):
    dense = random_sparse_dense(37, 0.1, seed=num_workers)
    coo = dense_to_coo(dense, num_workers=num_workers)
    np.testing.assert_array_equal(coo.to_dense(), dense)
    assert coo.nnz() == np.count_nonzero(dense)
    assert not np.any(coo.vals == 0)


@pytest.mark.parametrize("num_workers", WORKER_COUNTS)
def test_order_is_row_major_for_every_worker_count(num_workers):
    dense = random_sparse_dense(29, 0.2, seed=11)
    coo = dense_to_coo(dense, num_workers=num_workers)

    expected_rows, expected_cols = np.nonzero(dense)
    np.testing.assert_array_equal(coo.rows, expected_rows)
    np.testing.assert_array_equal(coo.cols, expected_cols)
    np.testing.assert_array_equal(coo.vals, dense[expected_rows, expected_cols])


def test_no_duplicate_coordinates():
    dense = new_sparse_matrix(400, num_workers=8, seed=21)
    coo = dense_to_coo(dense, num_workers=8)
    pairs = set(zip(coo.rows.tolist(), coo.cols.tolist()))
    assert len(pairs) == coo.nnz()


@pytest.mark.parametrize("num_workers", [1, 8])
def test_empty_dense(num_workers):
    coo = dense_to_coo(new_dense_matrix(0), num_workers=num_workers)
    assert coo.nnz() == 0
    assert coo.shape == (0, 0)

    coo = dense_to_coo(new_dense_matrix(6), num_workers=num_workers)
    assert coo.nnz() == 0
    assert coo.shape == (6, 6)


def test_dense_to_coo_rejects_non_square():
    with pytest.raises(ValueError):
        dense_to_coo(np.zeros((2, 3), dtype=np.int64), num_workers=1)


def test_dense_to_coo_rejects_floats():
    with pytest.raises(ValueError):
        dense_to_coo(np.zeros((2, 2)), num_workers=1)


def test_new_dense_matrix_negative_size():
    with pytest.raises(ValueError):
        new_dense_matrix(-1)


def test_sparsity():
    assert sparsity(5, (10, 10)) == pytest.approx(5.0)
    assert sparsity(0, (0, 0)) == 0.0
