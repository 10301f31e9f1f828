import numpy as np
import pytest

from core.errors import UnsupportedVectorType
from core.vectors import DenseVector, SparseVector, as_vector, dense, sparse, to_dense


def test_dense_is_read_only():
    v = DenseVector([1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        v.values[0] = 10.0


def test_dense_copies_input():
    arr = np.array([1.0, 2.0])
    v = DenseVector(arr)
    arr[0] = 99.0
    assert v[0] == 1.0


def test_dense_rejects_2d():
    with pytest.raises(ValueError, match="1-D"):
        DenseVector(np.ones((2, 2)))


def test_sparse_accessors():
    v = sparse(5, [1, 3], [2.0, -4.0])
    assert v.size == len(v) == 5
    assert v.nnz == 2
    assert v[1] == 2.0
    assert v[0] == 0.0
    assert v[-2] == -4.0
    np.testing.assert_array_equal(v.toarray(), [0.0, 2.0, 0.0, -4.0, 0.0])


def test_sparse_index_out_of_bounds_getitem():
    with pytest.raises(IndexError):
        sparse(3, [0], [1.0])[3]


@pytest.mark.parametrize(
    "size, indices, values, match",
    [
        (3, [0, 1], [1.0], "differ in length"),
        (3, [1, 0], [1.0, 2.0], "strictly increasing"),
        (3, [1, 1], [1.0, 2.0], "strictly increasing"),
        (3, [0, 3], [1.0, 2.0], "out of range"),
        (-1, [], [], "size"),
    ],
)
def test_sparse_validation(size, indices, values, match):
    with pytest.raises(ValueError, match=match):
        SparseVector(size, indices, values)


def test_dense_and_sparse_compare_by_content():
    assert dense([0.0, 2.0, 0.0]) == sparse(3, [1], [2.0])
    assert dense([0.0, 2.0]) != sparse(3, [1], [2.0])


def test_as_vector_passthrough_and_arrays():
    v = dense([1.0])
    assert as_vector(v) is v
    assert isinstance(as_vector([1.0, 2.0]), DenseVector)
    assert as_vector(np.array([[1.0, 2.0]])).size == 2


def test_as_vector_scipy_row():
    sp = pytest.importorskip("scipy.sparse")
    row = sp.csr_matrix(np.array([[0.0, 3.0, 0.0, 1.5]]))
    v = as_vector(row)
    assert isinstance(v, SparseVector)
    np.testing.assert_array_equal(v.indices, [1, 3])
    np.testing.assert_array_equal(v.values, [3.0, 1.5])


def test_to_dense():
    v = sparse(3, [2], [7.0])
    d = to_dense(v)
    assert isinstance(d, DenseVector)
    np.testing.assert_array_equal(d.values, [0.0, 0.0, 7.0])
    assert to_dense(d) is d
    with pytest.raises(UnsupportedVectorType, match="list"):
        to_dense([1.0, 2.0])
