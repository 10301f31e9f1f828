"""
vectors.py
──────────
Immutable dense and sparse vectors — the two representations the
summarizer and the scaler model know how to handle.

Representations
───────────────
    DenseVector(values)                 one float64 per index
    SparseVector(size, indices, values) only the stored (index, value)
                                        pairs plus the total length

    Vector = DenseVector | SparseVector

Every consumer dispatches with a ``match`` over these two classes so the
sparse code paths can stay O(nnz).  Anything else reaching those code
paths is rejected with UnsupportedVectorType.

Immutability
────────────
The backing NumPy buffers are copied on construction and flagged
read-only, so a vector can be shared freely between threads and
returned unchanged by an identity transform.
"""

import numpy as np

from core.errors import UnsupportedVectorType


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


class DenseVector:
    """A vector storing a value for every index.

    Parameters
    ----------
    values : array-like of shape (n,)
    """

    __slots__ = ("_values",)

    def __init__(self, values):
        arr = np.array(values, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError(f"DenseVector needs a 1-D array, got shape {arr.shape}.")
        self._values = _frozen(arr)

    @property
    def size(self) -> int:
        return self._values.shape[0]

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the stored values."""
        return self._values

    @property
    def nnz(self) -> int:
        return int(np.count_nonzero(self._values))

    def toarray(self) -> np.ndarray:
        """Writable copy as a NumPy array."""
        return self._values.copy()

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, i: int) -> float:
        return float(self._values[i])

    def __eq__(self, other) -> bool:
        if not isinstance(other, (DenseVector, SparseVector)):
            return NotImplemented
        return other.size == self.size and np.array_equal(self._values, other.toarray())

    __hash__ = None

    def __repr__(self) -> str:
        return f"DenseVector({self._values.tolist()})"


class SparseVector:
    """A vector storing only (index, value) pairs plus its total length.

    Parameters
    ----------
    size : int
        Total length.  Must be ≥ 0.
    indices : array-like of int
        Strictly increasing positions in [0, size).
    values : array-like of float
        Same length as ``indices``.  Explicit zeros are allowed.
    """

    __slots__ = ("_size", "_indices", "_values")

    def __init__(self, size: int, indices, values):
        size    = int(size)
        indices = np.array(indices, dtype=np.int64).ravel()
        values  = np.array(values,  dtype=np.float64).ravel()

        if size < 0:
            raise ValueError(f"SparseVector size must be ≥ 0, got {size}.")
        if indices.shape != values.shape:
            raise ValueError(
                f"indices and values differ in length: {indices.shape[0]} vs {values.shape[0]}."
            )
        if indices.size:
            if np.any(np.diff(indices) <= 0):
                raise ValueError("SparseVector indices must be strictly increasing.")
            if indices[0] < 0 or indices[-1] >= size:
                raise ValueError(f"SparseVector indices out of range [0, {size}).")

        self._size    = size
        self._indices = _frozen(indices)
        self._values  = _frozen(values)

    @classmethod
    def _from_arrays(cls, size: int, indices: np.ndarray, values: np.ndarray) -> "SparseVector":
        # trusted constructor: indices already validated and frozen, shared as-is
        vec = cls.__new__(cls)
        vec._size    = size
        vec._indices = indices
        vec._values  = _frozen(values)
        return vec

    @property
    def size(self) -> int:
        return self._size

    @property
    def indices(self) -> np.ndarray:
        return self._indices

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def nnz(self) -> int:
        return int(np.count_nonzero(self._values))

    def toarray(self) -> np.ndarray:
        out = np.zeros(self._size, dtype=np.float64)
        out[self._indices] = self._values
        return out

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, i: int) -> float:
        if i < 0:
            i += self._size
        if not 0 <= i < self._size:
            raise IndexError(f"index {i} out of range for size {self._size}")
        pos = np.searchsorted(self._indices, i)
        if pos < self._indices.size and self._indices[pos] == i:
            return float(self._values[pos])
        return 0.0

    def __eq__(self, other) -> bool:
        if not isinstance(other, (DenseVector, SparseVector)):
            return NotImplemented
        return other.size == self._size and np.array_equal(self.toarray(), other.toarray())

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"SparseVector({self._size}, {self._indices.tolist()}, "
            f"{self._values.tolist()})"
        )


Vector = DenseVector | SparseVector


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────

def dense(values) -> DenseVector:
    return DenseVector(values)


def sparse(size: int, indices, values) -> SparseVector:
    return SparseVector(size, indices, values)


def as_vector(obj) -> Vector:
    """Coerce *obj* to a Vector.

    Accepts an existing DenseVector / SparseVector (returned as-is), a
    single-row ``scipy.sparse`` matrix or array (→ SparseVector), or any
    1-D array-like (→ DenseVector).
    """
    if isinstance(obj, (DenseVector, SparseVector)):
        return obj

    if hasattr(obj, "tocsr") and hasattr(obj, "nnz"):
        row = obj.tocsr(copy=True)
        if row.shape[0] != 1:
            raise ValueError(f"Expected a single-row sparse matrix, got shape {row.shape}.")
        row.sum_duplicates()
        row.sort_indices()
        return SparseVector(row.shape[1], row.indices, row.data)

    arr = np.asarray(obj, dtype=np.float64)
    if arr.ndim == 2 and arr.shape[0] == 1:
        arr = arr[0]
    return DenseVector(arr)


def to_dense(vector: Vector) -> DenseVector:
    """Densify any Vector (a DenseVector is returned unchanged)."""
    match vector:
        case DenseVector():
            return vector
        case SparseVector():
            return DenseVector(vector.toarray())
        case _:
            raise UnsupportedVectorType(vector)
