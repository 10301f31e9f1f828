"""Vector builders shared across test modules."""

import numpy as np

from core.vectors import DenseVector, SparseVector


def to_dense_vectors(X):
    return [DenseVector(row) for row in X]


def to_sparse_vectors(X):
    out = []
    for row in X:
        idx = np.flatnonzero(row)
        out.append(SparseVector(row.shape[0], idx, row[idx]))
    return out
