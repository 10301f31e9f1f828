"""
online_summarizer.py
────────────────────
Per-column running statistics for a collection of vectors, mergeable
across partitions.

Why this exists
───────────────
Standardisation needs the mean and variance of every column.  The data
arrives partition by partition and may be far larger than memory, so
the statistics are kept as a constant-size running summary that is
updated one vector at a time and combined across partitions with a
pure, associative merge.

Welford's algorithm on the nonzero values (per column j)
────────────────────────────────────────────────────────
    nnz_j   ← nnz_j + 1
    δ       ← x_j - mu_j
    mu_j    ← mu_j + δ / nnz_j
    M2n_j   ← M2n_j + δ * (x_j - mu_j)      # uses the NEW mean

Only nonzero entries are touched, so a sparse vector costs O(nnz).  The
column statistics over *all* n vectors are recovered when read, by
merging the nonzero group (nnz_j values, mean mu_j) with the implicit
zero group (n - nnz_j zeros, mean 0):

    mean_j     = mu_j * nnz_j / n
    M2_j       = M2n_j + mu_j² * nnz_j * (n - nnz_j) / n
    variance_j = M2_j / (n - 1)             # sample variance, 0 when n < 2

which is exactly what the dense update over every vector would give.

Parallel merge (per column, on the nonzero groups A and B)
──────────────────────────────────────────────────────────
    δ    = mu_B - mu_A
    n    = n_A + n_B
    mu   = mu_A + δ * n_B / n
    M2n  = M2n_A + M2n_B + δ² * n_A * n_B / n

The merge is commutative and associative, so any partition / merge-tree
shape gives the same statistics up to floating-point rounding.
"""

import numpy as np

from core.errors import DimensionMismatch, UnsupportedVectorType
from core.vectors import DenseVector, SparseVector, Vector


class OnlineSummarizer:
    """Column-wise count / mean / variance / min / max / nnz in one pass.

    The dimensionality is fixed by the first vector added.

    Attributes
    ----------
    count : int
        Number of vectors added (directly or through merges).
    n_features : int | None
        Number of columns, None until the first vector is seen.
    """

    def __init__(self):
        self.count: int              = 0
        self.n_features: int | None  = None

        # nonzero-group state, allocated on the first add
        self._nnz : np.ndarray | None = None
        self._mu  : np.ndarray | None = None
        self._m2n : np.ndarray | None = None
        self._max : np.ndarray | None = None
        self._min : np.ndarray | None = None

    # ── core: Welford update ──────────────────────────────────────────────

    def add(self, vector: Vector) -> "OnlineSummarizer":
        """Absorb one vector into the running statistics.

        Parameters
        ----------
        vector : DenseVector | SparseVector

        Returns
        -------
        self
        """
        match vector:
            case DenseVector():
                idx  = np.flatnonzero(vector.values)
                vals = vector.values[idx]
            case SparseVector():
                keep = vector.values != 0.0
                idx  = vector.indices[keep]
                vals = vector.values[keep]
            case _:
                raise UnsupportedVectorType(vector)

        if self.n_features is None:
            self._allocate(vector.size)
        elif vector.size != self.n_features:
            raise DimensionMismatch(self.n_features, vector.size)

        # indices are unique within one vector, so fancy-indexed updates are safe
        self._nnz[idx] += 1.0
        delta           = vals - self._mu[idx]
        self._mu[idx]  += delta / self._nnz[idx]
        self._m2n[idx] += delta * (vals - self._mu[idx])
        self._max[idx]  = np.maximum(self._max[idx], vals)
        self._min[idx]  = np.minimum(self._min[idx], vals)

        self.count += 1
        return self

    # ── parallel combine ──────────────────────────────────────────────────

    def merge(self, other: "OnlineSummarizer") -> "OnlineSummarizer":
        """Combine two summaries into a new one; neither operand is modified.

        Equivalent to a single summarizer that saw the inputs of both.

        Raises
        ------
        DimensionMismatch
            If both operands are non-empty and disagree on the column count.
        """
        if other.count == 0:
            return self.copy()
        if self.count == 0:
            return other.copy()
        if self.n_features != other.n_features:
            raise DimensionMismatch(self.n_features, other.n_features, what="summary")

        n_a, n_b = self._nnz, other._nnz
        n        = n_a + n_b
        delta    = other._mu - self._mu
        # columns with no nonzeros on either side keep mu = m2n = 0
        w_b      = np.divide(n_b, n, out=np.zeros_like(n), where=n > 0)
        cross    = np.divide(n_a * n_b, n, out=np.zeros_like(n), where=n > 0)

        out            = OnlineSummarizer()
        out.count      = self.count + other.count
        out.n_features = self.n_features
        out._nnz       = n
        out._mu        = self._mu + delta * w_b
        out._m2n       = self._m2n + other._m2n + delta * delta * cross
        out._max       = np.maximum(self._max, other._max)
        out._min       = np.minimum(self._min, other._min)
        return out

    def copy(self) -> "OnlineSummarizer":
        out            = OnlineSummarizer()
        out.count      = self.count
        out.n_features = self.n_features
        if self.n_features is not None:
            out._nnz = self._nnz.copy()
            out._mu  = self._mu.copy()
            out._m2n = self._m2n.copy()
            out._max = self._max.copy()
            out._min = self._min.copy()
        return out

    # ── read-only derived statistics ──────────────────────────────────────

    @property
    def mean(self) -> DenseVector:
        """Column means over every vector seen."""
        self._require_data()
        return DenseVector(self._mu * self._nnz / self.count)

    @property
    def variance(self) -> DenseVector:
        """Unbiased sample variance per column; all zeros when count < 2."""
        self._require_data()
        n = self.count
        if n < 2:
            return DenseVector(np.zeros(self.n_features))
        m2 = self._m2n + self._mu * self._mu * self._nnz * (n - self._nnz) / n
        return DenseVector(np.maximum(m2 / (n - 1), 0.0))

    @property
    def num_nonzeros(self) -> DenseVector:
        self._require_data()
        return DenseVector(self._nnz)

    @property
    def max(self) -> DenseVector:
        """Column maxima, counting the implicit zeros of sparse inputs."""
        self._require_data()
        out = self._max.copy()
        has_zero = self._nnz < self.count
        out[has_zero] = np.maximum(out[has_zero], 0.0)
        return DenseVector(out)

    @property
    def min(self) -> DenseVector:
        """Column minima, counting the implicit zeros of sparse inputs."""
        self._require_data()
        out = self._min.copy()
        has_zero = self._nnz < self.count
        out[has_zero] = np.minimum(out[has_zero], 0.0)
        return DenseVector(out)

    # ── helpers ───────────────────────────────────────────────────────────

    def _allocate(self, n_features: int) -> None:
        self.n_features = n_features
        self._nnz = np.zeros(n_features, dtype=np.float64)
        self._mu  = np.zeros(n_features, dtype=np.float64)
        self._m2n = np.zeros(n_features, dtype=np.float64)
        self._max = np.full(n_features, -np.inf)
        self._min = np.full(n_features,  np.inf)

    def _require_data(self) -> None:
        if self.count == 0:
            raise ValueError("Nothing has been added to this summarizer.")

    def __repr__(self) -> str:
        return (
            f"OnlineSummarizer(n_features={self.n_features}, "
            f"count={self.count})"
        )
