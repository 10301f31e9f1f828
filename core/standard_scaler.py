"""
standard_scaler.py
──────────────────
Column standardisation: fit mean/variance over a partitioned collection,
then center and/or rescale vectors one at a time.

Pipeline position
─────────────────
    partitions ─→ StandardScaler.fit ─→ StandardScalerModel ─→ transform(v)
                        │
                        └── tree_aggregate(OnlineSummarizer.add,
                                           OnlineSummarizer.merge)

Transform (per column j)
────────────────────────
    factor_j = 1 / sqrt(variance_j)   if variance_j != 0   else 0

    with_mean  with_std   output
    ─────────  ────────   ─────────────────────────────────────────────
    True       True       (x_j - mean_j) * factor_j        always dense
    True       False      (x_j - mean_j)                   always dense
    False      True       x_j * factor_j                   keeps sparsity
    False      False      x                                 same object

Centering shifts every entry, zero or not, so a sparse input is densified
rather than rejected.  Zero-variance columns collapse to 0 when scaling.

The model is immutable: the factor vector is computed once at
construction and every transform only reads it, so any number of threads
may share one model.
"""

import itertools
import logging
from collections.abc import Iterable, Sequence

import numpy as np

from core.errors import DimensionMismatch, UnsupportedVectorType
from core.online_summarizer import OnlineSummarizer
from core.tree_aggregate import (
    dask_tree_aggregate,
    is_dask_bag,
    parallel_map,
    tree_aggregate,
)
from core.vectors import DenseVector, SparseVector, Vector

log = logging.getLogger(__name__)

_EMPTY = object()


# ─────────────────────────────────────────────────────────────────────────────
# Estimator
# ─────────────────────────────────────────────────────────────────────────────

class StandardScaler:
    """Compute column statistics and build a :class:`StandardScalerModel`.

    Parameters
    ----------
    with_mean : bool, default=False
        Center the data before scaling.  Produces dense output.
    with_std : bool, default=True
        Scale the data to unit standard deviation.
    """

    def __init__(self, with_mean: bool = False, with_std: bool = True):
        self.with_mean = with_mean
        self.with_std  = with_std

    # ── aggregation ───────────────────────────────────────────────────────

    def summarize(
        self,
        data,
        split_every: int = 8,
        n_jobs: int = 1,
        scheduler: str | None = None,
    ) -> OnlineSummarizer:
        """Run the fold + tree-merge and return the raw summary.

        Parameters
        ----------
        data : iterable of Vector | list of partitions | dask.bag.Bag
            An iterable whose first element is a vector is treated as a
            single partition.  An iterable whose first element is itself
            iterable (list, tuple, generator, ...) is treated as
            pre-partitioned data.  Either is consumed lazily.
        split_every : int, default=8
            Fan-in of each merge step.
        n_jobs : int, default=1
            Threads used locally (ignored for dask bags).
        scheduler : str | None, default=None
            dask scheduler for bag input (ignored otherwise).
        """
        if is_dask_bag(data):
            return dask_tree_aggregate(
                data, OnlineSummarizer, _add, _merge,
                split_every=split_every, scheduler=scheduler,
            )
        return self.summarize_partitions(
            _as_partitions(data), split_every=split_every, n_jobs=n_jobs
        )

    def summarize_partitions(
        self,
        partitions: Iterable[Iterable[Vector]],
        split_every: int = 8,
        n_jobs: int = 1,
    ) -> OnlineSummarizer:
        return tree_aggregate(
            partitions,
            OnlineSummarizer,
            _add,
            _merge,
            split_every=split_every,
            n_jobs=n_jobs,
        )

    # ── fitting ───────────────────────────────────────────────────────────

    def fit(
        self,
        data,
        split_every: int = 8,
        n_jobs: int = 1,
        scheduler: str | None = None,
    ) -> "StandardScalerModel":
        """Compute mean and variance and wrap them in a model.

        Statistics are computed even when both flags are False.

        Raises
        ------
        DimensionMismatch
            If the vectors disagree on length.
        ValueError
            If *data* holds no vectors.
        """
        summary = self.summarize(
            data, split_every=split_every, n_jobs=n_jobs, scheduler=scheduler
        )
        return self.model_from_summary(summary)

    def fit_partitions(
        self,
        partitions: Iterable[Iterable[Vector]],
        split_every: int = 8,
        n_jobs: int = 1,
    ) -> "StandardScalerModel":
        summary = self.summarize_partitions(partitions, split_every=split_every, n_jobs=n_jobs)
        return self.model_from_summary(summary)

    def model_from_summary(self, summary: OnlineSummarizer) -> "StandardScalerModel":
        log.info(
            "fitted %d vectors over %s columns",
            summary.count, summary.n_features,
        )
        return StandardScalerModel(
            self.with_mean, self.with_std, summary.mean, summary.variance
        )

    def __repr__(self) -> str:
        return f"StandardScaler(with_mean={self.with_mean}, with_std={self.with_std})"


def _add(summary: OnlineSummarizer, vector: Vector) -> OnlineSummarizer:
    return summary.add(vector)


def _merge(a: OnlineSummarizer, b: OnlineSummarizer) -> OnlineSummarizer:
    return a.merge(b)


def _as_partitions(data) -> Iterable[Iterable[Vector]]:
    # peek at the first element: a vector means one flat partition,
    # anything iterable means the data is already partitioned
    it = iter(data)
    first = next(it, _EMPTY)
    if first is _EMPTY:
        return []
    rest = itertools.chain([first], it)
    if isinstance(first, (DenseVector, SparseVector)) or not isinstance(first, Iterable):
        return [rest]
    return rest


# ─────────────────────────────────────────────────────────────────────────────
# Fitted model
# ─────────────────────────────────────────────────────────────────────────────

class StandardScalerModel:
    """Fitted standardisation transform.

    Parameters
    ----------
    with_mean : bool
        Whether to center the data before scaling.
    with_std : bool
        Whether to scale the data to unit standard deviation.
    mean : DenseVector | array-like
        Column means.
    variance : DenseVector | array-like
        Column sample variances.

    Attributes
    ----------
    factor : np.ndarray (read-only)
        1/sqrt(variance), with 0 for zero-variance columns.
    """

    def __init__(self, with_mean: bool, with_std: bool, mean, variance):
        mean     = mean     if isinstance(mean, DenseVector)     else DenseVector(mean)
        variance = variance if isinstance(variance, DenseVector) else DenseVector(variance)
        if mean.size != variance.size:
            raise DimensionMismatch(mean.size, variance.size, what="variance")

        self._with_mean = bool(with_mean)
        self._with_std  = bool(with_std)
        self._mean      = mean
        self._variance  = variance

        var    = variance.values
        factor = np.zeros_like(var)
        nz     = var != 0.0
        factor[nz] = 1.0 / np.sqrt(var[nz])
        factor.flags.writeable = False
        self._factor = factor

        if not (self._with_mean or self._with_std):
            log.warning("Both with_mean and with_std are false. The model does nothing.")

    # ── read-only state ───────────────────────────────────────────────────

    @property
    def with_mean(self) -> bool:
        return self._with_mean

    @property
    def with_std(self) -> bool:
        return self._with_std

    @property
    def mean(self) -> DenseVector:
        return self._mean

    @property
    def variance(self) -> DenseVector:
        return self._variance

    @property
    def std(self) -> np.ndarray:
        return np.sqrt(self._variance.values)

    @property
    def factor(self) -> np.ndarray:
        return self._factor

    @property
    def n_features(self) -> int:
        return self._mean.size

    # ── transform ─────────────────────────────────────────────────────────

    def transform(self, vector: Vector) -> Vector:
        """Standardise one vector.

        Returns
        -------
        DenseVector when centering, a vector of the input's representation
        when only scaling, and *vector* itself when both flags are False.

        Raises
        ------
        DimensionMismatch
            If ``vector.size`` differs from the fitted column count.
        UnsupportedVectorType
            If *vector* is neither a DenseVector nor a SparseVector.
        """
        match vector:
            case DenseVector() | SparseVector():
                self._check_size(vector)
            case _:
                raise UnsupportedVectorType(vector)

        if self._with_mean:
            # centering touches every column, so sparse input is densified
            out = vector.toarray() - self._mean.values
            if self._with_std:
                out *= self._factor
            return DenseVector(out)

        if self._with_std:
            match vector:
                case DenseVector():
                    return DenseVector(vector.values * self._factor)
                case SparseVector():
                    # scaling keeps zeros at zero: reuse the index array
                    return SparseVector._from_arrays(
                        vector.size,
                        vector.indices,
                        vector.values * self._factor[vector.indices],
                    )

        # immutable input, so handing it back is safe
        return vector

    def transform_all(self, vectors: Iterable[Vector]) -> list[Vector]:
        return [self.transform(v) for v in vectors]

    def transform_partitions(
        self,
        partitions: Sequence[Iterable[Vector]],
        n_jobs: int = 1,
    ) -> list[list[Vector]]:
        """Transform every partition independently, optionally on threads."""
        return parallel_map(self.transform_all, [(p,) for p in partitions], n_jobs=n_jobs)

    # ── helpers ───────────────────────────────────────────────────────────

    def _check_size(self, vector: Vector) -> None:
        if vector.size != self._mean.size:
            raise DimensionMismatch(self._mean.size, vector.size)

    def __repr__(self) -> str:
        return (
            f"StandardScalerModel(with_mean={self._with_mean}, "
            f"with_std={self._with_std}, n_features={self.n_features})"
        )
