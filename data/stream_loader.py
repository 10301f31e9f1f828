"""
stream_loader.py
────────────────
Chunked CSV reader that hands out a numeric table as partitions of
vectors.

Why this exists
───────────────
pandas.read_csv() loads an entire file into memory at once.  The
summarizer only ever needs one partition at a time, so this module wraps
pandas' chunked reader: every chunk of *partition_size* rows becomes one
list of vectors, keeping memory bounded regardless of file size.

Pipeline position
─────────────────
    CSV on disk  →  PartitionedCSVLoader  →  [[Vector, …], …]  →  tree_aggregate
                        │
                        └── sparse=True → rows become SparseVector
                            (only the nonzero cells are stored)

Design decisions
────────────────
* feature_columns defaults to every column in the header, in file order.
* Non-numeric feature columns are rejected up-front from a small sample
  rather than halfway through a large file.
* The generators are re-entrant: each call to partitions() / vectors()
  restarts from the top of the file.
"""

from collections.abc import Generator
from pathlib import Path

import numpy as np
import pandas as pd

from core.vectors import DenseVector, SparseVector, Vector


class PartitionedCSVLoader:
    """Iterate over a numeric CSV one partition (or one vector) at a time.

    Parameters
    ----------
    filepath : str | Path
        Path to the CSV file.  Must exist.
    feature_columns : list[str] | None, default=None
        Which columns form the vector.  If None, every column in the
        header is used (order preserved as in the CSV).
    partition_size : int, default=1000
        Number of rows per partition.
    sparse : bool, default=False
        Emit SparseVector rows instead of DenseVector rows.
    """

    def __init__(
        self,
        filepath: str | Path,
        feature_columns: list[str] | None = None,
        partition_size: int = 1000,
        sparse: bool = False,
    ):
        self.filepath       = Path(filepath)
        self.partition_size = partition_size
        self.sparse         = sparse

        if partition_size < 1:
            raise ValueError("partition_size must be ≥ 1.")

        # ── validate file exists ──────────────────────────────────────────
        if not self.filepath.exists():
            raise FileNotFoundError(f"CSV not found: {self.filepath}")

        # ── resolve feature columns from the header ──────────────────────
        header = pd.read_csv(self.filepath, nrows=0).columns.tolist()

        if feature_columns is not None:
            missing = set(feature_columns) - set(header)
            if missing:
                raise ValueError(
                    f"Feature columns {missing} not found in {self.filepath}. "
                    f"Available columns: {header}"
                )
            self.feature_columns = list(feature_columns)
        else:
            self.feature_columns = header

        if len(self.feature_columns) == 0:
            raise ValueError(f"No feature columns found in {self.filepath}.")

        # ── reject non-numeric columns early ──────────────────────────────
        sample = pd.read_csv(self.filepath, nrows=100, usecols=self.feature_columns)
        non_numeric = [
            c for c in self.feature_columns if not pd.api.types.is_numeric_dtype(sample[c])
        ]
        if non_numeric:
            raise ValueError(f"Non-numeric feature columns: {non_numeric}")

        self.n_features = len(self.feature_columns)

    # ── main generators ───────────────────────────────────────────────────

    def partitions(self) -> Generator[list[Vector], None, None]:
        """Yield one list of vectors per chunk of *partition_size* rows."""
        reader = pd.read_csv(
            self.filepath,
            chunksize=self.partition_size,
            usecols=self.feature_columns,
        )
        for chunk in reader:
            block = chunk[self.feature_columns].to_numpy(dtype=np.float64)
            yield [self._to_vector(row) for row in block]

    def vectors(self) -> Generator[Vector, None, None]:
        """Yield the rows one at a time, in file order."""
        for part in self.partitions():
            yield from part

    def _to_vector(self, row: np.ndarray) -> Vector:
        if self.sparse:
            idx = np.flatnonzero(row)
            return SparseVector(row.shape[0], idx, row[idx])
        return DenseVector(row)

    # ── convenience: count rows without loading everything ───────────────

    def count_rows(self) -> int:
        """Return total number of data rows (excludes header)."""
        total = 0
        for chunk in pd.read_csv(
            self.filepath, chunksize=10_000, usecols=[self.feature_columns[0]]
        ):
            total += len(chunk)
        return total

    def __repr__(self) -> str:
        kind = "sparse" if self.sparse else "dense"
        return (
            f"PartitionedCSVLoader(file='{self.filepath.name}', "
            f"features={self.n_features}, partition_size={self.partition_size}, {kind})"
        )
