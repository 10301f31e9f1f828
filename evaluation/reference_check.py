"""
reference_check.py
──────────────────
Fits the partitioned standardiser on a CSV and measures how far its
statistics are from two independent references.

Why two references?
───────────────────
    scikit-learn   – sklearn.preprocessing.StandardScaler on the whole
                     table.  It reports the *population* variance, so
                     it is rescaled by n / (n - 1) before comparing.
    NumPy          – np.mean / np.var(ddof=1) on the whole table: the
                     plain two-pass formula.

Both load the full table into memory, which is fine for a check.  The
partitioned fit only ever sees one partition at a time and combines
them through the tree merge, so agreement here checks the merge
algebra as much as the Welford update.

What this module returns
────────────────────────
A single dict:

    results["model"]        – the fitted StandardScalerModel
    results["summary"]      – the OnlineSummarizer behind it
    results["reference"]    – dict of sklearn / numpy mean and variance
    results["deviation"]    – max |Δ| of mean / variance per reference
    results["transformed"]  – column mean / std of the transformed table
    results["csv_path"], results["n_partitions"]

This module does NO plotting; the driver (run_comparison.py) owns the
matplotlib calls.
"""

from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler as SklearnScaler

from core.online_summarizer import OnlineSummarizer
from core.standard_scaler import StandardScaler
from data.stream_loader import PartitionedCSVLoader


# ─────────────────────────────────────────────────────────────────────────────
# References
# ─────────────────────────────────────────────────────────────────────────────

def reference_statistics(X: np.ndarray) -> dict:
    """Mean and sample variance of *X* from scikit-learn and from NumPy.

    Parameters
    ----------
    X : np.ndarray, shape (n_samples, n_features)

    Returns
    -------
    dict with keys ``sklearn_mean``, ``sklearn_var``, ``numpy_mean``,
    ``numpy_var``.
    """
    n = X.shape[0]

    sk = SklearnScaler().fit(X)
    ddof_fix = n / (n - 1) if n > 1 else 0.0

    return dict(
        sklearn_mean = sk.mean_,
        sklearn_var  = sk.var_ * ddof_fix,
        numpy_mean   = X.mean(axis=0),
        numpy_var    = X.var(axis=0, ddof=1) if n > 1 else np.zeros(X.shape[1]),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Orchestrator
# ─────────────────────────────────────────────────────────────────────────────

def compare(
    csv_path: str | Path,
    partition_size: int = 1000,
    split_every: int = 8,
    n_jobs: int = 1,
    with_mean: bool = True,
    with_std: bool = True,
    sparse: bool = False,
) -> dict:
    """Fit partition-wise, then compare against the in-memory references.

    Parameters
    ----------
    csv_path       – numeric CSV; every column is a feature
    partition_size – rows per partition (controls the number of merges)
    split_every    – fan-in of each merge level
    n_jobs         – threads for fold / merge
    with_mean      – center when transforming
    with_std       – scale when transforming
    sparse         – load rows as SparseVector

    Returns
    -------
    dict (see module docstring)
    """
    csv_path = Path(csv_path)

    # ── partitioned fit ───────────────────────────────────────────────────
    loader  = PartitionedCSVLoader(csv_path, partition_size=partition_size, sparse=sparse)
    scaler  = StandardScaler(with_mean=with_mean, with_std=with_std)
    summary = scaler.summarize_partitions(
        loader.partitions(), split_every=split_every, n_jobs=n_jobs
    )
    model   = scaler.model_from_summary(summary)

    # ── in-memory references ──────────────────────────────────────────────
    X   = pd.read_csv(csv_path, usecols=loader.feature_columns)[loader.feature_columns]
    X   = X.to_numpy(dtype=np.float64)
    ref = reference_statistics(X)

    mean = model.mean.values
    var  = model.variance.values

    deviation = dict(
        sklearn_mean = float(np.max(np.abs(mean - ref["sklearn_mean"]))),
        sklearn_var  = float(np.max(np.abs(var  - ref["sklearn_var"]))),
        numpy_mean   = float(np.max(np.abs(mean - ref["numpy_mean"]))),
        numpy_var    = float(np.max(np.abs(var  - ref["numpy_var"]))),
    )

    # ── transformed table statistics, second pass ─────────────────────────
    out_summary  = OnlineSummarizer()
    n_partitions = 0
    for part in loader.partitions():
        n_partitions += 1
        for v in model.transform_all(part):
            out_summary.add(v)

    transformed = dict(
        mean = out_summary.mean.values,
        std  = np.sqrt(out_summary.variance.values),
    )

    return dict(
        model        = model,
        summary      = summary,
        reference    = ref,
        deviation    = deviation,
        transformed  = transformed,
        csv_path     = str(csv_path),
        n_partitions = n_partitions,
        columns      = loader.feature_columns,
    )
