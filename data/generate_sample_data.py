"""
generate_sample_data.py
───────────────────────
Synthetic numeric-table factory for the standardisation pipeline.

What it generates
─────────────────
A CSV with columns:

    feature_0, feature_1, ..., feature_{n-1}

where each row is one vector that will later be read partition by
partition by stream_loader.py.

Design knobs
────────────
    n_samples         – total rows in the CSV
    n_features        – width of each vector
    sparsity          – fraction of entries forced to exactly 0.  > 0
                        gives rows worth loading as SparseVector.
    constant_columns  – how many trailing columns hold one constant value
                        (zero variance → exercises the factor = 0 guard)
    seed              – full reproducibility

How the values are generated
────────────────────────────
1.  Draw a per-column location  μ_j ~ U(-50, 50)  and scale  σ_j ~ U(0.1, 20).
2.  Draw                        X   ~ μ + σ · N(0, I).
3.  (optional sparsity)         zero out each entry with P = sparsity.
4.  (optional constants)        overwrite the last columns with μ_j.

Column locations and scales are deliberately far from 0 and 1 so that a
working standardiser makes a visible difference.
"""

import numpy as np
import pandas as pd
from pathlib import Path


def generate(
    filepath: str | Path,
    n_samples: int = 5000,
    n_features: int = 5,
    sparsity: float = 0.0,
    constant_columns: int = 0,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate a synthetic numeric CSV and return it as a DataFrame.

    Parameters
    ----------
    filepath : str | Path
        Where to write the CSV.  Parent directories are created if they
        do not exist.
    n_samples : int, default=5000
        Number of rows.
    n_features : int, default=5
        Number of feature columns.
    sparsity : float, default=0.0
        Fraction of entries set to exactly zero, in [0, 1).
    constant_columns : int, default=0
        Number of trailing zero-variance columns.  Must be ≤ n_features.
    seed : int, default=42
        Random seed.

    Returns
    -------
    df : pd.DataFrame
        The generated data (also written to *filepath*).

    Raises
    ------
    ValueError
        On invalid parameter combinations.
    """
    # ── validate ──────────────────────────────────────────────────────────
    if n_samples < 2:
        raise ValueError("n_samples must be ≥ 2.")
    if n_features < 1:
        raise ValueError("n_features must be ≥ 1.")
    if not (0.0 <= sparsity < 1.0):
        raise ValueError("sparsity must be in [0, 1).")
    if not (0 <= constant_columns <= n_features):
        raise ValueError("constant_columns must be in [0, n_features].")

    rng = np.random.default_rng(seed)

    # ── per-column location / scale ───────────────────────────────────────
    loc   = rng.uniform(-50.0, 50.0, size=n_features)
    scale = rng.uniform(0.1, 20.0, size=n_features)

    X = loc + scale * rng.standard_normal((n_samples, n_features))

    # ── sparsity: knock out entries ───────────────────────────────────────
    if sparsity > 0.0:
        mask = rng.random((n_samples, n_features)) < sparsity
        X[mask] = 0.0

    # ── zero-variance tail columns ────────────────────────────────────────
    if constant_columns:
        X[:, n_features - constant_columns:] = loc[n_features - constant_columns:]

    # ── assemble + write ──────────────────────────────────────────────────
    col_names = [f"feature_{i}" for i in range(n_features)]
    df = pd.DataFrame(X, columns=col_names)

    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(filepath, index=False)

    return df


# ─────────────────────────────────────────────────────────────────────────────
# Convenience: generate the default sample CSVs used by the rest of the project
# ─────────────────────────────────────────────────────────────────────────────

def generate_defaults(data_dir: str | Path = "data/samples") -> dict[str, Path]:
    """Create the three standard CSVs the project uses out of the box.

    Returns a dict mapping short name → written path.

    Files
    -----
    basic.csv      – 5 000 rows, 5 features, dense
    sparse.csv     – 5 000 rows, 20 features, 90 % zeros
    constant.csv   – 5 000 rows, 6 features, last 2 columns constant
    """
    data_dir = Path(data_dir)
    specs = {
        "basic":    dict(n_samples=5000, n_features=5),
        "sparse":   dict(n_samples=5000, n_features=20, sparsity=0.9),
        "constant": dict(n_samples=5000, n_features=6, constant_columns=2),
    }

    written = {}
    for name, kwargs in specs.items():
        path = data_dir / f"{name}.csv"
        generate(path, seed=42, **kwargs)
        written[name] = path
    return written


if __name__ == "__main__":
    for name, path in generate_defaults().items():
        print(f"  {name:<10} → {path}")
