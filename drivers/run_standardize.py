"""
run_standardize.py
──────────────────
End-to-end standardisation of a numeric CSV: fit column statistics
partition by partition, transform every row, write the result.

What happens when you run this
──────────────────────────────
    1.  A sample CSV is generated (if none was given and it does not
        already exist).
    2.  A PartitionedCSVLoader reads it in chunks of --partition-size rows.
    3.  Each partition is folded into an OnlineSummarizer; the partial
        summaries are merged in a tree with fan-in --split-every.
    4.  The CSV is read a second time; each partition is transformed
        and appended to --output.
    5.  A short report of the fitted statistics is printed.

Usage
─────
    python -m drivers.run_standardize                           # defaults
    python -m drivers.run_standardize --csv data/samples/basic.csv --with-mean
    python -m drivers.run_standardize --csv data/samples/sparse.csv --sparse
    python -m drivers.run_standardize --partition-size 250 --n-jobs 4
    python -m drivers.run_standardize --help
"""

import argparse
import logging
import sys
import time
import numpy as np
import pandas as pd
from pathlib import Path

# ── make project root importable regardless of how this script is invoked ──
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.standard_scaler      import StandardScaler
from data.generate_sample_data import generate
from data.stream_loader        import PartitionedCSVLoader


# ─────────────────────────────────────────────────────────────────────────────
# Report renderer
# ─────────────────────────────────────────────────────────────────────────────

def _render_report(result: dict) -> str:
    """Return the per-column statistics table as one string."""
    model   = result["model"]
    columns = result["columns"]

    lines = [
        "",
        "=" * 70,
        "STANDARDISATION REPORT",
        "=" * 70,
        f"rows          {result['total_rows']}",
        f"partitions    {result['n_partitions']}",
        f"with_mean     {model.with_mean}",
        f"with_std      {model.with_std}",
        f"elapsed       {result['elapsed']:.2f}s",
        "-" * 70,
        f"{'column':<20} {'mean':>14} {'variance':>14} {'factor':>14}",
        "-" * 70,
    ]
    for name, m, v, f in zip(columns, model.mean.values, model.variance.values, model.factor):
        lines.append(f"{name:<20} {m:>14.6g} {v:>14.6g} {f:>14.6g}")
    lines.append("=" * 70)
    return "\n".join(lines)


# ─────────────────────────────────────────────────────────────────────────────
# Fit + transform
# ─────────────────────────────────────────────────────────────────────────────

def run_standardize(
    csv_path: str | Path,
    output_path: str | Path | None = None,
    with_mean: bool = False,
    with_std: bool = True,
    partition_size: int = 1000,
    split_every: int = 8,
    n_jobs: int = 1,
    sparse: bool = False,
) -> dict:
    """Fit on *csv_path*, transform it, optionally write the result.

    Parameters
    ----------
    csv_path       – numeric CSV to standardise
    output_path    – where to write the transformed CSV (None = don't write)
    with_mean      – center each column
    with_std       – scale each column to unit variance
    partition_size – rows per partition
    split_every    – fan-in of each merge level
    n_jobs         – threads for fold / merge
    sparse         – load rows as SparseVector

    The CSV is read twice, once to fit and once to transform, so only one
    partition of rows is held in memory at a time.

    Returns
    -------
    dict with keys: model, columns, n_partitions, total_rows, output_path, elapsed
    """
    csv_path = Path(csv_path)
    start    = time.time()

    loader = PartitionedCSVLoader(csv_path, partition_size=partition_size, sparse=sparse)

    # ── pass 1: fit, one partition in memory at a time ────────────────────
    scaler  = StandardScaler(with_mean=with_mean, with_std=with_std)
    summary = scaler.summarize_partitions(
        loader.partitions(), split_every=split_every, n_jobs=n_jobs
    )
    model   = scaler.model_from_summary(summary)

    # ── pass 2: transform and append chunk by chunk ───────────────────────
    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

    n_partitions = 0
    for part in loader.partitions():
        n_partitions += 1
        if output_path is None:
            continue
        block = np.vstack([v.toarray() for v in model.transform_all(part)])
        pd.DataFrame(block, columns=loader.feature_columns).to_csv(
            output_path,
            mode   = "w" if n_partitions == 1 else "a",
            header = n_partitions == 1,
            index  = False,
        )

    return dict(
        model        = model,
        columns      = loader.feature_columns,
        n_partitions = n_partitions,
        total_rows   = summary.count,
        output_path  = output_path,
        elapsed      = time.time() - start,
    )


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Standardise the columns of a numeric CSV with a partitioned fit."
    )
    parser.add_argument(
        "--csv", type=str, default=None,
        help="Path to CSV file.  If omitted, generates data/samples/basic.csv automatically."
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Where to write the standardised CSV (default: <csv stem>_standardized.csv)."
    )
    parser.add_argument(
        "--with-mean", action="store_true",
        help="Center each column (output becomes dense)."
    )
    parser.add_argument(
        "--no-std", action="store_true",
        help="Do not scale to unit variance."
    )
    parser.add_argument(
        "--partition-size", type=int, default=1000,
        help="Rows per partition (default: 1000)."
    )
    parser.add_argument(
        "--split-every", type=int, default=8,
        help="Partial summaries merged per tree level (default: 8)."
    )
    parser.add_argument(
        "--n-jobs", type=int, default=1,
        help="Worker threads; -1 = all cores (default: 1)."
    )
    parser.add_argument(
        "--sparse", action="store_true",
        help="Load rows as sparse vectors."
    )
    parser.add_argument(
        "--log-level", type=str, default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)."
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ── resolve CSV path — generate default if nothing was supplied ───────
    if args.csv is None:
        csv_path = PROJECT_ROOT / "data" / "samples" / "basic.csv"
        if not csv_path.exists():
            print(f"  generating {csv_path} …")
            generate(csv_path, n_samples=5000, n_features=5, seed=42)
            print("  done.\n")
    else:
        csv_path = Path(args.csv)
        if not csv_path.exists():
            print(f"  ERROR: file not found: {csv_path}", file=sys.stderr)
            return 1

    output_path = (
        Path(args.output) if args.output
        else csv_path.with_name(f"{csv_path.stem}_standardized.csv")
    )

    result = run_standardize(
        csv_path=csv_path,
        output_path=output_path,
        with_mean=args.with_mean,
        with_std=not args.no_std,
        partition_size=args.partition_size,
        split_every=args.split_every,
        n_jobs=args.n_jobs,
        sparse=args.sparse,
    )

    print(_render_report(result))
    print(f"  wrote {result['output_path']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
