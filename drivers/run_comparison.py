#!/usr/bin/env python3
"""
run_comparison.py
─────────────────
Driver script that fits the partitioned standardiser on a CSV, checks its
statistics against scikit-learn and NumPy, plots the per-column
statistics before and after the transform, and optionally saves the
figure.

Usage
─────
    python run_comparison.py \\
        --csv data/samples/basic.csv \\
        --partition-size 250 \\
        --split-every 4 \\
        --n-jobs 4 \\
        --save-plots \\
        --output-dir plots/

What it does
────────────
1. Runs reference_check.compare() on the CSV
2. Prints a summary table of the largest deviations from each reference
3. Generates a four-panel figure showing:
   - Fitted column means vs. the NumPy reference
   - Fitted column standard deviations vs. the NumPy reference
   - Column means after the transform (≈ 0 when centering)
   - Column standard deviations after the transform (≈ 1 when scaling,
     0 for constant columns)
4. Optionally saves the plot to disk
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, Any

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.gridspec as gridspec

# ── Path setup so we can import from evaluation/ and core/ ───────────────
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent  # assumes run_comparison.py is in drivers/
sys.path.insert(0, str(PROJECT_ROOT))

from evaluation.reference_check import compare


# ═════════════════════════════════════════════════════════════════════════
# PLOTTING FUNCTIONS
# ═════════════════════════════════════════════════════════════════════════

def plot_comparison(results: Dict[str, Any], save_path: Path | None = None) -> None:
    """Create the four-panel per-column statistics figure.

    Parameters
    ----------
    results : dict
        The output of reference_check.compare().
    save_path : Path | None
        If provided, save the figure to this path.  Otherwise, display interactively.
    """
    model    = results["model"]
    ref      = results["reference"]
    after    = results["transformed"]
    csv_name = Path(results["csv_path"]).name
    cols     = np.arange(model.n_features)

    fig = plt.figure(figsize=(14, 8))
    fig.suptitle(
        f"Partitioned standardisation — {csv_name} "
        f"({results['n_partitions']} partitions)",
        fontsize=15,
        fontweight="bold",
    )
    gs = gridspec.GridSpec(2, 2, figure=fig, hspace=0.35, wspace=0.2)

    # ── PLOT 1: fitted means ──────────────────────────────────────────────
    ax1 = fig.add_subplot(gs[0, 0])
    ax1.bar(cols - 0.2, model.mean.values, width=0.4, color="#2E86AB", label="Partitioned fit")
    ax1.bar(cols + 0.2, ref["numpy_mean"], width=0.4, color="#A23B72", label="NumPy")
    ax1.set_title("Column mean (input)", fontsize=11, fontweight="bold")
    ax1.set_xlabel("Column", fontsize=10)
    ax1.legend(fontsize=9)
    ax1.grid(alpha=0.3, linestyle=":")

    # ── PLOT 2: fitted stds ───────────────────────────────────────────────
    ax2 = fig.add_subplot(gs[0, 1])
    ax2.bar(cols - 0.2, model.std, width=0.4, color="#2E86AB", label="Partitioned fit")
    ax2.bar(cols + 0.2, np.sqrt(ref["numpy_var"]), width=0.4, color="#A23B72", label="NumPy")
    ax2.set_title("Column std (input)", fontsize=11, fontweight="bold")
    ax2.set_xlabel("Column", fontsize=10)
    ax2.legend(fontsize=9)
    ax2.grid(alpha=0.3, linestyle=":")

    # ── PLOT 3: transformed means ─────────────────────────────────────────
    ax3 = fig.add_subplot(gs[1, 0])
    ax3.bar(cols, after["mean"], color="#F18F01")
    ax3.axhline(0.0, color="black", linewidth=1)
    ax3.set_title("Column mean (transformed)", fontsize=11, fontweight="bold")
    ax3.set_xlabel("Column", fontsize=10)
    ax3.grid(alpha=0.3, linestyle=":")

    # ── PLOT 4: transformed stds ──────────────────────────────────────────
    ax4 = fig.add_subplot(gs[1, 1])
    ax4.bar(cols, after["std"], color="#F18F01")
    ax4.axhline(1.0, color="black", linestyle="--", linewidth=1)
    ax4.set_title("Column std (transformed)", fontsize=11, fontweight="bold")
    ax4.set_xlabel("Column", fontsize=10)
    ax4.grid(alpha=0.3, linestyle=":")

    if save_path is not None:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        print(f"✓ Plot saved to {save_path}")
    else:
        plt.show()

    plt.close()


def print_summary_table(results: Dict[str, Any]) -> None:
    """Print a text-based summary table to the console.

    Parameters
    ----------
    results : dict
        The output of reference_check.compare()
    """
    model = results["model"]
    dev   = results["deviation"]
    after = results["transformed"]

    print("\n" + "=" * 70)
    print("COMPARISON SUMMARY")
    print("=" * 70)
    print(f"Dataset:     {results['csv_path']}")
    print(f"Vectors:     {results['summary'].count}")
    print(f"Columns:     {model.n_features}")
    print(f"Partitions:  {results['n_partitions']}")
    print("-" * 70)
    print(f"{'Reference':<15} {'max |Δ mean|':<20} {'max |Δ variance|':<20}")
    print("-" * 70)
    print(f"{'scikit-learn':<15} {dev['sklearn_mean']:<20.3e} {dev['sklearn_var']:<20.3e}")
    print(f"{'NumPy':<15} {dev['numpy_mean']:<20.3e} {dev['numpy_var']:<20.3e}")
    print("-" * 70)
    print(f"transformed |mean| max:   {np.max(np.abs(after['mean'])):.3e}")
    print(f"transformed std range:    [{np.min(after['std']):.4f}, {np.max(after['std']):.4f}]")
    print("=" * 70)

    scale = max(1.0, float(np.max(np.abs(results["reference"]["numpy_var"]))))
    print("\nINTERPRETATION:")
    if max(dev["numpy_mean"], dev["numpy_var"] / scale) < 1e-9:
        print("✓ Partitioned statistics match the in-memory reference")
    else:
        print("✗ Partitioned statistics deviate from the in-memory reference")
    print()


# ═════════════════════════════════════════════════════════════════════════
# MAIN ENTRY POINT
# ═════════════════════════════════════════════════════════════════════════

def main():
    parser = argparse.ArgumentParser(
        description="Check the partitioned standardiser against scikit-learn and plot results.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage (interactive plot)
  python run_comparison.py --csv data/samples/basic.csv

  # Many small partitions, merged four at a time on four threads
  python run_comparison.py --csv data/samples/basic.csv \\
      --partition-size 100 --split-every 4 --n-jobs 4

  # Sparse rows, scale only
  python run_comparison.py --csv data/samples/sparse.csv --sparse --no-mean
        """
    )

    parser.add_argument(
        "--csv",
        type=str,
        required=True,
        help="Path to the input CSV file (generated by generate_sample_data.py)"
    )

    # ── Aggregation options ───────────────────────────────────────────────
    parser.add_argument(
        "--partition-size",
        type=int,
        default=1000,
        help="Rows per partition (default: 1000)"
    )
    parser.add_argument(
        "--split-every",
        type=int,
        default=8,
        help="Partial summaries merged per tree level (default: 8)"
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=1,
        help="Worker threads; -1 = all cores (default: 1)"
    )
    parser.add_argument(
        "--sparse",
        action="store_true",
        help="Load rows as sparse vectors"
    )
    parser.add_argument(
        "--no-mean",
        action="store_true",
        help="Do not center when transforming"
    )

    # ── Output options ────────────────────────────────────────────────────
    parser.add_argument(
        "--save-plots",
        action="store_true",
        help="Save plots to file instead of displaying interactively"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="plots",
        help="Directory to save plots (default: plots/)"
    )

    args = parser.parse_args()

    csv_path = Path(args.csv)
    if not csv_path.exists():
        print(f"ERROR: CSV file not found: {csv_path}", file=sys.stderr)
        sys.exit(1)

    print("\n" + "=" * 70)
    print("PARTITIONED STANDARDISATION CHECK")
    print("=" * 70)
    print(f"Input CSV:         {csv_path}")
    print(f"Partition size:    {args.partition_size}")
    print(f"Split every:       {args.split_every}")
    print(f"Threads:           {args.n_jobs}")
    print(f"Sparse rows:       {args.sparse}")
    print("=" * 70)

    results = compare(
        csv_path=csv_path,
        partition_size=args.partition_size,
        split_every=args.split_every,
        n_jobs=args.n_jobs,
        with_mean=not args.no_mean,
        sparse=args.sparse,
    )

    print("✓ Comparison complete!")
    print_summary_table(results)

    if args.save_plots:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        save_path = output_dir / f"{csv_path.stem}_p{args.partition_size}_s{args.split_every}.png"
        print("\nGenerating plots...")
        plot_comparison(results, save_path=save_path)
    else:
        print("\nGenerating plots (close window to exit)...")
        plot_comparison(results, save_path=None)

    print("\n✓ Done!\n")


if __name__ == "__main__":
    main()
