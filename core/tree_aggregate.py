"""
tree_aggregate.py
─────────────────
Fold-then-tree-merge over a partitioned collection.

Shape of the reduction
──────────────────────
    partition 0 ─ fold(seq_op) ─┐
    partition 1 ─ fold(seq_op) ─┼─ comb_op ─┐
       …                        │           ├─ comb_op ─→ result
    partition k ─ fold(seq_op) ─┘    …      ┘

Each partition is folded from its own fresh zero value, so partitions
never share mutable state and may run concurrently.  Partial results are
then combined in groups of ``split_every`` per level, which keeps the
depth at O(log_{split_every}(partitions)) instead of one long chain.

comb_op must be associative and commutative; the grouping is otherwise
unspecified.

Backends
────────
    tree_aggregate       – local, sequential or on a thread pool
    dask_tree_aggregate  – a dask.bag.Bag, via Bag.reduction
"""

import logging
import os
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, as_completed, wait
from typing import Any

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Partitioning and parallel map
# ─────────────────────────────────────────────────────────────────────────────

def partition(items: Sequence, n_partitions: int) -> list[list]:
    """Split *items* into at most *n_partitions* contiguous, non-empty chunks.

    Order is preserved; chunk sizes differ by at most one.
    """
    if n_partitions < 1:
        raise ValueError("n_partitions must be ≥ 1.")

    items = list(items)
    n_partitions = min(n_partitions, len(items))
    if n_partitions == 0:
        return []

    base, extra = divmod(len(items), n_partitions)
    chunks, start = [], 0
    for i in range(n_partitions):
        stop = start + base + (1 if i < extra else 0)
        chunks.append(items[start:stop])
        start = stop
    return chunks


def _check_n_jobs(n_jobs: int) -> None:
    if not (n_jobs == -1 or n_jobs >= 1):
        raise ValueError(f"n_jobs must be -1 or ≥ 1, got {n_jobs}.")


def _max_workers(n_jobs: int) -> int:
    return (os.cpu_count() or 1) if n_jobs == -1 else n_jobs


def parallel_map(func: Callable, args_list: Sequence[tuple], n_jobs: int = 1) -> list:
    """Execute func(*args) for each args in args_list, optionally in parallel.

    Parameters
    ----------
    func : callable
    args_list : list of tuples
    n_jobs : int
        1 = sequential (default), -1 = all cores, >1 = that many threads.

    Returns
    -------
    list
        Results in the same order as args_list.
    """
    _check_n_jobs(n_jobs)
    if n_jobs == 1 or len(args_list) <= 1:
        return [func(*args) for args in args_list]

    results = [None] * len(args_list)

    with ThreadPoolExecutor(max_workers=_max_workers(n_jobs)) as executor:
        future_to_idx = {
            executor.submit(func, *args): i for i, args in enumerate(args_list)
        }
        for future in as_completed(future_to_idx):
            results[future_to_idx[future]] = future.result()
    return results


# ─────────────────────────────────────────────────────────────────────────────
# Local tree aggregation
# ─────────────────────────────────────────────────────────────────────────────

def tree_aggregate(
    partitions: Iterable[Iterable],
    zero_factory: Callable[[], Any],
    seq_op: Callable[[Any, Any], Any],
    comb_op: Callable[[Any, Any], Any],
    split_every: int = 8,
    n_jobs: int = 1,
):
    """Fold every partition with *seq_op*, then tree-merge with *comb_op*.

    Parameters
    ----------
    partitions : iterable of iterables
        The collection, already split into partitions.  Consumed lazily:
        each partition is folded as soon as it is produced and only its
        partial result is kept.
    zero_factory : callable
        Returns a fresh zero value; called once per partition.
    seq_op : callable
        ``(acc, item) -> acc`` — folds one item into a partial result.
    comb_op : callable
        ``(a, b) -> c`` — associative, commutative combiner.
    split_every : int, default 8
        Number of partial results combined per reduction step.
    n_jobs : int, default 1
        Thread count for both the fold and each merge level (see
        :func:`parallel_map`).

    Returns
    -------
    The fully reduced value, or ``zero_factory()`` when there are no
    partitions.
    """
    if split_every < 2:
        raise ValueError("split_every must be ≥ 2.")
    _check_n_jobs(n_jobs)

    partials = _fold_partitions(partitions, zero_factory, seq_op, n_jobs)
    if not partials:
        return zero_factory()

    depth, width = 0, len(partials)
    while width > 1:
        width = -(-width // split_every)
        depth += 1
    log.info(
        "tree_aggregate: %d partitions, split_every=%d, depth=%d",
        len(partials), split_every, depth,
    )

    level = 0
    while len(partials) > 1:
        groups = [partials[i : i + split_every] for i in range(0, len(partials), split_every)]
        partials = parallel_map(
            _reduce_group,
            [(comb_op, *group) for group in groups],
            n_jobs=n_jobs,
        )
        level += 1
        log.debug("tree_aggregate: level %d → %d partial results", level, len(partials))

    return partials[0]


def _fold_partitions(partitions, zero_factory, seq_op, n_jobs):
    """Fold partitions as they are produced, keeping only the partials.

    With threads, at most ``max_workers`` folds are in flight and one more
    partition waits for a free slot, so a lazy source is never drained
    ahead of the workers.
    """
    if n_jobs == 1:
        return [_fold_partition(zero_factory, seq_op, p) for p in partitions]

    max_workers = _max_workers(n_jobs)
    partials = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        in_flight = {}
        for i, items in enumerate(partitions):
            if len(in_flight) >= max_workers:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    partials[in_flight.pop(future)] = future.result()
            in_flight[executor.submit(_fold_partition, zero_factory, seq_op, items)] = i
        for future in as_completed(in_flight):
            partials[in_flight[future]] = future.result()
    return [partials[i] for i in sorted(partials)]


def _fold_partition(zero_factory, seq_op, items):
    acc = zero_factory()
    for item in items:
        acc = seq_op(acc, item)
    return acc


def _reduce_group(comb_op, *items):
    """Reduce a group of items by applying comb_op pairwise."""
    result = items[0]
    for item in items[1:]:
        result = comb_op(result, item)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Dask backend
# ─────────────────────────────────────────────────────────────────────────────

def is_dask_bag(data) -> bool:
    """Check if data is a ``dask.bag.Bag`` (False when dask is not installed)."""
    try:
        import dask.bag as db

        return isinstance(data, db.Bag)
    except ImportError:
        return False


def dask_tree_aggregate(
    bag,
    zero_factory: Callable[[], Any],
    seq_op: Callable[[Any, Any], Any],
    comb_op: Callable[[Any, Any], Any],
    split_every: int = 8,
    scheduler: str | None = None,
):
    """Same fold + tree-merge as :func:`tree_aggregate`, on a dask bag.

    Each bag partition is folded on whichever worker holds it; dask
    performs the tree reduction with ``split_every`` partials per task.
    *scheduler* is passed to ``compute`` (None = the bag default, or the
    active distributed client).
    """
    if split_every < 2:
        raise ValueError("split_every must be ≥ 2.")

    log.info(
        "dask_tree_aggregate: %d partitions, split_every=%d",
        bag.npartitions, split_every,
    )

    def perpartition(items):
        return _fold_partition(zero_factory, seq_op, items)

    def aggregate(partials):
        partials = list(partials)
        if not partials:
            return zero_factory()
        return _reduce_group(comb_op, *partials)

    result = bag.reduction(perpartition, aggregate, split_every=split_every)
    return result.compute(scheduler=scheduler)
