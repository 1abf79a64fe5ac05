"""Divide-and-conquer summation over a rectangular index region.

The region is split at the midpoint of its first axis that still spans more
than one index, recursively, until each piece holds at most ``leaf_size``
points.  The leaves are grouped into one contiguous chunk per worker and
evaluated on a process or thread pool.  The partial sums are combined pairwise
along the partition tree, so no task ever writes to a shared accumulator.  A
failing leaf sets a shared cancel event that the other chunks check before
each of their leaves.
"""
from __future__ import annotations

import itertools
import logging
import math
import multiprocessing as mp
import threading
from concurrent.futures import FIRST_EXCEPTION, Executor, ProcessPoolExecutor, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

from nested_sums.config import ConcurrencyConfig
from nested_sums.errors import OutOfRangeError
from nested_sums.numerics.summation import pairwise_sum
from nested_sums.series.sequence import Indices, TermSource, as_index, as_term_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexRegion:
    """Half-open box ``[lower, upper)`` in index space."""

    lower: Indices
    upper: Indices

    def __post_init__(self) -> None:
        lower = tuple(as_index(i) for i in self.lower)
        upper = tuple(as_index(i) for i in self.upper)
        if len(lower) != len(upper):
            raise OutOfRangeError(
                f"lower 与 upper 的长度不一致：{len(lower)} != {len(upper)}。")
        if not lower:
            raise ValueError("区域至少需要一个维度。")
        if any(l < 0 for l in lower):
            raise OutOfRangeError(f"下界 {lower} 含有负分量。")
        if any(u < l for l, u in zip(lower, upper)):
            raise ValueError(f"要求 lower <= upper，得到 {lower} 与 {upper}。")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @property
    def dimensions(self) -> int:
        return len(self.lower)

    @property
    def size(self) -> int:
        return math.prod(u - l for l, u in zip(self.lower, self.upper))

    @property
    def is_point(self) -> bool:
        return all(u - l == 1 for l, u in zip(self.lower, self.upper))

    def split(self) -> Optional[Tuple["IndexRegion", "IndexRegion"]]:
        """Split along the first axis spanning more than one index."""
        for axis, (lo, hi) in enumerate(zip(self.lower, self.upper)):
            if hi - lo <= 1:
                continue
            mid = lo + (hi - lo) // 2
            left_upper = self.upper[:axis] + (mid,) + self.upper[axis + 1:]
            right_lower = self.lower[:axis] + (mid,) + self.lower[axis + 1:]
            return (IndexRegion(self.lower, left_upper),
                    IndexRegion(right_lower, self.upper))
        return None

    def points(self) -> Iterator[Indices]:
        return itertools.product(
            *(range(l, u) for l, u in zip(self.lower, self.upper)))


@dataclass
class _PartitionNode:
    region: IndexRegion
    leaf_id: int = -1
    children: Optional[Tuple["_PartitionNode", "_PartitionNode"]] = None


def _sum_region(terms: TermSource, region: IndexRegion) -> Any:
    return pairwise_sum([terms.get_term(point) for point in region.points()])


class _LeafCancelled(Exception):
    """A sibling chunk failed; the remaining leaves were skipped."""


_worker_cancel: Any = None


def _init_worker(cancel: Any) -> None:
    global _worker_cancel
    _worker_cancel = cancel


def _sum_chunk(terms: TermSource, regions: Sequence[IndexRegion], cancel: Any = None) -> List[Any]:
    """Sum consecutive leaves, checking the cancel event before each one."""
    cancel = cancel if cancel is not None else _worker_cancel
    results = []
    try:
        for region in regions:
            if cancel is not None and cancel.is_set():
                raise _LeafCancelled()
            results.append(_sum_region(terms, region))
    except _LeafCancelled:
        raise
    except Exception:
        if cancel is not None:
            cancel.set()
        raise
    return results


def _make_leaf_chunks(count: int, worker_count: int) -> List[Tuple[int, int]]:
    """Contiguous ``[start, end)`` slices of the leaf list, one per worker."""
    if count <= 0:
        return []
    span = max(1, math.ceil(count / max(1, worker_count)))
    chunks: List[Tuple[int, int]] = []
    start = 0
    while start < count:
        end = min(count, start + span)
        chunks.append((start, end))
        start = end
    return chunks


class ConcurrentSeries:
    """Parallel sum of a term source over ``[lower, upper)``.

    Parameters
    ----------
    terms : TermSource or callable
        Source of the summed values; real or complex.
    lower, upper : sequence of int
        Matching-length bounds of the region, ``upper`` exclusive.
    config : ConcurrencyConfig, optional
        Backend, worker count and leaf granularity.

    Notes
    -----
    Floating-point addition happens in a different order than in
    :class:`~nested_sums.series.sequential.Series`, so results agree only to
    within summation error.  With the ``process`` backend the term source is
    pickled once per chunk and must be picklable; cache fills made in the
    workers do not flow back to the parent, so fill shared tables first.
    """

    def __init__(
        self,
        terms: Any,
        lower: Sequence[int],
        upper: Sequence[int],
        *,
        config: Optional[ConcurrencyConfig] = None,
    ) -> None:
        self.terms = as_term_source(terms)
        self.region = IndexRegion(tuple(lower), tuple(upper))
        self.config = config or ConcurrencyConfig()
        self._value: Optional[Any] = None

    @property
    def dimensions(self) -> int:
        return self.region.dimensions

    def get_term(self, indices: Iterable[int]) -> Any:
        key = tuple(indices)
        if len(key) > self.dimensions:
            raise OutOfRangeError(
                f"索引向量长度 {len(key)} 超过区域维度 {self.dimensions}。")
        return self.terms.get_term(key)

    def calculate(self) -> Any:
        if self._value is not None:
            return self._value
        if self.region.size == 0:
            self._value = 0.0
            return self._value

        leaf_size = self.config.resolve_leaf_size(self.region.size)
        leaves: List[IndexRegion] = []
        root = self._plan(self.region, leaf_size, leaves)
        workers = self.config.worker_count()
        logger.debug(
            "Partitioned %d points into %d leaves (leaf_size=%d, backend=%s, workers=%d)",
            self.region.size, len(leaves), leaf_size, self.config.backend, workers)

        if self.config.backend == "serial" or workers == 1 or len(leaves) == 1:
            results = [_sum_region(self.terms, leaf) for leaf in leaves]
        else:
            results = self._run_parallel(leaves, workers)

        self._value = self._combine(root, results)
        return self._value

    def _plan(self, region: IndexRegion, leaf_size: int, leaves: List[IndexRegion]) -> _PartitionNode:
        halves = None if region.size <= leaf_size else region.split()
        if halves is None:
            leaves.append(region)
            return _PartitionNode(region, leaf_id=len(leaves) - 1)
        left = self._plan(halves[0], leaf_size, leaves)
        right = self._plan(halves[1], leaf_size, leaves)
        return _PartitionNode(region, children=(left, right))

    def _combine(self, node: _PartitionNode, results: List[Any]) -> Any:
        if node.children is None:
            return results[node.leaf_id]
        left, right = node.children
        return self._combine(left, results) + self._combine(right, results)

    def _make_executor(self, workers: int) -> Tuple[Executor, Any]:
        if self.config.backend == "process":
            ctx = mp.get_context()
            cancel = ctx.Event()
            executor = ProcessPoolExecutor(max_workers=workers, mp_context=ctx,
                                           initializer=_init_worker, initargs=(cancel,))
            return executor, cancel
        executor = ThreadPoolExecutor(max_workers=workers,
                                      thread_name_prefix="nested-sums")
        return executor, threading.Event()

    def _run_parallel(self, leaves: List[IndexRegion], workers: int) -> List[Any]:
        chunks = _make_leaf_chunks(len(leaves), workers)
        executor, cancel = self._make_executor(len(chunks))
        # 进程内的取消事件由 initializer 注入，线程直接传参
        token = None if self.config.backend == "process" else cancel
        try:
            futures = [executor.submit(_sum_chunk, self.terms, leaves[start:end], token)
                       for start, end in chunks]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            if any(future.exception() is not None for future in done):
                cancel.set()
                executor.shutdown(wait=True, cancel_futures=True)
                for future in futures:
                    if future.cancelled():
                        continue
                    error = future.exception()
                    if error is not None and not isinstance(error, _LeafCancelled):
                        raise error
            results: List[Any] = []
            for future in futures:
                results.extend(future.result())
            return results
        finally:
            executor.shutdown(wait=True)


__all__ = ["IndexRegion", "ConcurrentSeries"]
