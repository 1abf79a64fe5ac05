"""Configuration objects shared by the summation engine."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


BACKENDS = ("serial", "thread", "process")


@dataclass(frozen=True)
class PrecisionConfig:
    """Settings for the Babylonian big square root.

    Attributes
    ----------
    sqrt_precision : int
        Decimal digits kept after the point.
    sqrt_iterations : int
        Fixed number of refinement rounds. The count bounds the worst-case
        cost; it is not a convergence test.
    """

    sqrt_precision: int = 400
    sqrt_iterations: int = 32

    def __post_init__(self) -> None:
        if self.sqrt_precision < 0:
            raise ValueError("sqrt_precision 必须为非负整数。")
        if self.sqrt_iterations <= 0:
            raise ValueError("sqrt_iterations 必须为正整数。")


@dataclass(frozen=True)
class ConcurrencyConfig:
    """Configuration for the divide-and-conquer evaluator.

    Terms are pure-Python CPU work, so ``process`` is the default; ``thread``
    only helps when the term source releases the GIL.
    """

    backend: str = "process"
    max_workers: Optional[int] = None
    leaf_size: Optional[int] = None
    tasks_per_worker: int = 4

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(
                f"backend 必须为 {', '.join(BACKENDS)} 之一，得到 {self.backend!r}。")
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError("max_workers 必须为正整数。")
        if self.leaf_size is not None and self.leaf_size <= 0:
            raise ValueError("leaf_size 必须为正整数。")
        if self.tasks_per_worker <= 0:
            raise ValueError("tasks_per_worker 必须为正整数。")

    def worker_count(self) -> int:
        if self.backend == "serial":
            return 1
        if self.max_workers is not None:
            return self.max_workers
        return os.cpu_count() or 1

    def resolve_leaf_size(self, region_size: int) -> int:
        """Largest number of points evaluated inside a single task."""
        if self.leaf_size is not None:
            return self.leaf_size
        tasks = self.worker_count() * self.tasks_per_worker
        return max(1, -(-region_size // tasks))


__all__ = ["BACKENDS", "PrecisionConfig", "ConcurrencyConfig"]
