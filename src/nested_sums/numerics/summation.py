"""递归二分求和。"""
from __future__ import annotations

from typing import Any, Sequence


def pairwise_sum(values: Sequence[Any], start: Any = 0) -> Any:
    """对序列做递归二分求和，舍入误差随长度按对数增长。

    ``values`` 可以是实数、复数或 :class:`ComplexValue`，空序列返回 ``start``。
    """

    count = len(values)
    if count == 0:
        return start
    if count == 1:
        return start + values[0]
    return _pairwise(values, 0, count) + start


def _pairwise(values: Sequence[Any], lo: int, hi: int) -> Any:
    if hi - lo <= 2:
        total = values[lo]
        for idx in range(lo + 1, hi):
            total = total + values[idx]
        return total
    mid = (lo + hi) // 2
    return _pairwise(values, lo, mid) + _pairwise(values, mid, hi)


__all__ = ["pairwise_sum"]
