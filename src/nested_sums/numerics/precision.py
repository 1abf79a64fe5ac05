"""高精度算术：精确阶乘表与大数巴比伦开方。

组合系数中的 ``sqrt(a! b!)`` 在双精度下很快溢出或丢失全部有效数字，
本模块把这部分计算隔离为精确整数与定点 ``Decimal`` 运算，调用方再把
结果安全地缩回双精度。
"""
from __future__ import annotations

import logging
import math
import threading
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import List, Union

from nested_sums.config import PrecisionConfig
from nested_sums.errors import PrecisionOverflowError, UninitializedDependencyError

logger = logging.getLogger(__name__)

_GUARD_DIGITS = 10

Radicand = Union[int, Decimal]


class FactorialTable:
    """只增不减的精确阶乘表。

    由驱动程序显式创建并持有，按引用传给需要阶乘的组件。``ensure`` 在
    锁内追加，多线程填充是安全的；读取不加锁。
    """

    def __init__(self, max_n: int | None = None) -> None:
        self._values: List[int] = [1]
        self._lock = threading.Lock()
        if max_n is not None:
            self.ensure(max_n)

    def ensure(self, max_n: int) -> None:
        """保证 ``0..max_n`` 的阶乘都已缓存；已覆盖时不做任何事。"""
        if max_n < 0:
            raise ValueError("max_n 必须为非负整数。")
        if max_n < len(self._values):
            return
        with self._lock:
            start = len(self._values)
            if start > max_n:
                return
            values = self._values
            for n in range(start, max_n + 1):
                values.append(values[-1] * n)
            logger.debug("Factorial table extended from %d to %d", start - 1, max_n)

    def factorial(self, n: int) -> int:
        """返回 ``n!`` 的精确值。"""
        if n < 0:
            raise ValueError("n 必须为非负整数。")
        if n >= len(self._values):
            raise UninitializedDependencyError(
                f"阶乘表仅覆盖到 {self.covered}，请求 {n}!；请先调用 ensure({n})。")
        return self._values[n]

    @property
    def covered(self) -> int:
        return len(self._values) - 1

    def __contains__(self, n: object) -> bool:
        return isinstance(n, int) and 0 <= n < len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getstate__(self) -> dict:
        return {"values": list(self._values)}

    def __setstate__(self, state: dict) -> None:
        self._values = state["values"]
        self._lock = threading.Lock()


def ensure_factorials(table: FactorialTable, max_n: int) -> FactorialTable:
    """便捷函数，等价于 ``table.ensure(max_n)``。"""
    table.ensure(max_n)
    return table


def big_sqrt(
    value: Radicand,
    precision: int = PrecisionConfig.sqrt_precision,
    iterations: int = PrecisionConfig.sqrt_iterations,
) -> Decimal:
    r"""巴比伦（牛顿）迭代计算 :math:`\sqrt{A}`。

    初值取 ``10 ** (digits(A) // 2)``，迭代固定 ``iterations`` 轮，而不是
    按收敛判据提前结束，以限定最坏情况的开销。

    结果在 ``precision`` 位小数之外另保留 ``digits(A) // 2 + 1`` 位保护位，
    使 :math:`|r^2 - A| \le 10^{-\mathrm{precision}}`。

    Parameters
    ----------
    value : int or Decimal
        非负被开方数。
    precision : int
        平方误差的目标位数。
    iterations : int
        迭代轮数。

    Returns
    -------
    Decimal
        定点小数，指数为 ``-(precision + guard)``。
    """

    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise TypeError("big_sqrt 仅接受 int 或 Decimal。")
    if precision < 0:
        raise ValueError("precision 必须为非负整数。")
    if iterations <= 0:
        raise ValueError("iterations 必须为正整数。")

    radicand = Decimal(value)
    if not radicand.is_finite():
        raise ValueError("被开方数必须是有限值。")
    if radicand < 0:
        raise ValueError("被开方数必须非负。")

    if radicand == 0:
        return Decimal(0).quantize(Decimal(1).scaleb(-precision))

    digits = radicand.adjusted() + 1
    # sqrt(A) < 10 ** guard，平方把舍入误差放大不到 10 ** guard 倍
    guard = max(digits, 0) // 2 + 1
    quantum = Decimal(1).scaleb(-(precision + guard))
    with localcontext() as ctx:
        ctx.prec = max(digits, 0) + precision + _GUARD_DIGITS
        ctx.rounding = ROUND_HALF_UP
        guess = Decimal(1).scaleb(digits // 2)
        for _ in range(iterations):
            guess = (radicand / guess + guess) / 2
        return guess.quantize(quantum)


def big_sqrt_to_float(
    value: Radicand,
    precision: int = PrecisionConfig.sqrt_precision,
    iterations: int = PrecisionConfig.sqrt_iterations,
) -> float:
    """``big_sqrt`` 的双精度近似；结果溢出时抛出 ``PrecisionOverflowError``。"""
    root = float(big_sqrt(value, precision, iterations))
    if math.isinf(root):
        raise PrecisionOverflowError("平方根超出双精度表示范围。")
    return root


__all__ = [
    "FactorialTable",
    "ensure_factorials",
    "big_sqrt",
    "big_sqrt_to_float",
]
