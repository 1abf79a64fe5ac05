"""顺序嵌套求和，复杂度 O(max ** depth)。"""
from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from nested_sums.errors import OutOfRangeError
from nested_sums.numerics.complex_value import ComplexValue
from nested_sums.series.sequence import Indices, as_index, as_term_source


class Series:
    r"""嵌套级数 :math:`\sum_{i_1}\cdots\sum_{i_d} T(i_1, \dots, i_d)`。

    每一层对最外侧剩余索引取 ``[0, max_index)``，并为内层构造深度减一的
    子级数；索引前缀以元组按值传递，各层之间不共享可变数组。

    ``Series`` 本身也实现 ``get_term``，因此可以作为外层求和的项来源。
    """

    def __init__(
        self,
        terms: Any,
        max_index: int,
        depth: int = 1,
        *,
        outer_indices: Sequence[int] = (),
    ) -> None:
        if max_index < 0:
            raise ValueError("max_index 必须为非负整数。")
        if depth < 1:
            raise ValueError("depth 至少为 1。")
        self.terms = as_term_source(terms)
        self.max_index = int(max_index)
        self.depth = int(depth)
        self.outer_indices: Indices = tuple(as_index(i) for i in outer_indices)
        self._value: Optional[Any] = None

    def zero(self) -> Any:
        return 0.0

    def accumulate(self, total: Any, value: Any) -> Any:
        return total + float(value)

    def get_term(self, indices: Iterable[int]) -> Any:
        key = tuple(indices)
        if len(key) > self.depth + len(self.outer_indices):
            raise OutOfRangeError(
                f"索引向量长度 {len(key)} 超过求和深度 {self.depth}。")
        return self.terms.get_term(key)

    def calculate(self) -> Any:
        """返回级数和；结果在首次计算后缓存。"""
        if self._value is not None:
            return self._value

        total = self.zero()
        for i in range(self.max_index):
            prefix = self.outer_indices + (i,)
            if self.depth == 1:
                total = self.accumulate(total, self.terms.get_term(prefix))
            else:
                inner = type(self)(self.terms, self.max_index,
                                   self.depth - 1, outer_indices=prefix)
                total = self.accumulate(total, inner.calculate())
        self._value = total
        return total

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(max_index={self.max_index}, "
                f"depth={self.depth}, outer_indices={self.outer_indices})")


class ComplexSeries(Series):
    """与 :class:`Series` 相同，但以复数加法累加，保留虚部。"""

    def zero(self) -> ComplexValue:
        return ComplexValue(0.0, 0.0)

    def accumulate(self, total: ComplexValue, value: Any) -> ComplexValue:
        return total.add(value)


__all__ = ["Series", "ComplexSeries"]
