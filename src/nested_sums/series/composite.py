"""由其他系数表组合而成的项来源。"""
from __future__ import annotations

from typing import Any, Iterable, Sequence

from nested_sums.numerics.complex_value import ComplexValue
from nested_sums.series.sequence import Indices, as_term_source, check_indices
from nested_sums.series.sequential import ComplexSeries


class SharedIndexProduct:
    r"""单索引项 :math:`L(n, l)\,\overline{R(m, l)}`，``(n, m)`` 由外层固定。"""

    def __init__(
        self,
        left: Any,
        right: Any,
        outer_indices: Sequence[int],
        *,
        conjugate_right: bool = True,
    ) -> None:
        self.left = as_term_source(left)
        self.right = as_term_source(right)
        self.outer_indices: Indices = check_indices(outer_indices, 2)
        self.conjugate_right = conjugate_right

    def get_term(self, indices: Iterable[int]) -> ComplexValue:
        (shared,) = check_indices(indices, 1)
        n, m = self.outer_indices
        a = ComplexValue.from_complex(self.left.get_term((n, shared)))
        b = ComplexValue.from_complex(self.right.get_term((m, shared)))
        if self.conjugate_right:
            b = b.conjugate()
        return a.multiply(b)


class ContractedProduct:
    r"""二维项 :math:`\sum_{l<\mathrm{max}} L(n, l)\,\overline{R(m, l)}`。

    内层求和由 :class:`ComplexSeries` 完成，通常再由 ``CoefficientTable``
    包装以缓存结果。
    """

    def __init__(self, left: Any, right: Any, max_index: int, *, conjugate_right: bool = True) -> None:
        self.left = as_term_source(left)
        self.right = as_term_source(right)
        self.max_index = int(max_index)
        self.conjugate_right = conjugate_right

    def get_term(self, indices: Iterable[int]) -> ComplexValue:
        outer = check_indices(indices, 2)
        product = SharedIndexProduct(self.left, self.right, outer,
                                     conjugate_right=self.conjugate_right)
        return ComplexSeries(product, self.max_index, 1).calculate()


class SquaredModulus:
    """项的模长平方，结果为实数。"""

    def __init__(self, source: Any) -> None:
        self.source = as_term_source(source)

    def get_term(self, indices: Iterable[int]) -> float:
        value = self.source.get_term(tuple(indices))
        if isinstance(value, ComplexValue):
            modulus = value.modulus()
        else:
            modulus = abs(value)
        return modulus * modulus


class ScaledTerm:
    """项乘以常数因子。"""

    def __init__(self, source: Any, factor: Any) -> None:
        self.source = as_term_source(source)
        self.factor = factor

    def get_term(self, indices: Iterable[int]) -> Any:
        return self.source.get_term(tuple(indices)) * self.factor


class ProductTerm:
    """逐点乘积 ``A(idx) * B(idx)``，两者维度相同。"""

    def __init__(self, *sources: Any) -> None:
        if not sources:
            raise ValueError("ProductTerm 至少需要一个因子。")
        self.sources = tuple(as_term_source(s) for s in sources)

    def get_term(self, indices: Iterable[int]) -> Any:
        key = tuple(indices)
        value = self.sources[0].get_term(key)
        for source in self.sources[1:]:
            value = value * source.get_term(key)
        return value


__all__ = [
    "SharedIndexProduct",
    "ContractedProduct",
    "SquaredModulus",
    "ScaledTerm",
    "ProductTerm",
]
