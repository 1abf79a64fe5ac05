"""项生成器契约：给定索引向量返回一个数值。"""
from __future__ import annotations

import numbers
import operator
from typing import Any, Callable, Iterable, Optional, Protocol, Tuple, runtime_checkable

from nested_sums.errors import OutOfRangeError

Indices = Tuple[int, ...]


@runtime_checkable
class TermSource(Protocol):
    """纯函数式的项来源，由具体系数公式实现。"""

    def get_term(self, indices: Indices) -> Any:
        ...


class FunctionTerm:
    """把普通可调用对象包装为 :class:`TermSource`。"""

    def __init__(self, fn: Callable[[Indices], Any], dimensions: Optional[int] = None) -> None:
        self.fn = fn
        self.dimensions = dimensions

    def get_term(self, indices: Iterable[int]) -> Any:
        key = tuple(indices)
        if self.dimensions is not None:
            key = check_indices(key, self.dimensions)
        return self.fn(key)

    def __repr__(self) -> str:
        return f"FunctionTerm({self.fn!r}, dimensions={self.dimensions})"


def as_term_source(obj: Any) -> TermSource:
    if isinstance(obj, TermSource):
        return obj
    if callable(obj):
        return FunctionTerm(obj)
    raise TypeError(f"{type(obj).__name__} 既不是 TermSource 也不可调用。")


def as_index(value: Any) -> int:
    """把单个索引分量转换为 ``int``；非整数值不做截断而是报错。"""
    try:
        return operator.index(value)
    except TypeError:
        pass
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return int(value)
    raise OutOfRangeError(f"索引分量 {value!r} 不是整数。")


def check_indices(indices: Iterable[int], dimensions: int) -> Indices:
    """校验索引向量长度与分量，返回整数元组。"""
    key = tuple(as_index(i) for i in indices)
    if len(key) != dimensions:
        raise OutOfRangeError(
            f"索引向量 {key} 的长度为 {len(key)}，组件维度为 {dimensions}。")
    for value in key:
        if value < 0:
            raise OutOfRangeError(f"索引向量 {key} 含有负分量。")
    return key


__all__ = ["Indices", "TermSource", "FunctionTerm", "as_term_source", "as_index", "check_indices"]
