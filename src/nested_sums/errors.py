"""求和引擎的异常类型。"""
from __future__ import annotations


class NestedSumsError(Exception):
    """所有引擎异常的基类。"""


class OutOfRangeError(NestedSumsError, IndexError):
    """索引向量长度与组件维度不一致，或含有负分量。"""


class UninitializedDependencyError(NestedSumsError, LookupError):
    """共享预计算（如阶乘表）尚未覆盖所请求的索引。"""


class PrecisionOverflowError(NestedSumsError, OverflowError):
    """高精度结果在双精度下舍入为无穷大。"""


__all__ = [
    "NestedSumsError",
    "OutOfRangeError",
    "UninitializedDependencyError",
    "PrecisionOverflowError",
]
