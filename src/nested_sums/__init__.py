"""大规模嵌套级数求和与记忆化引擎，用于线性熵等统计量的批量计算。"""

from .errors import (
    NestedSumsError,
    OutOfRangeError,
    PrecisionOverflowError,
    UninitializedDependencyError,
)
from .config import ConcurrencyConfig, PrecisionConfig

__all__ = [
    "numerics",
    "series",
    "entropy",
    "validation",
    "io",
    "reporting",
    "NestedSumsError",
    "OutOfRangeError",
    "PrecisionOverflowError",
    "UninitializedDependencyError",
    "ConcurrencyConfig",
    "PrecisionConfig",
]
