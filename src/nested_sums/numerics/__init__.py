"""高精度算术与复数值工具。"""

from .precision import FactorialTable, big_sqrt, big_sqrt_to_float, ensure_factorials
from .complex_value import ComplexValue
from .summation import pairwise_sum

__all__ = [
    "FactorialTable",
    "ensure_factorials",
    "big_sqrt",
    "big_sqrt_to_float",
    "ComplexValue",
    "pairwise_sum",
]
