"""嵌套求和引擎：项来源、记忆化系数表、顺序与并发求和器。"""

from .sequence import FunctionTerm, TermSource, as_index, as_term_source, check_indices
from .table import CoefficientTable
from .sequential import ComplexSeries, Series
from .concurrent import ConcurrentSeries, IndexRegion
from .composite import (
    ContractedProduct,
    ProductTerm,
    ScaledTerm,
    SharedIndexProduct,
    SquaredModulus,
)

__all__ = [
    "TermSource",
    "FunctionTerm",
    "as_term_source",
    "as_index",
    "check_indices",
    "CoefficientTable",
    "Series",
    "ComplexSeries",
    "ConcurrentSeries",
    "IndexRegion",
    "SharedIndexProduct",
    "ContractedProduct",
    "SquaredModulus",
    "ScaledTerm",
    "ProductTerm",
]
