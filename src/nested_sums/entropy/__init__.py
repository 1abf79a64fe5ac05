"""双模相干场线性熵的系数链。"""

from .parameters import EntropyParameters
from .coefficients import (
    BCoefficients,
    C0Coefficients,
    QCoefficients,
    n0_normalization,
    q_coefficient,
)
from .linear_entropy import EntropyModel, LinearEntropy

__all__ = [
    "EntropyParameters",
    "q_coefficient",
    "QCoefficients",
    "C0Coefficients",
    "n0_normalization",
    "BCoefficients",
    "EntropyModel",
    "LinearEntropy",
]
