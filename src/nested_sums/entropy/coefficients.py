r"""线性熵计算所需的各系数项来源。

- :math:`Q(a, b)`：两相干场的泊松振幅乘积，与时间无关；
- :math:`C_0(n, m, t)`：探测到原子态 0 时的演化系数；
- :math:`B(n, m, t) = C_0 Q / N_0`：归一化后的投影场系数。
"""
from __future__ import annotations

import logging
import math
from decimal import Decimal, localcontext
from typing import Iterable, Optional

from nested_sums.config import PrecisionConfig
from nested_sums.entropy.parameters import EntropyParameters
from nested_sums.errors import PrecisionOverflowError
from nested_sums.numerics.complex_value import ComplexValue
from nested_sums.numerics.precision import FactorialTable, big_sqrt_to_float
from nested_sums.series.composite import ProductTerm, SquaredModulus
from nested_sums.series.sequence import as_term_source, check_indices
from nested_sums.series.sequential import Series

logger = logging.getLogger(__name__)

_Q_CONTEXT_PREC = 50


def _decimal_power(base: float, exponent: int) -> Decimal:
    if exponent == 0:
        return Decimal(1)
    return Decimal(base) ** exponent


def q_coefficient(
    a: int,
    b: int,
    params: EntropyParameters,
    factorials: FactorialTable,
    precision: Optional[PrecisionConfig] = None,
) -> float:
    r"""计算 :math:`\alpha_1^a \alpha_2^b e^{-(|\alpha_1|^2+|\alpha_2|^2)/2} / \sqrt{a!\,b!}`。

    分母先以精确整数构造，再用巴比伦开方。若开方结果在双精度下为无穷大，
    该项视为 0：如此大的分母使整项可以忽略。
    """

    precision = precision or PrecisionConfig()
    product = factorials.factorial(a) * factorials.factorial(b)
    try:
        root = big_sqrt_to_float(
            product, precision.sqrt_precision, precision.sqrt_iterations)
    except PrecisionOverflowError:
        logger.debug("sqrt(%d! %d!) overflows double precision, Q treated as 0", a, b)
        return 0.0

    with localcontext() as ctx:
        ctx.prec = _Q_CONTEXT_PREC
        numerator = _decimal_power(params.alpha1, a) * _decimal_power(params.alpha2, b)
        damping = (-(Decimal(params.alpha1sq) + Decimal(params.alpha2sq)) / 2).exp()
        value = numerator * damping / Decimal(root)
    return float(value)


class QCoefficients:
    """与时间无关的 :math:`Q(a, b)` 项来源。"""

    def __init__(
        self,
        params: EntropyParameters,
        factorials: FactorialTable,
        precision: Optional[PrecisionConfig] = None,
    ) -> None:
        self.params = params
        self.factorials = factorials
        self.precision = precision or PrecisionConfig()

    def get_term(self, indices: Iterable[int]) -> float:
        a, b = check_indices(indices, 2)
        return q_coefficient(a, b, self.params, self.factorials, self.precision)


class C0Coefficients:
    r"""给定时刻 ``time`` 的 :math:`C_0(n, m, t)`。

    失谐为 0 时系数为实数；否则保留虚部。
    """

    def __init__(self, time: float, params: EntropyParameters) -> None:
        self.time = float(time)
        self.params = params

    def omega1_squared(self, n: int) -> float:
        return self.params.g12 * self.params.g12 * (n + 1)

    def omega2_squared(self, n: int) -> float:
        return self.params.g23 * self.params.g23 * (n + 1)

    def omega_squared(self, n: int, m: int) -> float:
        return self.omega1_squared(n - 1) + self.omega2_squared(m)

    def omega_tilde(self, n: int, m: int) -> float:
        return math.sqrt(self.omega_squared(n, m) + (self.params.delta / 2.0) ** 2)

    def get_term(self, indices: Iterable[int]) -> ComplexValue:
        n, m = check_indices(indices, 2)
        t = self.time
        delta = self.params.delta
        o2 = self.omega_squared(n, m)
        ot = self.omega_tilde(n, m)
        direct = self.omega2_squared(m) / o2
        coupled = self.omega2_squared(n - 1) / o2

        if delta == 0.0:
            return ComplexValue(direct + coupled * math.cos(t * ot), 0.0)

        real = direct + coupled * (
            math.cos(t * ot) * math.sin(-t * delta)
            + delta * math.sin(t * ot) * math.cos(t * delta) * ot
        )
        imag = coupled * (
            math.cos(t * ot) * math.cos(t * delta)
            + delta * math.sin(t * ot) * math.sin(-delta) * ot
        )
        return ComplexValue(real, imag)


def n0_normalization(q_source, c0_source, max_terms: int) -> float:
    r""":math:`N_0 = \sqrt{\sum_{a,b} |Q(a,b)|^2 |C_0(a,b)|^2}`。"""
    weights = ProductTerm(SquaredModulus(q_source), SquaredModulus(c0_source))
    return math.sqrt(Series(weights, max_terms, 2).calculate())


class BCoefficients:
    """归一化后的投影系数 ``C_0 * Q / N_0``。"""

    def __init__(self, q_source, c0_source, n0: float) -> None:
        if n0 == 0.0:
            raise ZeroDivisionError("N_0 为 0，无法归一化 B 系数。")
        self.q_source = as_term_source(q_source)
        self.c0_source = as_term_source(c0_source)
        self.n0 = float(n0)

    def get_term(self, indices: Iterable[int]) -> ComplexValue:
        key = check_indices(indices, 2)
        scale = float(self.q_source.get_term(key)) / self.n0
        return ComplexValue.from_complex(self.c0_source.get_term(key)).multiply(scale)


__all__ = [
    "q_coefficient",
    "QCoefficients",
    "C0Coefficients",
    "n0_normalization",
    "BCoefficients",
]
