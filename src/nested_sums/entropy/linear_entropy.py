r"""线性熵 :math:`S = 1 - \mathrm{Tr}\,\rho_a^2`。

约化密度算符 :math:`\rho_a(n, m) = F(n, m) = \sum_l B(n, l)\,\overline{B(m, l)}`，
因此 :math:`\mathrm{Tr}\,\rho_a^2 = \sum_{n,m} |F(n, m)|^2`，该二维求和交给
并发求和器完成。
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Tuple

from nested_sums.config import ConcurrencyConfig, PrecisionConfig
from nested_sums.entropy.coefficients import (
    BCoefficients,
    C0Coefficients,
    QCoefficients,
    n0_normalization,
)
from nested_sums.entropy.parameters import EntropyParameters
from nested_sums.numerics.precision import FactorialTable
from nested_sums.series.composite import ContractedProduct, SquaredModulus
from nested_sums.series.concurrent import ConcurrentSeries
from nested_sums.series.sequential import Series
from nested_sums.series.table import CoefficientTable

logger = logging.getLogger(__name__)


def _time_key(time: float) -> float:
    return round(float(time), 10)


class EntropyModel:
    """一组参数下的全部系数表。

    阶乘表、与时间无关的 ``Q`` 表以及按时刻缓存的 ``C_0``、``B``、``F``
    表都由本对象显式持有，生命周期由调用方管理。
    """

    def __init__(
        self,
        params: EntropyParameters,
        *,
        factorials: Optional[FactorialTable] = None,
        precision: Optional[PrecisionConfig] = None,
        concurrency: Optional[ConcurrencyConfig] = None,
    ) -> None:
        self.params = params
        self.precision = precision or PrecisionConfig()
        self.concurrency = concurrency or ConcurrencyConfig()
        self.factorials = factorials if factorials is not None else FactorialTable()
        self.factorials.ensure(params.max_terms)

        size = params.max_terms
        self.q_table = CoefficientTable(
            QCoefficients(params, self.factorials, self.precision),
            shape=(size, size),
            name="Q",
        )
        self._c0_tables: Dict[float, CoefficientTable] = {}
        self._n0: Dict[float, float] = {}
        self._b_tables: Dict[float, CoefficientTable] = {}
        self._f_tables: Dict[float, CoefficientTable] = {}

    @property
    def max_terms(self) -> int:
        return self.params.max_terms

    def prepare(self) -> None:
        """预先填充与时间无关的 ``Q`` 表。"""
        size = self.max_terms
        logger.info("Calculating Q coefficients (%d x %d) ...", size, size)
        self.q_table.fill((0, 0), (size, size))
        logger.info("Q coefficients finished.")

    def c0_table(self, time: float) -> CoefficientTable:
        key = _time_key(time)
        table = self._c0_tables.get(key)
        if table is None:
            size = self.max_terms
            table = CoefficientTable(
                C0Coefficients(key, self.params),
                shape=(size, size),
                complex_valued=True,
                name=f"C0(t={key})",
            )
            self._c0_tables[key] = table
        return table

    def n0(self, time: float) -> float:
        key = _time_key(time)
        if key not in self._n0:
            self._n0[key] = n0_normalization(
                self.q_table, self.c0_table(key), self.max_terms)
        return self._n0[key]

    def b_table(self, time: float) -> CoefficientTable:
        key = _time_key(time)
        table = self._b_tables.get(key)
        if table is None:
            size = self.max_terms
            table = CoefficientTable(
                BCoefficients(self.q_table, self.c0_table(key), self.n0(key)),
                shape=(size, size),
                complex_valued=True,
                name=f"B(t={key})",
            )
            self._b_tables[key] = table
        return table

    def build_b_tables(self, times: Optional[Iterable[float]] = None) -> None:
        """为每个时刻预先填满 ``B`` 表。"""
        times = self.params.times() if times is None else times
        size = self.max_terms
        logger.info("Building B coefficient matrix ...")
        for time in times:
            self.b_table(time).fill((0, 0), (size, size))
        logger.info("B coefficient matrix complete")

    def f_table(self, time: float) -> CoefficientTable:
        key = _time_key(time)
        table = self._f_tables.get(key)
        if table is None:
            b = self.b_table(key)
            size = self.max_terms
            table = CoefficientTable(
                ContractedProduct(b, b, size),
                shape=(size, size),
                complex_valued=True,
                name=f"F(t={key})",
            )
            self._f_tables[key] = table
        return table

    def b0(self, time: float) -> float:
        r""":math:`\sqrt{\sum |B|^2}`，按归一化应等于 1。"""
        total = Series(SquaredModulus(self.b_table(time)), self.max_terms, 2).calculate()
        return math.sqrt(total)

    def linear_entropy(self, time: float) -> "LinearEntropy":
        return LinearEntropy(time, self)

    def linear_entropy_series(self, times: Optional[Iterable[float]] = None) -> List[Tuple[float, float]]:
        times = self.params.times() if times is None else times
        results = []
        for time in times:
            value = self.linear_entropy(time).calculate()
            logger.debug("t=%.4f S=%.12g", time, value)
            results.append((float(time), value))
        return results


class LinearEntropy:
    """某一测量时刻的线性熵，结果在首次计算后缓存。"""

    def __init__(self, time: float, model: EntropyModel) -> None:
        self.time = _time_key(time)
        self.model = model
        self._result: Optional[float] = None

    def trace_rho_squared(self) -> float:
        size = self.model.max_terms
        # 先在主进程填满 B 表，工作进程只需计算 F
        self.model.b_table(self.time).fill((0, 0), (size, size))
        terms = SquaredModulus(self.model.f_table(self.time))
        series = ConcurrentSeries(terms, (0, 0), (size, size),
                                  config=self.model.concurrency)
        return float(series.calculate())

    def calculate(self) -> float:
        if self._result is None:
            self._result = 1.0 - self.trace_rho_squared()
        return self._result


__all__ = ["EntropyModel", "LinearEntropy"]
