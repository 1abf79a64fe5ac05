"""B 系数归一化检查：按构造 ``sqrt(sum |B|^2)`` 应等于 1。"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from nested_sums.entropy.linear_entropy import EntropyModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationReport:
    time: float
    b0: float
    deviation: float
    passed: bool


def normalization_check(model: EntropyModel, time: float = 0.0, tol: float = 1e-6) -> NormalizationReport:
    """计算 ``B_0`` 并与 1 比较。"""
    b0 = model.b0(time)
    deviation = abs(b0 - 1.0)
    passed = deviation <= tol
    if not passed:
        logger.warning("Normalization check failed at t=%s: |B| = %.12g", time, b0)
    return NormalizationReport(time=float(time), b0=b0, deviation=deviation, passed=passed)
