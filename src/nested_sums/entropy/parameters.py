r"""双模相干场与 :math:`\Lambda` 型三能级原子的实验参数。

参见 W. K. Lai, V. Bužek, P. L. Knight, Phys. Rev. A 44, 6043 (1991)。
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class EntropyParameters:
    r"""同一组初始条件下各系数共享的参数。

    Attributes
    ----------
    delta : float
        失谐量 :math:`\delta`。
    g12, g23 : float
        能级 1-2 与 2-3 的原子-场耦合常数。
    alpha1sq, alpha2sq : int
        两个相干场的平均光子数 :math:`|\alpha_1|^2`、:math:`|\alpha_2|^2`。
    detected_state : int
        态约化测量得到的原子态；目前只处理 0。
    max_time : float
        标度时间的上限（不含）。
    interval : float
        时间步长。
    min_terms : int
        每个求和维度的最少项数。
    """

    delta: float = 0.0
    g12: float = 1.0
    g23: float = 1.0
    alpha1sq: int = 25
    alpha2sq: int = 25
    detected_state: int = 0
    max_time: float = 10.0
    interval: float = 0.1
    min_terms: int = 16

    def __post_init__(self) -> None:
        if self.alpha1sq < 0 or self.alpha2sq < 0:
            raise ValueError("平均光子数必须非负。")
        if self.detected_state != 0:
            raise ValueError("目前只支持探测到原子态 0。")
        if self.interval <= 0:
            raise ValueError("interval 必须为正数。")
        if self.max_time < 0:
            raise ValueError("max_time 必须非负。")
        if self.min_terms <= 0:
            raise ValueError("min_terms 必须为正整数。")
        object.__setattr__(self, "alpha1sq", int(self.alpha1sq))
        object.__setattr__(self, "alpha2sq", int(self.alpha2sq))

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "EntropyParameters":
        """按 ``(delta, g12, g23, alpha1sq, alpha2sq, detected_state, max_time, interval)`` 构造。"""
        if len(values) != 8:
            raise ValueError("参数序列必须恰好包含 8 个元素。")
        delta, g12, g23, a1, a2, state, max_time, interval = values
        return cls(
            delta=float(delta),
            g12=float(g12),
            g23=float(g23),
            alpha1sq=int(a1),
            alpha2sq=int(a2),
            detected_state=int(state),
            max_time=float(max_time),
            interval=float(interval),
        )

    @property
    def alpha1(self) -> float:
        return math.sqrt(self.alpha1sq)

    @property
    def alpha2(self) -> float:
        return math.sqrt(self.alpha2sq)

    @property
    def max_terms(self) -> int:
        return max(self.alpha1sq * self.alpha2sq, self.min_terms)

    def times(self) -> np.ndarray:
        """测量时刻 ``0, interval, 2*interval, ...``，不含 ``max_time``。"""
        steps = math.ceil(self.max_time / self.interval - 1e-9)
        return np.round(np.arange(steps) * self.interval, 10)


__all__ = ["EntropyParameters"]
