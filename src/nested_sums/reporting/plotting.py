"""绘制线性熵随测量时刻变化的曲线。"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import matplotlib.pyplot as plt
import numpy as np


@dataclass
class LinearEntropyPlotter:
    """负责线性熵的可视化输出。"""

    def plot(self, times: Iterable[float], values: Iterable[float], *, title: str, output_path: str | None = None) -> None:
        """绘制 ``S(t)``，并可选保存。"""
        times_arr = np.asarray(tuple(times), dtype=float)
        values_arr = np.asarray(tuple(values), dtype=float)

        fig, ax = plt.subplots(figsize=(8, 5))
        ax.plot(times_arr, values_arr, label="S = 1 - Tr ρ²", lw=1.6)
        ax.set_xlabel("scaled time")
        ax.set_ylabel("linear entropy")
        ax.set_ylim(bottom=0.0)
        ax.set_title(title)
        ax.legend()
        ax.grid(True, linestyle="--", alpha=0.4)

        if output_path:
            fig.savefig(output_path, dpi=300, bbox_inches="tight")
        plt.close(fig)


def plot_linear_entropy(times: Iterable[float], values: Iterable[float], *, title: str, output_path: str | None = None) -> None:
    """便捷函数，内部调用 :class:`LinearEntropyPlotter`。"""
    plotter = LinearEntropyPlotter()
    plotter.plot(times, values, title=title, output_path=output_path)
