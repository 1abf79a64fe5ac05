"""结果可视化模块。"""

from .plotting import LinearEntropyPlotter, plot_linear_entropy

__all__ = ["LinearEntropyPlotter", "plot_linear_entropy"]
