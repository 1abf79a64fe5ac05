"""数值验证工具。"""

from .normalization import NormalizationReport, normalization_check

__all__ = ["NormalizationReport", "normalization_check"]
