"""I/O helpers."""

from .results import LinearEntropyResult, LinearEntropyResultWriter, parameters_metadata

__all__ = ["LinearEntropyResult", "LinearEntropyResultWriter", "parameters_metadata"]
