"""Persistence helpers for linear entropy runs."""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np

from nested_sums.entropy.parameters import EntropyParameters


@dataclass
class LinearEntropyResult:
    times: np.ndarray
    values: np.ndarray
    metadata: Dict[str, Any]


class LinearEntropyResultWriter:
    """Write ``time value`` tables plus a JSON metadata sidecar."""

    data_suffix = ".txt"
    metadata_suffix = ".json"

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)

    @staticmethod
    def file_stem(params: EntropyParameters, timestamp: Optional[datetime] = None) -> str:
        """Timestamped name so that repeated runs never overwrite each other."""
        stamp = (timestamp or datetime.now()).strftime("%H%M%S%f")
        return (f"lentropy_fieldA_nbar{params.alpha1sq}-{params.alpha2sq}"
                f"_{params.detected_state}detected{stamp}")

    def _resolve(self, stem: str, suffix: str) -> Path:
        return self.base_path / f"{stem}{suffix}"

    def save(
        self,
        stem: str,
        *,
        times: Iterable[float],
        values: Iterable[float],
        metadata: Mapping[str, object],
    ) -> Path:
        times_arr = np.asarray(tuple(times), dtype=float)
        values_arr = np.asarray(tuple(values), dtype=float)
        if times_arr.shape != values_arr.shape:
            raise ValueError("times 与 values 长度必须一致。")

        self.base_path.mkdir(parents=True, exist_ok=True)
        data_file = self._resolve(stem, self.data_suffix)
        with data_file.open("w", encoding="utf-8") as handle:
            for time, value in zip(times_arr, values_arr):
                handle.write(f"{round(float(time), 1)} {float(value)!r}\n")
        with self._resolve(stem, self.metadata_suffix).open("w", encoding="utf-8") as handle:
            json.dump(dict(metadata), handle, ensure_ascii=False,
                      indent=2, sort_keys=True)
        return data_file

    def load(self, stem: str) -> LinearEntropyResult:
        data = np.loadtxt(self._resolve(stem, self.data_suffix), ndmin=2)
        metadata: Dict[str, Any] = {}
        meta_file = self._resolve(stem, self.metadata_suffix)
        if meta_file.exists():
            with meta_file.open("r", encoding="utf-8") as handle:
                metadata = json.load(handle)
        if data.size == 0:
            empty = np.zeros(0, dtype=float)
            return LinearEntropyResult(times=empty, values=empty.copy(), metadata=metadata)
        return LinearEntropyResult(times=data[:, 0], values=data[:, 1], metadata=metadata)

    def drop(self, stem: str) -> None:
        for suffix in (self.data_suffix, self.metadata_suffix):
            path = self._resolve(stem, suffix)
            if path.exists():
                path.unlink()


def parameters_metadata(params: EntropyParameters) -> Dict[str, object]:
    return {
        "delta": params.delta,
        "g12": params.g12,
        "g23": params.g23,
        "alpha1sq": params.alpha1sq,
        "alpha2sq": params.alpha2sq,
        "detected_state": params.detected_state,
        "max_time": params.max_time,
        "interval": params.interval,
        "max_terms": params.max_terms,
    }


__all__ = ["LinearEntropyResult", "LinearEntropyResultWriter", "parameters_metadata"]
