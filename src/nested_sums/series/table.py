"""带显式“已计算”标记的惰性系数表。"""
from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from nested_sums.errors import OutOfRangeError
from nested_sums.numerics.complex_value import ComplexValue
from nested_sums.series.sequence import Indices, as_index, as_term_source, check_indices

logger = logging.getLogger(__name__)


class CoefficientTable:
    """包装一个 :class:`TermSource`，每个索引至多计算一次。

    存储由两块 numpy 数组组成：数值数组与布尔 ``present`` 掩码。一个
    真正为 0 的系数同样被视为已命中，不会被反复重算。多个线程同时未命中
    同一单元时，只有一个线程调用项来源，其余线程等待其结果。

    Parameters
    ----------
    source : TermSource or callable
        被缓存的项来源。
    shape : sequence of int, optional
        预分配的上界（不含）。越界请求会按需扩容。
    dimensions : int, optional
        未给出 ``shape`` 时的维度，默认 2。
    complex_valued : bool
        为真时以 ``complex128`` 存储并返回 :class:`ComplexValue`。
    name : str, optional
        日志中使用的名称。
    """

    def __init__(
        self,
        source: Any,
        shape: Optional[Sequence[int]] = None,
        *,
        dimensions: Optional[int] = None,
        complex_valued: bool = False,
        name: Optional[str] = None,
    ) -> None:
        self.source = as_term_source(source)
        if shape is None:
            dims = 2 if dimensions is None else int(dimensions)
            resolved: Tuple[int, ...] = (0,) * dims
        else:
            resolved = tuple(int(s) for s in shape)
            if dimensions is not None and dimensions != len(resolved):
                raise ValueError("shape 的长度必须与 dimensions 一致。")
            if any(s < 0 for s in resolved):
                raise ValueError("shape 的分量必须非负。")
        if len(resolved) == 0:
            raise ValueError("系数表至少需要一个维度。")

        self.dimensions = len(resolved)
        self.complex_valued = complex_valued
        self.name = name or type(self.source).__name__
        dtype = np.complex128 if complex_valued else np.float64
        self._values = np.zeros(resolved, dtype=dtype)
        self._present = np.zeros(resolved, dtype=bool)
        self._lock = threading.Lock()
        self._pending: Dict[Indices, threading.Event] = {}

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self._values.shape)

    @property
    def computed_count(self) -> int:
        return int(np.count_nonzero(self._present))

    def is_present(self, indices: Iterable[int]) -> bool:
        key = check_indices(indices, self.dimensions)
        return self._covers(key) and bool(self._present[key])

    def get_term(self, indices: Iterable[int]) -> Any:
        """返回缓存值；未命中时计算、存储后返回。"""
        key = check_indices(indices, self.dimensions)
        if self._covers(key) and self._present[key]:
            return self._wrap(self._values[key])

        while True:
            with self._lock:
                if self._covers(key) and self._present[key]:
                    return self._wrap(self._values[key])
                done = self._pending.get(key)
                owner = done is None
                if owner:
                    done = threading.Event()
                    self._pending[key] = done
            if owner:
                break
            # 另一线程正在计算同一单元；其失败时本线程接手重算
            done.wait()

        try:
            value = self.source.get_term(key)
            with self._lock:
                self._grow(key)
                self._values[key] = self._convert(value)
                self._present[key] = True
                stored = self._values[key]
        finally:
            with self._lock:
                del self._pending[key]
            done.set()
        return self._wrap(stored)

    def fill(self, lower: Sequence[int], upper: Sequence[int]) -> int:
        """预先计算半开矩形 ``[lower, upper)`` 内的全部项。

        Returns
        -------
        int
            本次新计算的单元数量。
        """

        lo = check_indices(lower, self.dimensions)
        if len(tuple(upper)) != self.dimensions:
            raise OutOfRangeError(
                f"上界长度 {len(tuple(upper))} 与维度 {self.dimensions} 不一致。")
        hi = tuple(as_index(u) for u in upper)
        if any(h < l for l, h in zip(lo, hi)):
            raise ValueError("要求 lower <= upper。")
        if any(h == l for l, h in zip(lo, hi)):
            return 0

        with self._lock:
            self._grow(tuple(h - 1 for h in hi))

        computed = 0
        for key in itertools.product(*(range(l, h) for l, h in zip(lo, hi))):
            if self._present[key]:
                continue
            self.get_term(key)
            computed += 1
        logger.debug("Filled %d cells of %s over %s-%s",
                     computed, self.name, lo, hi)
        return computed

    def clear(self) -> None:
        with self._lock:
            self._present[...] = False
            self._values[...] = 0

    def _covers(self, key: Indices) -> bool:
        return all(k < s for k, s in zip(key, self._present.shape))

    def _grow(self, key: Indices) -> None:
        old_shape = self._values.shape
        new_shape = tuple(max(s, k + 1) for s, k in zip(old_shape, key))
        if new_shape == old_shape:
            return
        values = np.zeros(new_shape, dtype=self._values.dtype)
        present = np.zeros(new_shape, dtype=bool)
        region = tuple(slice(0, s) for s in old_shape)
        values[region] = self._values
        present[region] = self._present
        self._values = values
        self._present = present

    def _convert(self, value: Any) -> Any:
        if self.complex_valued:
            return complex(value)
        return float(value)

    def _wrap(self, stored: Any) -> Any:
        if self.complex_valued:
            return ComplexValue(stored.real, stored.imag)
        return float(stored)

    def __getstate__(self) -> dict:
        state = self.__dict__.copy()
        del state["_lock"]
        del state["_pending"]
        return state

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
        self._lock = threading.Lock()
        self._pending = {}

    def __repr__(self) -> str:
        return (f"CoefficientTable(name={self.name!r}, shape={self.shape}, "
                f"computed={self.computed_count})")


__all__ = ["CoefficientTable"]
