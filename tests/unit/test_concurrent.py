"""分治并发求和测试。"""

import time

import pytest

from nested_sums.config import ConcurrencyConfig
from nested_sums.errors import OutOfRangeError
from nested_sums.numerics.complex_value import ComplexValue
from nested_sums.series.concurrent import ConcurrentSeries, IndexRegion, _make_leaf_chunks
from nested_sums.series.sequential import Series


def _one(indices):
    return 1.0


def _decaying(indices):
    i, j = indices
    return 1.0 / (1.0 + i + j) ** 2


def _fails_on_diagonal_point(indices):
    if indices == (3, 3):
        raise RuntimeError("term evaluation failed")
    return 1.0


def _complex_term(indices):
    return ComplexValue(1.0, indices[1])


class TestIndexRegion:
    """半开区域与中点切分。"""

    def test_size_and_points(self):
        region = IndexRegion((0, 0), (2, 3))
        assert region.size == 6
        assert list(region.points())[:3] == [(0, 0), (0, 1), (0, 2)]
        assert not region.is_point

    def test_split_on_first_axis(self):
        left, right = IndexRegion((0, 0), (10, 10)).split()
        assert left == IndexRegion((0, 0), (5, 10))
        assert right == IndexRegion((5, 0), (10, 10))

    def test_split_skips_unit_axes(self):
        left, right = IndexRegion((0, 3), (1, 8)).split()
        assert left == IndexRegion((0, 3), (1, 5))
        assert right == IndexRegion((0, 5), (1, 8))

    def test_point_cannot_split(self):
        region = IndexRegion((4, 4), (5, 5))
        assert region.is_point
        assert region.split() is None

    def test_halves_partition_parent(self):
        region = IndexRegion((1, 2, 0), (8, 5, 3))
        left, right = region.split()
        assert left.size + right.size == region.size
        assert set(left.points()) | set(right.points()) == set(region.points())

    def test_invalid_bounds(self):
        with pytest.raises(OutOfRangeError):
            IndexRegion((0, 0), (1, 1, 1))
        with pytest.raises(OutOfRangeError):
            IndexRegion((-1, 0), (1, 1))
        with pytest.raises(ValueError):
            IndexRegion((3, 0), (2, 1))
        with pytest.raises(OutOfRangeError):
            IndexRegion((0, 0), (2.5, 3))


class TestConcurrentSeries:
    """各后端结果与顺序求和一致。"""

    @pytest.mark.parametrize("backend", ["serial", "thread", "process"])
    def test_ones_over_square(self, backend):
        config = ConcurrencyConfig(backend=backend, max_workers=2, leaf_size=7)
        series = ConcurrentSeries(_one, (0, 0), (10, 10), config=config)
        assert series.calculate() == 100.0

    @pytest.mark.parametrize("leaf_size", [1, 3, 64, None])
    def test_matches_sequential(self, leaf_size):
        config = ConcurrencyConfig(backend="thread", max_workers=4, leaf_size=leaf_size)
        concurrent = ConcurrentSeries(_decaying, (0, 0), (30, 30), config=config)
        sequential = Series(_decaying, 30, 2)
        assert concurrent.calculate() == pytest.approx(sequential.calculate(), rel=1e-9)

    def test_offset_region(self):
        config = ConcurrencyConfig(backend="thread", max_workers=3, leaf_size=4)
        series = ConcurrentSeries(lambda idx: float(idx[0]), (2, 0), (5, 4), config=config)
        assert series.calculate() == (2.0 + 3.0 + 4.0) * 4

    def test_complex_terms(self):
        config = ConcurrencyConfig(backend="thread", max_workers=2, leaf_size=2)
        series = ConcurrentSeries(lambda idx: ComplexValue(1.0, idx[1]), (0, 0), (3, 3),
                                  config=config)
        assert series.calculate() == ComplexValue(9.0, 9.0)

    def test_empty_region(self):
        series = ConcurrentSeries(_one, (2, 2), (2, 9))
        assert series.calculate() == 0.0

    def test_single_point(self):
        series = ConcurrentSeries(_decaying, (1, 1), (2, 2))
        assert series.calculate() == pytest.approx(1.0 / 9.0)

    def test_result_is_cached(self):
        calls = []

        def term(idx):
            calls.append(idx)
            return 1.0

        config = ConcurrencyConfig(backend="thread", max_workers=2, leaf_size=2)
        series = ConcurrentSeries(term, (0, 0), (4, 4), config=config)
        series.calculate()
        series.calculate()
        assert len(calls) == 16

    @pytest.mark.parametrize("backend", ["thread", "process"])
    def test_term_failure_propagates(self, backend):
        config = ConcurrencyConfig(backend=backend, max_workers=4, leaf_size=4)
        series = ConcurrentSeries(_fails_on_diagonal_point, (0, 0), (8, 8), config=config)
        with pytest.raises(RuntimeError, match="term evaluation failed"):
            series.calculate()

    def test_failure_cancels_sibling_leaves(self):
        calls = []

        def term(idx):
            calls.append(idx)
            if idx == (0, 0):
                raise RuntimeError("first point failed")
            time.sleep(0.005)
            return 1.0

        config = ConcurrencyConfig(backend="thread", max_workers=2, leaf_size=1)
        series = ConcurrentSeries(term, (0, 0), (8, 8), config=config)
        with pytest.raises(RuntimeError, match="first point failed"):
            series.calculate()
        # 不取消时第二个分块会求完全部 32 个叶子
        assert len(calls) < series.region.size // 4

    def test_complex_terms_on_process_pool(self):
        config = ConcurrencyConfig(backend="process", max_workers=2, leaf_size=3)
        series = ConcurrentSeries(_complex_term, (0, 0), (4, 4), config=config)
        assert series.calculate() == ComplexValue(16.0, 24.0)

    def test_get_term_rejects_long_index(self):
        series = ConcurrentSeries(_one, (0, 0), (2, 2))
        assert series.get_term((1, 1)) == 1.0
        with pytest.raises(OutOfRangeError):
            series.get_term((0, 0, 0))


class TestLeafChunks:
    """叶子按工作进程数切成连续分块。"""

    def test_one_chunk_per_worker(self):
        assert _make_leaf_chunks(10, 3) == [(0, 4), (4, 8), (8, 10)]
        assert _make_leaf_chunks(64, 2) == [(0, 32), (32, 64)]

    def test_fewer_leaves_than_workers(self):
        assert _make_leaf_chunks(2, 8) == [(0, 1), (1, 2)]

    def test_no_leaves(self):
        assert _make_leaf_chunks(0, 4) == []


class TestConcurrencyConfig:
    def test_default_backend_uses_processes(self):
        assert ConcurrencyConfig().backend == "process"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            ConcurrencyConfig(backend="gpu")

    def test_worker_count(self):
        assert ConcurrencyConfig(backend="serial", max_workers=8).worker_count() == 1
        assert ConcurrencyConfig(max_workers=3).worker_count() == 3
        assert ConcurrencyConfig().worker_count() >= 1

    def test_resolve_leaf_size(self):
        config = ConcurrencyConfig(max_workers=5, tasks_per_worker=4)
        assert config.resolve_leaf_size(100) == 5
        assert config.resolve_leaf_size(101) == 6
        assert ConcurrencyConfig(leaf_size=9).resolve_leaf_size(100) == 9
        assert ConcurrencyConfig(backend="serial").resolve_leaf_size(3) == 1

    def test_rejects_non_positive_values(self):
        with pytest.raises(ValueError):
            ConcurrencyConfig(max_workers=0)
        with pytest.raises(ValueError):
            ConcurrencyConfig(leaf_size=0)
