"""精确阶乘表与巴比伦开方的单元测试。"""

import logging
import math
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, localcontext

import pytest
import sympy
from scipy.special import factorial as scipy_factorial

from nested_sums.errors import PrecisionOverflowError, UninitializedDependencyError
from nested_sums.numerics.precision import (
    FactorialTable,
    big_sqrt,
    big_sqrt_to_float,
    ensure_factorials,
)


class TestFactorialTable:
    """阶乘表覆盖范围与精确值。"""

    def test_small_values(self):
        table = FactorialTable(10)
        assert table.factorial(0) == 1
        assert table.factorial(5) == 120
        assert table.factorial(10) == 3628800

    def test_uncovered_index_raises(self):
        table = FactorialTable(10)
        with pytest.raises(UninitializedDependencyError):
            table.factorial(11)
        # 同时也是 LookupError
        with pytest.raises(LookupError):
            table.factorial(50)

    def test_negative_index_rejected(self):
        table = FactorialTable(3)
        with pytest.raises(ValueError):
            table.factorial(-1)
        with pytest.raises(ValueError):
            table.ensure(-2)

    def test_ensure_is_idempotent(self):
        table = FactorialTable(10)
        table.ensure(5)
        table.ensure(10)
        assert len(table) == 11
        assert table.covered == 10
        ensure_factorials(table, 12)
        assert 12 in table
        assert 13 not in table

    def test_empty_table_covers_zero(self):
        table = FactorialTable()
        assert table.factorial(0) == 1
        assert table.covered == 0

    def test_matches_scipy_exact(self):
        table = FactorialTable(60)
        for n in range(61):
            assert table.factorial(n) == int(scipy_factorial(n, exact=True))

    def test_concurrent_ensure(self):
        table = FactorialTable()
        bounds = list(range(0, 201, 3)) * 4
        random.Random(7).shuffle(bounds)
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(table.ensure, bounds))
        assert len(table) == 199
        for k in range(199):
            assert table.factorial(k) == math.factorial(k)

    def test_growth_logged_once_for_racing_callers(self, caplog):
        caplog.set_level(logging.DEBUG, logger="nested_sums.numerics.precision")
        table = FactorialTable()
        workers = [threading.Thread(target=table.ensure, args=(20,)) for _ in range(2)]
        # 两个调用方都越过无锁检查后才放行
        with table._lock:
            for worker in workers:
                worker.start()
            time.sleep(0.1)
        for worker in workers:
            worker.join()
        extended = [r for r in caplog.records if "extended" in r.getMessage()]
        assert len(extended) == 1
        assert table.factorial(20) == math.factorial(20)


class TestBigSqrt:
    """高精度平方根。"""

    def test_perfect_square_power_of_ten(self):
        root = big_sqrt(10 ** 50, precision=50)
        assert root == Decimal(10) ** 25
        assert root.as_tuple().exponent <= -50

    def test_sqrt_two_to_fifty_digits(self):
        root = big_sqrt(2, precision=50)
        with localcontext() as ctx:
            ctx.prec = 200
            assert abs(root * root - 2) <= Decimal("1e-50")

    @pytest.mark.parametrize("radicand", [2, 10 ** 50, 99, 123456789 ** 3])
    @pytest.mark.parametrize("precision", range(1, 61))
    def test_square_within_requested_precision(self, radicand, precision):
        root = big_sqrt(radicand, precision=precision)
        with localcontext() as ctx:
            ctx.prec = 400
            assert abs(root * root - radicand) <= Decimal(10) ** -precision

    def test_agrees_with_sympy_integer_root(self):
        root = big_sqrt(2, precision=50)
        floor_root, exact = sympy.integer_nthroot(2 * 10 ** 100, 2)
        assert not exact
        with localcontext() as ctx:
            ctx.prec = 200
            scaled = int(root.scaleb(50))
        assert abs(scaled - int(floor_root)) <= 1

    def test_factorial_product_is_exact_square(self):
        f30 = math.factorial(30)
        root = big_sqrt(f30 * f30, precision=50)
        with localcontext() as ctx:
            ctx.prec = 200
            assert abs(root - Decimal(f30)) < Decimal("1e-40")

    def test_decimal_input(self):
        root = big_sqrt(Decimal("0.25"), precision=20)
        assert root == Decimal("0.5")

    def test_zero(self):
        assert big_sqrt(0, precision=5) == Decimal("0.00000")

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            big_sqrt(-4)
        with pytest.raises(TypeError):
            big_sqrt(2.0)
        with pytest.raises(TypeError):
            big_sqrt(True)
        with pytest.raises(ValueError):
            big_sqrt(Decimal("Infinity"))

    def test_to_float(self):
        assert big_sqrt_to_float(144, precision=30) == 12.0
        assert big_sqrt_to_float(2, precision=30) == pytest.approx(math.sqrt(2), rel=1e-15)

    def test_to_float_overflow(self):
        with pytest.raises(PrecisionOverflowError):
            big_sqrt_to_float(10 ** 700, precision=10)
        with pytest.raises(OverflowError):
            big_sqrt_to_float(10 ** 700, precision=10)
