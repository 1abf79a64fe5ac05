"""组合项来源测试。"""

import numpy as np
import pytest

from nested_sums.errors import OutOfRangeError
from nested_sums.numerics.complex_value import ComplexValue
from nested_sums.series.composite import (
    ContractedProduct,
    ProductTerm,
    ScaledTerm,
    SharedIndexProduct,
    SquaredModulus,
)
from nested_sums.series.table import CoefficientTable

SIZE = 5


def _matrix_entry(indices):
    n, l = indices
    return ComplexValue(0.5 * n - l, 0.25 * (n + 1) * (l - 2))


def _as_matrix():
    return np.array([[complex(_matrix_entry((n, l))) for l in range(SIZE)]
                     for n in range(SIZE)])


class TestContractedProduct:
    """``sum_l L(n, l) conj(R(m, l))`` 与矩阵乘积对照。"""

    def test_matches_matrix_product(self):
        expected = _as_matrix() @ _as_matrix().conj().T
        product = ContractedProduct(_matrix_entry, _matrix_entry, SIZE)
        for n in range(SIZE):
            for m in range(SIZE):
                assert product.get_term((n, m)).is_close(expected[n, m], rel_tol=1e-12, abs_tol=1e-12)

    def test_without_conjugation(self):
        expected = _as_matrix() @ _as_matrix().T
        product = ContractedProduct(_matrix_entry, _matrix_entry, SIZE, conjugate_right=False)
        assert product.get_term((1, 3)).is_close(expected[1, 3], rel_tol=1e-12)

    def test_hermitian_through_table(self):
        table = CoefficientTable(ContractedProduct(_matrix_entry, _matrix_entry, SIZE),
                                 shape=(SIZE, SIZE), complex_valued=True)
        assert table.get_term((0, 4)) == table.get_term((4, 0)).conjugate()
        assert table.get_term((2, 2)).imag == 0.0

    def test_shared_index_product_checks_outer_length(self):
        with pytest.raises(OutOfRangeError):
            SharedIndexProduct(_matrix_entry, _matrix_entry, (1, 2, 3))
        term = SharedIndexProduct(_matrix_entry, _matrix_entry, (1, 2))
        with pytest.raises(OutOfRangeError):
            term.get_term((0, 0))


class TestPointwiseTerms:
    def test_squared_modulus(self):
        assert SquaredModulus(lambda idx: ComplexValue(3.0, 4.0)).get_term((0, 0)) == 25.0
        assert SquaredModulus(lambda idx: -3.0).get_term((1,)) == 9.0

    def test_scaled_term(self):
        scaled = ScaledTerm(lambda idx: float(idx[0]), 2.5)
        assert scaled.get_term((4,)) == 10.0

    def test_product_term(self):
        product = ProductTerm(lambda idx: float(idx[0] + 1), lambda idx: float(idx[1] + 1))
        assert product.get_term((2, 3)) == 12.0

    def test_product_term_mixes_real_and_complex(self):
        product = ProductTerm(lambda idx: 2.0, lambda idx: ComplexValue(0.0, 1.0))
        assert product.get_term((0,)) == ComplexValue(0.0, 2.0)

    def test_product_term_requires_a_factor(self):
        with pytest.raises(ValueError):
            ProductTerm()
