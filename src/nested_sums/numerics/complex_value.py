"""不可变复数值，模长在平方和溢出时回退到高精度开方。"""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Union

from nested_sums.numerics.precision import big_sqrt

_MODULUS_DIGITS = 40
_EXACT_SQUARE_PREC = 800

Operand = Union["ComplexValue", complex, float, int]


@dataclass(frozen=True, eq=False)
class ComplexValue:
    """复数 ``real + i * imag``。

    所有运算均返回新对象，不修改自身。
    """

    real: float = 0.0
    imag: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "real", float(self.real))
        object.__setattr__(self, "imag", float(self.imag))

    @classmethod
    def from_complex(cls, value: Operand) -> "ComplexValue":
        coerced = _coerce(value)
        if coerced is NotImplemented:
            raise TypeError(f"无法将 {type(value).__name__} 转换为 ComplexValue。")
        return coerced

    # ------------------------------------------------------------------
    # 基本运算
    # ------------------------------------------------------------------
    def add(self, other: Operand) -> "ComplexValue":
        w = ComplexValue.from_complex(other)
        return ComplexValue(self.real + w.real, self.imag + w.imag)

    def subtract(self, other: Operand) -> "ComplexValue":
        w = ComplexValue.from_complex(other)
        return ComplexValue(self.real - w.real, self.imag - w.imag)

    def multiply(self, other: Operand) -> "ComplexValue":
        w = ComplexValue.from_complex(other)
        return ComplexValue(
            self.real * w.real - self.imag * w.imag,
            self.real * w.imag + self.imag * w.real,
        )

    def divide(self, other: Operand) -> "ComplexValue":
        """乘以共轭再除以模长平方；除数模长为 0 时抛出 ``ZeroDivisionError``。"""
        w = ComplexValue.from_complex(other)
        den = w.modulus()
        if den == 0.0:
            raise ZeroDivisionError("除数的模长为 0。")
        num = self.multiply(w.conjugate())
        # 分两次除以模长，避免模长平方溢出
        return ComplexValue(num.real / den / den, num.imag / den / den)

    def negate(self) -> "ComplexValue":
        return ComplexValue(-self.real, -self.imag)

    def conjugate(self) -> "ComplexValue":
        return ComplexValue(self.real, -self.imag)

    def modulus(self) -> float:
        r"""返回 :math:`|z| = \sqrt{x^2 + y^2}`。

        当 ``x*x + y*y`` 超出双精度范围时，在 ``Decimal`` 中精确求平方和，
        再用 :func:`big_sqrt` 开方并缩回双精度。
        """

        x, y = self.real, self.imag
        if x == 0.0 and y == 0.0:
            return 0.0
        if not (math.isfinite(x) and math.isfinite(y)):
            return math.hypot(x, y)
        if math.isfinite(x * x + y * y):
            return math.hypot(x, y)
        with localcontext() as ctx:
            ctx.prec = _EXACT_SQUARE_PREC
            dx = Decimal(x)
            dy = Decimal(y)
            squared = dx * dx + dy * dy
        return float(big_sqrt(squared, _MODULUS_DIGITS))

    def argument(self) -> float:
        return math.atan2(self.imag, self.real)

    # ------------------------------------------------------------------
    # 初等函数
    # ------------------------------------------------------------------
    def exp(self) -> "ComplexValue":
        scale = math.exp(self.real)
        return ComplexValue(scale * math.cos(self.imag), scale * math.sin(self.imag))

    def log(self) -> "ComplexValue":
        """主值分支，辐角位于 ``(-pi, pi]``。"""
        return ComplexValue(math.log(self.modulus()), self.argument())

    def sqrt(self) -> "ComplexValue":
        r = math.sqrt(self.modulus())
        theta = self.argument() / 2.0
        return ComplexValue(r * math.cos(theta), r * math.sin(theta))

    def sin(self) -> "ComplexValue":
        x, y = self.real, self.imag
        return ComplexValue(math.cosh(y) * math.sin(x), math.sinh(y) * math.cos(x))

    def cos(self) -> "ComplexValue":
        x, y = self.real, self.imag
        return ComplexValue(math.cosh(y) * math.cos(x), -math.sinh(y) * math.sin(x))

    def tan(self) -> "ComplexValue":
        return self.sin().divide(self.cos())

    def sinh(self) -> "ComplexValue":
        x, y = self.real, self.imag
        return ComplexValue(math.sinh(x) * math.cos(y), math.cosh(x) * math.sin(y))

    def cosh(self) -> "ComplexValue":
        x, y = self.real, self.imag
        return ComplexValue(math.cosh(x) * math.cos(y), math.sinh(x) * math.sin(y))

    def is_close(self, other: Operand, *, rel_tol: float = 1e-9, abs_tol: float = 0.0) -> bool:
        """以差值的欧氏模长判断两个复数是否接近。"""
        w = ComplexValue.from_complex(other)
        diff = self.subtract(w).modulus()
        return diff <= max(rel_tol * max(self.modulus(), w.modulus()), abs_tol)

    # ------------------------------------------------------------------
    # Python 协议
    # ------------------------------------------------------------------
    def __add__(self, other: object) -> "ComplexValue":
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return self.add(w)

    __radd__ = __add__

    def __sub__(self, other: object) -> "ComplexValue":
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return self.subtract(w)

    def __rsub__(self, other: object) -> "ComplexValue":
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return w.subtract(self)

    def __mul__(self, other: object) -> "ComplexValue":
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return self.multiply(w)

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> "ComplexValue":
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return self.divide(w)

    def __rtruediv__(self, other: object) -> "ComplexValue":
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return w.divide(self)

    def __neg__(self) -> "ComplexValue":
        return self.negate()

    def __pos__(self) -> "ComplexValue":
        return self

    def __abs__(self) -> float:
        return self.modulus()

    def __complex__(self) -> complex:
        return complex(self.real, self.imag)

    def __bool__(self) -> bool:
        return self.real != 0.0 or self.imag != 0.0

    def __eq__(self, other: object) -> bool:
        w = _coerce(other)
        if w is NotImplemented:
            return NotImplemented
        return self.real == w.real and self.imag == w.imag

    def __hash__(self) -> int:
        return hash(complex(self.real, self.imag))

    def __str__(self) -> str:
        x, y = self.real, self.imag
        if x != 0 and y > 0:
            return f"{x} + {y}i"
        if x != 0 and y < 0:
            return f"{x} - {-y}i"
        if y == 0:
            return str(x)
        if x == 0:
            return f"{y}i"
        return f"{x} + i*{y}"


def _coerce(value: object):
    if isinstance(value, ComplexValue):
        return value
    if isinstance(value, numbers.Real):
        return ComplexValue(float(value), 0.0)
    if isinstance(value, numbers.Complex):
        z = complex(value)
        return ComplexValue(z.real, z.imag)
    return NotImplemented


ComplexValue.ZERO = ComplexValue(0.0, 0.0)  # type: ignore[attr-defined]


__all__ = ["ComplexValue"]
