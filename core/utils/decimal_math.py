"""
Deterministic Decimal arithmetic for indicator formulas

Rules:
- Division rounds to 18 significant digits (HALF_UP)
- Addition, subtraction and multiplication are exact
- Persisted values are quantized: 8 decimals (prices/volumes), 4 decimals (RSI)
- Square root uses Newton-Raphson at working precision, never a native float result
"""

import math
from collections.abc import Iterable
from contextlib import contextmanager
from decimal import ROUND_HALF_UP, Context, Decimal, localcontext

WORKING_PRECISION = 18
SQRT_ITERATIONS = 10

PRICE_SCALE = Decimal("1E-8")
PERCENT_SCALE = Decimal("1E-4")

WORKING_CONTEXT = Context(prec=WORKING_PRECISION, rounding=ROUND_HALF_UP)

# Wide enough that products of two 18-digit operands never round
EXACT_CONTEXT = Context(prec=80, rounding=ROUND_HALF_UP)

ZERO = Decimal(0)
ONE = Decimal(1)
TWO = Decimal(2)
HUNDRED = Decimal(100)


@contextmanager
def exact_arithmetic():
    """
    Run +, -, * without intermediate rounding

    Example:
        >>> with exact_arithmetic():
        ...     total = price * k + previous * (ONE - k)
    """
    with localcontext(EXACT_CONTEXT) as ctx:
        yield ctx


def divide(dividend: Decimal, divisor: Decimal | int) -> Decimal:
    """Divide at working precision (18 significant digits, HALF_UP)"""
    return WORKING_CONTEXT.divide(dividend, Decimal(divisor))


def mean(values: Iterable[Decimal], count: int) -> Decimal:
    """Sum values exactly, then divide by count at working precision"""
    with exact_arithmetic():
        total = sum(values, ZERO)
    return divide(total, count)


def to_price_scale(value: Decimal) -> Decimal:
    """Round to 8 fractional digits (prices, volumes, EMA, ATR, bands)"""
    return value.quantize(PRICE_SCALE, rounding=ROUND_HALF_UP, context=EXACT_CONTEXT)


def to_percent_scale(value: Decimal) -> Decimal:
    """Round to 4 fractional digits (RSI family)"""
    return value.quantize(PERCENT_SCALE, rounding=ROUND_HALF_UP, context=EXACT_CONTEXT)


def sqrt(value: Decimal, initial_guess: Decimal | None = None) -> Decimal:
    """
    Square root with a fixed number of Newton-Raphson refinements

    The seed comes from a float approximation (or initial_guess); the
    result is always refined at working precision and rounded to 8 decimals.

    Args:
        value: Non-negative Decimal
        initial_guess: Optional seed (mainly for tests)

    Returns:
        sqrt(value) at price scale, or exactly Decimal(0) for zero input

    Raises:
        ValueError: If value is negative

    Example:
        >>> sqrt(Decimal("4"))
        Decimal('2.00000000')
    """
    if value == ZERO:
        return ZERO
    if value < ZERO:
        raise ValueError(f"Cannot take square root of negative value: {value}")

    x = initial_guess if initial_guess is not None else Decimal(str(math.sqrt(float(value))))

    for _ in range(SQRT_ITERATIONS):
        with exact_arithmetic():
            x = x + divide(value, x)
        x = divide(x, TWO)

    return to_price_scale(x)
