"""Exact Fibonacci computation.

Python integers are arbitrary precision, so every strategy returns the
exact value for any ``n``.  The strategies differ in the intermediate
state they keep, which is what the trace builder visualizes.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum

logger = logging.getLogger(__name__)

# Largest table the tabulated strategy may materialize (cells F(0..n)).
TABLE_CAP = 10_000

# Beyond F(78) values no longer fit a double's exact-integer range.
FLOAT_EXACT_LIMIT = 78


class Strategy(str, Enum):
    ITERATIVE = "iterative"
    TABULATED = "tabulated"
    FAST_DOUBLING = "fast-doubling"


def _check_n(n: int) -> None:
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")


def iterative(n: int) -> int:
    """F(n) with two running values, O(n) time."""
    _check_n(n)
    if n <= 1:
        return n
    a, b = 0, 1
    for _ in range(2, n + 1):
        a, b = b, a + b
    return b


def tabulated(n: int) -> list[int]:
    """The full table ``[F(0), ..., F(n)]``.

    Raises ``ValueError`` above :data:`TABLE_CAP`; callers that need F(n)
    for larger ``n`` go through :func:`fibonacci`, which switches to fast
    doubling.
    """
    _check_n(n)
    if n > TABLE_CAP:
        raise ValueError(f"table for n={n} exceeds the cap of {TABLE_CAP}")
    table = [0] * (n + 1)
    if n >= 1:
        table[1] = 1
    for i in range(2, n + 1):
        table[i] = table[i - 1] + table[i - 2]
    return table


def _fib_pair(k: int) -> tuple[int, int]:
    # (F(k), F(k+1))
    if k == 0:
        return 0, 1
    a, b = _fib_pair(k >> 1)
    c = a * (2 * b - a)
    d = a * a + b * b
    if k & 1:
        return d, c + d
    return c, d


def fast_doubling(n: int) -> int:
    """F(n) in O(log n) big-integer multiplications.

    Uses F(2k) = F(k)(2F(k+1) - F(k)) and F(2k+1) = F(k)^2 + F(k+1)^2.
    """
    _check_n(n)
    if n <= 1:
        return n
    return _fib_pair(n)[0]


def effective_strategy(n: int, requested: Strategy | str) -> Strategy:
    """Strategy that will actually run for *n*.

    Above :data:`TABLE_CAP` fast doubling always wins, whatever was asked.
    """
    requested = Strategy(requested)
    if n > TABLE_CAP and requested is not Strategy.FAST_DOUBLING:
        logger.debug("n=%d exceeds table cap, %s -> fast-doubling", n, requested.value)
        return Strategy.FAST_DOUBLING
    return requested


def fibonacci(n: int, strategy: Strategy | str = Strategy.ITERATIVE) -> int:
    _check_n(n)
    if n <= 1:
        return n
    chosen = effective_strategy(n, strategy)
    if chosen is Strategy.TABULATED:
        return tabulated(n)[n]
    if chosen is Strategy.ITERATIVE:
        return iterative(n)
    return fast_doubling(n)


def decimal_text(value: int) -> str:
    """Base-10 text of *value*.

    ``str(int)`` refuses values past ``sys.get_int_max_str_digits()``
    (F(1,000,000) has ~209k digits); ``Decimal`` conversion is exact and
    has no such limit.
    """
    if -(10 ** 18) < value < 10 ** 18:
        return str(value)
    return str(Decimal(value))
