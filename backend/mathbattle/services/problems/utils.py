"""Numeric helpers handed to every problem's ``check`` predicate."""
import math
from functools import lru_cache

NAN = float('nan')


def parse_num(value) -> float:
    """Parse a submitted field into a float, or NaN when it is not a number."""
    if value is None or isinstance(value, bool):
        return NAN
    if isinstance(value, str):
        value = value.strip()
        if value == '':
            return NAN
    try:
        num = float(value)
    except (TypeError, ValueError):
        return NAN
    return num if math.isfinite(num) else NAN


def is_int(n) -> bool:
    return isinstance(n, (int, float)) and math.isfinite(n) and float(n).is_integer()


def eq_num(a, b) -> bool:
    return math.isfinite(a) and math.isfinite(b) and abs(a - b) < 1e-9


def gcd(a, b) -> int:
    x, y = abs(int(a)), abs(int(b))
    while y:
        x, y = y, x % y
    return x


def is_prime(n) -> bool:
    num = math.floor(n)
    if num < 2:
        return False
    if num % 2 == 0:
        return num == 2
    if num % 3 == 0:
        return num == 3
    limit = math.isqrt(num)
    f = 5
    while f <= limit:
        if num % f == 0 or num % (f + 2) == 0:
            return False
        f += 6
    return True


@lru_cache(maxsize=32)
def nth_prime(k: int) -> int:
    count = 0
    n = 1
    while count < k:
        n += 1
        if is_prime(n):
            count += 1
    return n


def sum_multiples_below(limit: int, a: int, b: int) -> int:
    """Sum of the naturals below ``limit`` divisible by ``a`` or ``b``."""
    def sum_of(step):
        count = (limit - 1) // step
        return step * count * (count + 1) // 2

    lcm = a * b // gcd(a, b)
    return sum_of(a) + sum_of(b) - sum_of(lcm)
