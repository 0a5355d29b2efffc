"""
GF(2^8) arithmetic over precomputed log/exp/inverse tables.

Uses the Rijndael polynomial x^8 + x^4 + x^3 + x + 1 (0x11B) with
generator 3, the same field as AES. Addition is XOR; multiplication
and division go through the tables.

The tables live in an immutable GF256 context. One shared instance,
FIELD, is built at import time and is safe to read from any thread.
"""

POLYNOMIAL = 0x11B
GENERATOR = 3
ORDER = 255  # size of the multiplicative group


def _mul_slow(a: int, b: int) -> int:
    """Carry-less multiply with reduction. Only used to build the tables."""
    p = 0
    for _ in range(8):
        if b & 1:
            p ^= a
        hi = a & 0x80
        a = (a << 1) & 0xFF
        if hi:
            a ^= POLYNOMIAL & 0xFF
        b >>= 1
    return p


class GF256:
    """Read-only table context for GF(2^8)."""

    __slots__ = ('log', 'exp', 'inv')

    def __init__(self, generator: int = GENERATOR):
        exp = bytearray(ORDER)
        log = bytearray(256)
        x = 1
        for i in range(ORDER):
            exp[i] = x
            log[x] = i
            x = _mul_slow(x, generator)
        if x != 1 or len(set(exp)) != ORDER:
            raise ValueError(f"{generator} does not generate GF(256)*")

        inv = bytearray(256)
        for a in range(1, 256):
            inv[a] = exp[(ORDER - log[a]) % ORDER]

        # bytes, not bytearray: tables never change after construction
        object.__setattr__(self, 'exp', bytes(exp))
        object.__setattr__(self, 'log', bytes(log))
        object.__setattr__(self, 'inv', bytes(inv))

    def __setattr__(self, name, value):
        raise AttributeError("GF256 tables are immutable")

    def multiply(self, a: int, b: int) -> int:
        if a == 0 or b == 0:
            return 0
        return self.exp[(self.log[a] + self.log[b]) % ORDER]

    def inverse(self, a: int) -> int:
        if a == 0:
            raise ZeroDivisionError("No inverse for 0 in GF(256)")
        return self.inv[a]

    def divide(self, a: int, b: int) -> int:
        """a / b. Division by zero is a programming error and raises."""
        if b == 0:
            raise ZeroDivisionError("Division by zero in GF(256)")
        return self.multiply(a, self.inv[b])

    def power(self, a: int, n: int) -> int:
        """a ** n for n >= 0 (0 ** 0 == 1)."""
        if n == 0:
            return 1
        if a == 0:
            return 0
        return self.exp[(self.log[a] * n) % ORDER]


FIELD = GF256()


def multiply(a: int, b: int, field: GF256 = FIELD) -> int:
    """Multiply two field elements."""
    return field.multiply(a, b)


def divide(a: int, b: int, field: GF256 = FIELD) -> int:
    """Divide two field elements. Raises ZeroDivisionError when b == 0."""
    return field.divide(a, b)


def inverse(a: int, field: GF256 = FIELD) -> int:
    return field.inverse(a)


def power(a: int, n: int, field: GF256 = FIELD) -> int:
    return field.power(a, n)
