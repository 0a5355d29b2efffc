"""
Hyperplane geometry for Blakley's scheme.

For each secret byte s a random point (x_0, ..., x_{t-1}) with x_0 = s is
drawn. Every party then gets a point on a hyperplane through it:

    party vector:  (a_0, ..., a_{t-2}, c)
    c = x_{t-1} + sum(a_j * x_j for j < t-1)      (addition is XOR)

Any t such vectors pin down (x_0, ..., x_{t-1}) and therefore s.

Direction coefficients are a shared random offset plus a point on the
moment curve (e^{t-1}, e, e^2, ..., e^{t-2}) at a distinct abscissa e per
party. Any t rows are then a shifted Vandermonde system and always
solvable, while t-1 rows never determine x_0.
"""

import os
import secrets

from .errors import EntropyError, InvariantError
from .field import FIELD, GF256


def generate_point(fix_first: bool, first_value: int, degree: int) -> bytearray:
    """
    Return `degree` uniformly random field elements.

    If fix_first is set, position 0 is overwritten with first_value (used to
    pin the secret byte as x_0).

    Raises:
        EntropyError: If the OS random source cannot be read.
    """
    try:
        point = bytearray(os.urandom(degree))
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"Secure random source unavailable: {e}") from e

    if fix_first:
        point[0] = first_value
    return point


def generate_abscissas(count: int) -> list:
    """Return `count` distinct random field elements (count <= 256)."""
    if not 0 <= count <= 256:
        raise InvariantError(f"Cannot draw {count} distinct field elements")
    try:
        return secrets.SystemRandom().sample(range(256), count)
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"Secure random source unavailable: {e}") from e


def direction(abscissa: int, offset, threshold: int, field: GF256 = FIELD) -> bytearray:
    """
    Build a party's coordinate vector before evaluation.

    The last slot is left as 0; evaluate() fills it in.
    """
    if len(offset) < threshold - 1:
        raise InvariantError("offset shorter than threshold - 1")

    vec = bytearray(threshold)
    vec[0] = offset[0] ^ field.power(abscissa, threshold - 1)
    for j in range(1, threshold - 1):
        vec[j] = offset[j] ^ field.power(abscissa, j)
    return vec


def evaluate(share, intersect, threshold: int, field: GF256 = FIELD) -> int:
    """
    Compute the last coordinate of a party vector so it lies on the
    hyperplane through `intersect`.

    Both vectors must have exactly `threshold` entries; anything else is a
    programming error.
    """
    if len(intersect) != threshold or len(share) != threshold:
        raise InvariantError(
            f"evaluate expects vectors of length {threshold}, "
            f"got {len(share)} and {len(intersect)}"
        )

    ret = intersect[threshold - 1]
    for j in range(threshold - 1):
        ret ^= field.multiply(share[j], intersect[j])
    return ret
