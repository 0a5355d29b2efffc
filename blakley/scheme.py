"""
Blakley Share — split and combine.

Splits an arbitrarily long secret into `parts` shares, any `threshold` of
which reconstruct it. Each secret byte is handled independently: the byte
becomes the first coordinate of a random point, every party receives
another point on a hyperplane through it, and reconstruction intersects
`threshold` of those hyperplanes by Gaussian elimination over GF(2^8).

Shares are threshold * len(secret) + 1 bytes. Fewer than `threshold`
shares reveal nothing about the secret. Shares are not authenticated: a
corrupted share yields a wrong secret, not an error.
"""

import logging

from . import codec, hyperplane, solver
from .errors import NotEnoughSharesError, ShareError, ShareFormatError, SingularMatrixError
from .field import FIELD, GF256

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 2
MAX_PARTS = 255

# Stands in for the evaluated coordinate in each reconstruction row. Must
# stay in step with evaluate(); any other value changes the system.
SENTINEL = 0xFF


def _check_split_args(secret, parts, threshold) -> None:
    if not isinstance(secret, (bytes, bytearray, memoryview)):
        raise ShareError("secret must be bytes")
    if isinstance(parts, bool) or not isinstance(parts, int):
        raise ShareError("parts must be an integer")
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise ShareError("threshold must be an integer")
    if parts < threshold:
        raise ShareError("parts cannot be less than threshold")
    if parts > MAX_PARTS:
        raise ShareError(f"parts cannot exceed {MAX_PARTS}")
    if threshold < MIN_THRESHOLD:
        raise ShareError(f"threshold must be at least {MIN_THRESHOLD}")
    if threshold > MAX_PARTS:
        raise ShareError(f"threshold cannot exceed {MAX_PARTS}")
    if len(secret) == 0:
        raise ShareError("cannot split an empty secret")


def split(secret: bytes, parts: int, threshold: int, field: GF256 = FIELD) -> list:
    """
    Split a secret into shares.

    Args:
        secret: Non-empty secret bytes
        parts: Total number of shares to generate (threshold..255)
        threshold: Shares needed to reconstruct (2..255)

    Returns:
        List of `parts` share byte strings, all the same length.

    Raises:
        ShareError: If the parameters are invalid
        EntropyError: If the secure random source fails
    """
    _check_split_args(secret, parts, threshold)
    secret = bytes(secret)

    logger.debug("Splitting %d-byte secret into %d shares (threshold %d)",
                 len(secret), parts, threshold)

    shares = [[None] * len(secret) for _ in range(parts)]
    for idx, byte in enumerate(secret):
        intersect = hyperplane.generate_point(True, byte, threshold)
        offset = hyperplane.generate_point(False, 0, threshold)
        abscissas = hyperplane.generate_abscissas(parts)

        for party in range(parts):
            vec = hyperplane.direction(abscissas[party], offset, threshold, field)
            vec[threshold - 1] = hyperplane.evaluate(vec, intersect, threshold, field)
            shares[party][idx] = vec

    return codec.compress(shares)


def _check_combine_args(shares) -> None:
    if not shares:
        raise NotEnoughSharesError("cannot combine an empty share list")
    for i, share in enumerate(shares):
        if share is None:
            raise ShareError(f"share {i} is missing")
        if not isinstance(share, (bytes, bytearray, memoryview)):
            raise ShareError(f"share {i} must be bytes")
        if len(share) != len(shares[0]):
            raise ShareError(f"invalid shares provided: share {i} has a different length")
    if len(shares[0]) == 0:
        raise ShareFormatError("shares are empty")
    tag = shares[0][-1]
    if any(share[-1] != tag for share in shares):
        raise ShareFormatError("shares carry different threshold tags")


def combine(shares, field: GF256 = FIELD) -> bytes:
    """
    Reconstruct a secret from at least `threshold` shares.

    Only the first `threshold` shares are used; extras are ignored.

    Raises:
        ShareError: If the shares are missing, malformed or inconsistent
        NotEnoughSharesError: If fewer shares than the threshold are given
        SingularMatrixError: If the shares cannot determine the secret
            (for example the same share passed twice)
    """
    _check_combine_args(shares)
    shares = [bytes(s) for s in shares]

    try:
        vectors = codec.decompress(shares)
    except ShareError as e:
        raise type(e)(f"failed to reconstruct: {e}") from e

    blen = len(vectors[0])
    threshold = len(vectors[0][0])
    if len(vectors) < threshold or len(vectors) < MIN_THRESHOLD:
        raise NotEnoughSharesError("not enough shares provided")

    logger.debug("Combining %d of %d shares (threshold %d, %d bytes)",
                 threshold, len(vectors), threshold, blen)

    secret = bytearray(blen)
    for idx in range(blen):
        matrix = []
        rhs = bytearray(threshold)
        for i in range(threshold):
            row = bytearray(vectors[i][idx])
            rhs[i] = row[threshold - 1]
            row[threshold - 1] = SENTINEL
            matrix.append(row)
        try:
            secret[idx] = solver.solve(matrix, rhs, threshold, field)
        except SingularMatrixError:
            logger.debug("Singular system at byte %d", idx)
            raise SingularMatrixError(
                "shares are duplicated or inconsistent; cannot reconstruct"
            ) from None

    return bytes(secret)
