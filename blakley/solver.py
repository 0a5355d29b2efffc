"""Gaussian elimination over GF(2^8)."""

from .errors import ShareError, SingularMatrixError
from .field import FIELD, GF256


def _check_shape(matrix, vector, threshold: int) -> None:
    if vector is None or len(vector) != threshold:
        raise ShareError("reconstruct phase failed: bad right-hand side")
    if matrix is None or len(matrix) != threshold:
        raise ShareError("reconstruct phase failed: matrix must have threshold rows")
    for i, row in enumerate(matrix):
        if row is None or len(row) != threshold:
            raise ShareError(f"reconstruct phase failed: row {i} is malformed")


def solve(matrix, vector, threshold: int, field: GF256 = FIELD) -> int:
    """
    Solve matrix · x = vector and return x[0], the reconstructed secret byte.

    `matrix` (a list of bytearrays) and `vector` (a bytearray) are scratch
    buffers and are modified in place.

    Raises:
        ShareError: If the system is not threshold x threshold.
        SingularMatrixError: If no unique solution exists.
    """
    _check_shape(matrix, vector, threshold)

    for i in range(threshold):
        # Find a nonzero pivot for column i
        if matrix[i][i] == 0:
            for j in range(i + 1, threshold):
                if matrix[j][i] != 0:
                    matrix[i], matrix[j] = matrix[j], matrix[i]
                    vector[i], vector[j] = vector[j], vector[i]
                    break
        pivot = matrix[i][i]
        if pivot == 0:
            raise SingularMatrixError("matrix is singular")

        for j in range(i + 1, threshold):
            factor = field.divide(matrix[j][i], pivot)
            if factor == 0:
                continue
            row, pivot_row = matrix[j], matrix[i]
            for k in range(i, threshold):
                row[k] ^= field.multiply(pivot_row[k], factor)
            vector[j] ^= field.multiply(vector[i], factor)

    # Back substitution
    x = [0] * threshold
    for i in range(threshold - 1, -1, -1):
        acc = vector[i]
        for j in range(i + 1, threshold):
            acc ^= field.multiply(x[j], matrix[i][j])
        x[i] = field.divide(acc, matrix[i][i])
    return x[0]
