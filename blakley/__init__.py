"""Blakley Share — threshold secret sharing over GF(2^8) hyperplanes."""

from .scheme import split, combine
from .codec import compress, decompress, format_share, parse_share, new_set_id
from .field import GF256, FIELD
from .vault import seal, unseal, verify_shares, save_vault, load_vault, Vault
from .errors import (
    ShareError, ShareFormatError, NotEnoughSharesError,
    SingularMatrixError, EntropyError, InvariantError,
)

__all__ = [
    'split', 'combine',
    'compress', 'decompress', 'format_share', 'parse_share', 'new_set_id',
    'GF256', 'FIELD',
    'seal', 'unseal', 'verify_shares', 'save_vault', 'load_vault', 'Vault',
    'ShareError', 'ShareFormatError', 'NotEnoughSharesError',
    'SingularMatrixError', 'EntropyError', 'InvariantError',
]
