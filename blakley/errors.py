"""
Blakley Share — exception types.

Caller mistakes (bad parameters, malformed or inconsistent shares) raise
ShareError, which is a ValueError so existing `except ValueError` handlers
keep working. Broken internal invariants raise InvariantError and are never
expected through the public API.
"""


class ShareError(ValueError):
    """Invalid split parameters or share material."""


class ShareFormatError(ShareError):
    """Share bytes or armored text do not follow the wire format."""


class NotEnoughSharesError(ShareError):
    """Fewer shares than the embedded threshold were supplied."""


class SingularMatrixError(ShareError):
    """The supplied shares do not determine a unique secret (duplicates)."""


class EntropyError(OSError):
    """The operating system's secure random source is unavailable."""


class InvariantError(RuntimeError):
    """An internal precondition was violated. Indicates a bug, not bad input."""
