"""
Blakley Share — vault encryption layer (AES-256-GCM).

Blakley shares grow with threshold * secret length, so large payloads are
encrypted under a fresh 256-bit key and only the key is split.

Uses the `cryptography` package, falling back to PyCryptodome when it is
not installed.
"""

import hashlib
import logging
import os
import struct
import zlib

from .errors import EntropyError

logger = logging.getLogger(__name__)

# Try cryptography first (preferred), fall back to PyCryptodome
try:
    from cryptography.exceptions import InvalidTag
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM
    _BACKEND = 'cryptography'
except ImportError:
    try:
        from Crypto.Cipher import AES
        _BACKEND = 'pycryptodome'
    except ImportError:
        _BACKEND = None

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

FLAG_COMPRESSED = 0x01


def generate_key() -> bytes:
    """Generate a random 256-bit key."""
    try:
        return os.urandom(KEY_SIZE)
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"Secure random source unavailable: {e}") from e


def _require_backend() -> None:
    if _BACKEND is None:
        raise RuntimeError(
            "No AES backend available. Install 'cryptography' or 'pycryptodome':\n"
            "  pip install cryptography"
        )


def encrypt(plaintext: bytes, key: bytes, compress: bool = True,
            associated_data: bytes = b'') -> bytes:
    """
    Encrypt plaintext with AES-256-GCM.

    The flags byte and `associated_data` are both authenticated, so a
    flipped compression flag or a mismatched context fails decryption.

    Returns:
        flags(1) + nonce(12) + ciphertext + tag(16)
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    _require_backend()
    logger.debug("Encrypting %d bytes (backend=%s, compress=%s)",
                 len(plaintext), _BACKEND, compress)

    flags = FLAG_COMPRESSED if compress else 0x00
    header = struct.pack('B', flags)
    data = zlib.compress(plaintext, level=9) if compress else plaintext
    aad = header + associated_data

    try:
        nonce = os.urandom(NONCE_SIZE)
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"Secure random source unavailable: {e}") from e

    if _BACKEND == 'cryptography':
        ct_with_tag = AESGCM(key).encrypt(nonce, data, aad)
    else:
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        cipher.update(aad)
        ciphertext, tag = cipher.encrypt_and_digest(data)
        ct_with_tag = ciphertext + tag

    return header + nonce + ct_with_tag


def decrypt(blob: bytes, key: bytes, associated_data: bytes = b'') -> bytes:
    """
    Decrypt a blob produced by encrypt().

    Raises:
        ValueError: If the key is wrong or the blob was tampered with.
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    if len(blob) < 1 + NONCE_SIZE + TAG_SIZE:
        raise ValueError("Blob too short to be valid")
    _require_backend()

    header = blob[:1]
    nonce = blob[1:1 + NONCE_SIZE]
    ct_with_tag = blob[1 + NONCE_SIZE:]
    aad = header + associated_data

    if _BACKEND == 'cryptography':
        try:
            data = AESGCM(key).decrypt(nonce, ct_with_tag, aad)
        except InvalidTag:
            raise ValueError("Decryption failed (wrong key or tampered data)") from None
    else:
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        cipher.update(aad)
        try:
            data = cipher.decrypt_and_verify(ct_with_tag[:-TAG_SIZE], ct_with_tag[-TAG_SIZE:])
        except ValueError:
            raise ValueError("Decryption failed (wrong key or tampered data)") from None

    if header[0] & FLAG_COMPRESSED:
        try:
            data = zlib.decompress(data)
        except zlib.error as e:
            raise ValueError(f"Corrupt compressed payload: {e}") from e

    return data


def vault_id(ciphertext: bytes) -> str:
    """First 16 hex chars of SHA-256(ciphertext). Identifies a vault."""
    return hashlib.sha256(ciphertext).hexdigest()[:16]


def get_backend() -> str:
    """Return the active AES backend name."""
    return _BACKEND or 'none'
