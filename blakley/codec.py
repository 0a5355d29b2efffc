"""
Share wire format and text armor.

Wire format (one share per party):

    coordinate_block (B * T bytes) || threshold_tag (1 byte)

where B is the secret length and T the threshold. Party vectors are laid
out in secret-byte order, T bytes each. There is no version byte; the tag
is always last.

Armor wraps a raw share for copy/paste and files:

    BLAKLEY_SHARE_v1:<set_id>:<index>:<share_hex>:<crc32>

The CRC only catches transcription errors. It is not authentication.
"""

import binascii
import secrets
import struct

from .errors import NotEnoughSharesError, ShareFormatError

# Byte overhead of each share: the trailing threshold tag.
SHARE_OVERHEAD = 1

ARMOR_VERSION = 'BLAKLEY_SHARE_v1'


def compress(shares) -> list:
    """
    Flatten per-party, per-byte coordinate vectors into share byte strings.

    Args:
        shares: shares[party][byte] -> sequence of T field elements

    Returns:
        One bytes object per party, B * T + 1 bytes long.
    """
    threshold = len(shares[0][0])
    out = []
    for vectors in shares:
        buf = bytearray()
        for vec in vectors:
            buf.extend(vec)
        buf.append(threshold)
        out.append(bytes(buf))
    return out


def decompress(shares) -> list:
    """
    Split share byte strings back into per-byte coordinate vectors.

    Returns:
        result[party][byte] -> bytes of length T

    Raises:
        NotEnoughSharesError: If the tag is below 2 or fewer than T shares are given.
        ShareFormatError: If lengths are inconsistent or not a whole number of blocks.
    """
    if not shares:
        raise NotEnoughSharesError("not enough shares to reconstruct")

    size = len(shares[0])
    if size < SHARE_OVERHEAD:
        raise ShareFormatError("share is empty")
    for i, share in enumerate(shares):
        if len(share) != size:
            raise ShareFormatError(f"share {i} has length {len(share)}, expected {size}")

    body = size - SHARE_OVERHEAD
    threshold = shares[0][body]
    if threshold < 2 or len(shares) < threshold:
        raise NotEnoughSharesError("not enough shares to reconstruct")

    if body % threshold != 0 or body == 0:
        raise ShareFormatError("decompress failed: share body is not a whole number of blocks")
    blen = body // threshold

    return [
        [bytes(share[j * threshold:(j + 1) * threshold]) for j in range(blen)]
        for share in shares
    ]


def new_set_id() -> str:
    """Random identifier tying together the shares of one split."""
    return secrets.token_hex(8)


def _crc32(data: bytes) -> str:
    return struct.pack('>I', binascii.crc32(data) & 0xFFFFFFFF).hex()


def format_share(set_id: str, index: int, share: bytes) -> str:
    """Armor a raw share as a single line of text."""
    if ':' in set_id:
        raise ShareFormatError("set id must not contain ':'")
    payload = f"{ARMOR_VERSION}:{set_id}:{index:03d}:{bytes(share).hex()}"
    return f"{payload}:{_crc32(payload.encode())}"


def parse_share(share_str: str) -> tuple:
    """
    Parse an armored share.

    Returns: (set_id, index, share_bytes)
    Raises ShareFormatError if the layout, version or checksum is wrong.
    """
    parts = share_str.strip().split(':')
    if len(parts) != 5:
        raise ShareFormatError(f"Invalid share format: expected 5 fields, got {len(parts)}")

    version, set_id, index_str, share_hex, checksum = parts
    if version != ARMOR_VERSION:
        raise ShareFormatError(f"Unknown share version: {version}")

    try:
        index = int(index_str)
        share = bytes.fromhex(share_hex)
    except ValueError as e:
        raise ShareFormatError(f"Invalid share field: {e}") from e

    payload = f"{ARMOR_VERSION}:{set_id}:{index:03d}:{share_hex}"
    if checksum != _crc32(payload.encode()):
        raise ShareFormatError("Share checksum mismatch (corrupted share)")

    return set_id, index, share
