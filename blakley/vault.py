"""
Blakley Share — sealed vaults.

A vault is:
1. A payload encrypted with AES-256-GCM under a fresh key
2. That key split with Blakley's scheme into N shares (T threshold)
3. The shares armored with the vault ID so they cannot be mixed up

Any T share holders together recover the key and decrypt. T-1 shares
reveal nothing about the key.
"""

import json
import logging
import hashlib
import time
from pathlib import Path

from . import codec, crypto, scheme
from .errors import ShareError

logger = logging.getLogger(__name__)

VAULT_VERSION = 'blakley_vault_v1'

# Authenticated alongside every vault ciphertext
_AAD = VAULT_VERSION.encode()

_REQUIRED_FIELDS = ('version', 'vault_id', 'parts', 'threshold')


class Vault:
    """Represents a single sealed vault."""

    def __init__(self, vault_id: str, ciphertext: bytes, parts: int, threshold: int,
                 created_at: float = None, metadata: dict = None):
        self.vault_id = vault_id
        self.ciphertext = ciphertext
        self.parts = parts
        self.threshold = threshold
        self.created_at = created_at or time.time()
        self.metadata = metadata or {}

    def to_dict(self) -> dict:
        return {
            'version': VAULT_VERSION,
            'vault_id': self.vault_id,
            'parts': self.parts,
            'threshold': self.threshold,
            'ciphertext_size': len(self.ciphertext),
            'created_at': self.created_at,
            'metadata': self.metadata,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict, ciphertext: bytes) -> 'Vault':
        if not isinstance(data, dict):
            raise ValueError("Malformed vault metadata")
        missing = [k for k in _REQUIRED_FIELDS if k not in data]
        if missing:
            raise ValueError(f"Malformed vault metadata: missing {', '.join(missing)}")
        if data.get('version') != VAULT_VERSION:
            raise ValueError(f"Unknown vault version: {data.get('version')}")
        if crypto.vault_id(ciphertext) != data['vault_id']:
            raise ValueError("Ciphertext does not match vault metadata")
        return cls(
            vault_id=data['vault_id'],
            ciphertext=ciphertext,
            parts=data['parts'],
            threshold=data['threshold'],
            created_at=data.get('created_at'),
            metadata=data.get('metadata'),
        )


def seal(payload: bytes, parts: int, threshold: int, label: str = None) -> tuple:
    """
    Seal a payload into a vault.

    Args:
        payload: Data to protect (any bytes)
        parts: Total shares to generate
        threshold: Shares needed to unseal
        label: Optional label (stored in metadata, NOT encrypted)

    Returns:
        (Vault, list of armored share strings)
    """
    key = crypto.generate_key()
    ciphertext = crypto.encrypt(payload, key, compress=True, associated_data=_AAD)
    vid = crypto.vault_id(ciphertext)

    raw_shares = scheme.split(key, parts, threshold)
    shares = [
        codec.format_share(vid, index, share)
        for index, share in enumerate(raw_shares, 1)
    ]

    metadata = {
        'payload_size': len(payload),
        'share_size': len(raw_shares[0]),
        'crypto_backend': crypto.get_backend(),
        'payload_hash': hashlib.sha256(payload).hexdigest(),
    }
    if label:
        metadata['label'] = label

    logger.info("Sealed vault %s (%d-of-%d, %d bytes ciphertext)",
                vid, threshold, parts, len(ciphertext))

    vault = Vault(vault_id=vid, ciphertext=ciphertext, parts=parts,
                  threshold=threshold, metadata=metadata)
    return vault, shares


def unseal(shares: list, ciphertext: bytes) -> bytes:
    """
    Recover a vault's payload from armored shares and its ciphertext.

    Raises:
        ValueError: If shares are invalid, from different vaults, below
            threshold, or decryption fails
    """
    if not shares:
        raise ShareError("No shares provided")

    expected_id = None
    raw = []
    for share_str in shares:
        sid, index, share = codec.parse_share(share_str)
        if expected_id is None:
            expected_id = sid
        elif sid != expected_id:
            raise ShareError(
                f"Share {index} belongs to vault {sid}, expected {expected_id}. "
                "Cannot mix shares from different vaults."
            )
        raw.append(share)

    actual_id = crypto.vault_id(ciphertext)
    if actual_id != expected_id:
        raise ShareError(
            f"Ciphertext vault ID {actual_id} doesn't match shares vault ID {expected_id}. "
            "Wrong ciphertext or tampered data."
        )

    key = scheme.combine(raw)
    logger.debug("Reconstructed key for vault %s from %d shares", actual_id, len(raw))
    return crypto.decrypt(ciphertext, key, associated_data=_AAD)


def verify_shares(shares: list) -> dict:
    """
    Check a set of armored shares without reconstructing anything.

    Returns dict with:
        - valid: bool (all shares parse, agree, and meet their threshold)
        - set_id: the common set/vault ID
        - share_count: number of well-formed shares
        - indices: share indices
        - threshold: threshold tag carried by the shares
        - share_size: raw share length in bytes
        - errors: messages for anything wrong
    """
    result = {
        'valid': True,
        'set_id': None,
        'share_count': 0,
        'indices': [],
        'threshold': None,
        'share_size': None,
        'errors': [],
    }

    for i, share_str in enumerate(shares, 1):
        try:
            sid, index, share = codec.parse_share(share_str)
        except ValueError as e:
            result['errors'].append(f"Share {i}: {e}")
            result['valid'] = False
            continue

        if not share:
            result['errors'].append(f"Share {i}: empty share")
            result['valid'] = False
            continue

        if result['set_id'] is None:
            result['set_id'] = sid
            result['share_size'] = len(share)
            result['threshold'] = share[-1]
        elif sid != result['set_id']:
            result['errors'].append(f"Share {i}: set ID mismatch ({sid} vs {result['set_id']})")
            result['valid'] = False
            continue
        elif len(share) != result['share_size'] or share[-1] != result['threshold']:
            result['errors'].append(f"Share {i}: length or threshold tag differs")
            result['valid'] = False
            continue

        if index in result['indices']:
            result['errors'].append(f"Share {i}: duplicate index {index}")
            result['valid'] = False
            continue

        result['indices'].append(index)
        result['share_count'] += 1

    threshold = result['threshold']
    if threshold is not None and result['share_count'] < threshold:
        result['errors'].append(
            f"Need {threshold} shares to reconstruct, have {result['share_count']}"
        )
        result['valid'] = False
    if not shares:
        result['errors'].append("No shares provided")
        result['valid'] = False

    return result


def save_vault(vault: Vault, output_dir: str) -> dict:
    """
    Save a vault to disk.

    Creates:
        <output_dir>/<vault_id>/vault.json — metadata
        <output_dir>/<vault_id>/ciphertext.bin — encrypted payload
    """
    vault_dir = Path(output_dir) / vault.vault_id
    vault_dir.mkdir(parents=True, exist_ok=True)

    meta_path = vault_dir / 'vault.json'
    meta_path.write_text(vault.to_json())

    ct_path = vault_dir / 'ciphertext.bin'
    ct_path.write_bytes(vault.ciphertext)

    return {
        'metadata': str(meta_path),
        'ciphertext': str(ct_path),
        'directory': str(vault_dir),
    }


def load_vault(vault_dir: str) -> Vault:
    """Load a vault saved by save_vault()."""
    base = Path(vault_dir)
    data = json.loads((base / 'vault.json').read_text())
    return Vault.from_dict(data, (base / 'ciphertext.bin').read_bytes())
