"""
Content transform pipeline.

Write direction: plaintext -> optional AES-CTR encryption -> storage text ->
sipHash128 of the storage text -> InsertRow. Read direction reverses the
encryption step.

The counter-mode IV is fixed at all zeros because the locator carries only
the key. Each key must therefore encrypt at most one plaintext ever; callers
get fresh keys from :func:`generate_key`. Nothing here enforces that.
"""
from __future__ import annotations

import base64
import binascii
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import InvalidKey, KeyRequired
from .models import InsertRow, WriteOptions
from .siphash import siphash128

logger = logging.getLogger(__name__)

__all__ = [
    "FINGERPRINT",
    "ZERO_IV",
    "AES_KEY_SIZES",
    "SealedContent",
    "generate_key",
    "encrypt",
    "decrypt",
    "content_hash",
    "seal",
    "unseal",
    "frame_insert",
]

FINGERPRINT = b"\xff" * 4
ZERO_IV = bytes(16)
AES_KEY_SIZES = (16, 24, 32)
DEFAULT_KEY_SIZE = 16


@dataclass(frozen=True)
class SealedContent:
    """
    Content ready for storage.

    Attributes:
        content: Text exactly as stored (base64 ciphertext or plain text)
        is_encrypted: Whether content is ciphertext
        hash: sipHash128 of ``content`` encoded as UTF-8
        fingerprint: Record fingerprint, always FINGERPRINT
    """
    content: str
    is_encrypted: bool
    hash: bytes
    fingerprint: bytes = FINGERPRINT


def generate_key(size: int = DEFAULT_KEY_SIZE) -> bytes:
    """Fresh random AES key; use a new one for every new plaintext."""
    return secrets.token_bytes(size)


def _keystream_cipher(key: bytes) -> Cipher:
    try:
        if len(key) not in AES_KEY_SIZES:
            raise ValueError(f"Invalid key size ({len(key) * 8}) for AES-CTR, expected one of 128, 192, 256 bits")
        return Cipher(algorithms.AES(key), modes.CTR(ZERO_IV))
    except ValueError as e:
        raise InvalidKey(f"invalid key, failed to create AES cipher: {e}") from e


def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """XOR ``plaintext`` with the AES-CTR keystream of ``key``."""
    encryptor = _keystream_cipher(key).encryptor()
    return encryptor.update(plaintext) + encryptor.finalize()


def decrypt(ciphertext: bytes, key: bytes) -> bytes:
    """Inverse of :func:`encrypt` (counter mode is its own inverse)."""
    decryptor = _keystream_cipher(key).decryptor()
    return decryptor.update(ciphertext) + decryptor.finalize()


def content_hash(stored: str) -> bytes:
    """sipHash128 of the stored text, as the backend checks it."""
    return siphash128(stored.encode("utf-8"))


def seal(plaintext: bytes, key: Optional[bytes] = None) -> SealedContent:
    """
    Prepare plaintext for storage.

    Args:
        plaintext: Full content to store
        key: AES key; None stores the content unencrypted

    Returns:
        SealedContent with storage text, encryption flag and hash

    Raises:
        InvalidKey: If key is not a valid AES key
    """
    if key is not None:
        stored = base64.b64encode(encrypt(plaintext, key)).decode("ascii")
        is_encrypted = True
    else:
        # Stored as JSON text: undecodable bytes become U+FFFD before hashing.
        stored = plaintext.decode("utf-8", errors="replace")
        is_encrypted = False

    sealed = SealedContent(content=stored, is_encrypted=is_encrypted, hash=content_hash(stored))
    logger.debug(f"Sealed {len(plaintext)} bytes, encrypted={is_encrypted}, hash={sealed.hash.hex()}")
    return sealed


def unseal(stored: str, is_encrypted: bool, key: Optional[bytes]) -> bytes:
    """
    Recover plaintext from a stored row.

    Raises:
        KeyRequired: If the row is encrypted and no key was given
        InvalidKey: If ciphertext is not base64 or the key is unusable
    """
    if not is_encrypted:
        return stored.encode("utf-8")

    if not key:
        raise KeyRequired("key is required for encrypted data")

    try:
        ciphertext = base64.b64decode(stored, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKey(f"invalid key, failed to decode base64 ciphertext: {e}") from e

    return decrypt(ciphertext, key)


def frame_insert(sealed: SealedContent, options: WriteOptions) -> InsertRow:
    """Build the insert row for sealed content; absent links are empty strings."""
    return InsertRow(
        hash_hex=sealed.hash.hex(),
        fingerprint_hex=sealed.fingerprint.hex(),
        prev_hash_hex=options.previous_hash.hex(),
        prev_fingerprint_hex=options.previous_fingerprint.hex(),
        is_encrypted=sealed.is_encrypted,
        content=sealed.content,
    )
