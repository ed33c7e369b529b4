"""
Paste locator codec.

A locator is the public string that identifies a paste:

    <service_url>?<8 hex fingerprint>/<32 hex hash>[#<base64 key>]

The key, when present, is the raw AES key of the paste. Anything before the
``<fingerprint>/<hash>`` pair is treated as an opaque service prefix.
"""
from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidKey, InvalidLocator

__all__ = [
    "FINGERPRINT_SIZE",
    "HASH_SIZE",
    "Locator",
    "parse_locator",
    "build_locator",
    "encode_key",
]

FINGERPRINT_SIZE = 4
HASH_SIZE = 16

# Anchored at the end of the input, so the rightmost pair wins.
LOCATOR_PATTERN = re.compile(r"(?<![a-f0-9])([a-f0-9]{8})/([a-f0-9]{32})(?:#(.*))?$")


@dataclass(frozen=True)
class Locator:
    """
    Parsed components of a paste locator.

    Attributes:
        fingerprint: Namespace/version tag of the record (4 bytes)
        hash: Content hash of the stored bytes (16 bytes)
        key: Raw AES key, None for plain pastes
        service_url: Everything before the fingerprint, without the ``?``
    """
    fingerprint: bytes
    hash: bytes
    key: Optional[bytes] = None
    service_url: str = ""

    @property
    def fingerprint_hex(self) -> str:
        return self.fingerprint.hex()

    @property
    def hash_hex(self) -> str:
        return self.hash.hex()

    @property
    def url(self) -> str:
        return _format(self.service_url, self.fingerprint, self.hash, self.key)


def encode_key(key: bytes) -> str:
    """Standard base64 text of a key, as carried after ``#``."""
    return base64.b64encode(key).decode("ascii")


def parse_locator(text: str) -> Locator:
    """
    Parse a paste locator.

    Accepts any string ending in ``<8 hex>/<32 hex>`` optionally followed by
    ``#<base64 key>``; scheme, host and query prefix are kept verbatim as
    ``service_url``. A bare trailing ``#`` means no key.

    Args:
        text: Locator string, e.g. ``https://pastila.nl/?ffffffff/5266...#2L9D...``

    Returns:
        Locator with decoded fingerprint, hash and key

    Raises:
        InvalidLocator: If no 4-byte fingerprint/16-byte hash pair ends the input
        InvalidKey: If the key segment is not standard base64

    Examples:
        >>> parse_locator("https://pastila.nl/?ffffffff/00112233445566778899aabbccddeeff").key is None
        True
    """
    candidate = (text or "").strip()
    match = LOCATOR_PATTERN.search(candidate)
    if not match:
        raise InvalidLocator(f"invalid pastila url: {text!r}")

    fingerprint_hex, hash_hex, key_text = match.groups()

    try:
        fingerprint = bytes.fromhex(fingerprint_hex)
        content_hash = bytes.fromhex(hash_hex)
    except ValueError as e:
        raise InvalidLocator(f"invalid pastila url: {text!r}") from e

    key = None
    if key_text:
        try:
            key = base64.b64decode(key_text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidKey(f"invalid key, failed to base64 decode: {e}") from e

    prefix = candidate[:match.start()]
    if prefix.endswith("?"):
        prefix = prefix[:-1]

    return Locator(fingerprint=fingerprint, hash=content_hash, key=key, service_url=prefix)


def build_locator(
    service_url: str,
    fingerprint: bytes,
    content_hash: bytes,
    key: Optional[bytes] = None,
) -> str:
    """
    Build the locator string of a stored paste.

    Args:
        service_url: Base URL of the pastila web service
        fingerprint: 4-byte record fingerprint
        content_hash: 16-byte content hash
        key: Optional AES key appended after ``#``

    Returns:
        ``<service_url>?<fingerprint hex>/<hash hex>[#<base64 key>]``

    Raises:
        ValueError: If fingerprint or hash have the wrong width
    """
    if len(fingerprint) != FINGERPRINT_SIZE:
        raise ValueError(f"fingerprint must be {FINGERPRINT_SIZE} bytes, got {len(fingerprint)}")
    if len(content_hash) != HASH_SIZE:
        raise ValueError(f"hash must be {HASH_SIZE} bytes, got {len(content_hash)}")
    return _format(service_url, fingerprint, content_hash, key)


def _format(service_url: str, fingerprint: bytes, content_hash: bytes, key: Optional[bytes]) -> str:
    locator = f"{service_url}?{fingerprint.hex()}/{content_hash.hex()}"
    if key:
        locator += f"#{encode_key(key)}"
    return locator
