"""
Pastila service facade.

Read path:  locator -> ClickHouse select -> unseal -> Paste
Write path: bytes -> seal -> ClickHouse insert -> locator -> Paste
"""
from __future__ import annotations

import io
import logging
from typing import BinaryIO, Optional, Union

from .locator import build_locator, parse_locator
from .models import Paste, WriteOptions
from .settings import Settings
from .storage.clickhouse import ClickHouseClient
from .transform import frame_insert, seal, unseal

logger = logging.getLogger(__name__)

__all__ = ["PastilaService"]


class PastilaService:
    """
    Reads and writes pastes against a ClickHouse backend.

    The service holds no state besides its settings and backend client; each
    call is an independent synchronous request.
    """

    def __init__(self, settings: Settings, backend: Optional[ClickHouseClient] = None):
        self.settings = settings
        self.backend = backend or ClickHouseClient(
            settings.clickhouse_url,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout_s,
        )

    def read(self, url: str) -> Paste:
        """
        Read the paste a locator points to.

        Args:
            url: Locator string, optionally carrying the key after ``#``

        Returns:
            Paste whose content stream holds the plaintext; close it when done

        Raises:
            InvalidLocator: If url is not a locator or the backend response is malformed
            InvalidKey: If the key cannot be decoded or used
            NotFound: If nothing is stored under the locator
            KeyRequired: If the content is encrypted and url has no key
            BackendStatusError, TransportError: On backend failures
        """
        locator = parse_locator(url)
        logger.debug(f"Reading {locator.fingerprint_hex}/{locator.hash_hex}")

        result = self.backend.select(locator.fingerprint_hex, locator.hash_hex)
        plaintext = unseal(result.content, result.is_encrypted, locator.key)

        return Paste(
            url=locator.url,
            fingerprint=locator.fingerprint,
            hash=locator.hash,
            key=locator.key,
            query_id=result.query_id,
            content=io.BytesIO(plaintext),
        )

    def write(self, data: Union[bytes, BinaryIO], options: Optional[WriteOptions] = None) -> Paste:
        """
        Store content as a new paste.

        The whole input is read into memory; size limits are the backend's
        business (it rejects rows of 10 MiB and more).

        Args:
            data: Content bytes or a readable binary stream
            options: Key and chaining configuration (default: plain, unchained)

        Returns:
            The new Paste; its content stream holds the written plaintext

        Raises:
            InvalidKey: If options carry an unusable key
            BackendStatusError, TransportError, InvalidLocator: On backend failures
        """
        options = options or WriteOptions()
        plaintext = data if isinstance(data, bytes) else data.read()

        sealed = seal(plaintext, options.key)
        query_id = self.backend.insert(frame_insert(sealed, options))

        url = build_locator(self.settings.pastila_url, sealed.fingerprint, sealed.hash, options.key)
        logger.info(f"Wrote {len(plaintext)} bytes to {sealed.fingerprint.hex()}/{sealed.hash.hex()}")

        return Paste(
            url=url,
            fingerprint=sealed.fingerprint,
            hash=sealed.hash,
            previous_fingerprint=options.previous_fingerprint,
            previous_hash=options.previous_hash,
            key=options.key,
            query_id=query_id,
            content=io.BytesIO(plaintext),
        )

    def close(self):
        """Close the backend client."""
        self.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
