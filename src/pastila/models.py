"""
Core data models for pastila.

Defines the in-memory Paste, the immutable WriteOptions used to configure a
write, and the pydantic models of the JSONEachRow rows exchanged with the
ClickHouse backend.
"""
from __future__ import annotations

import dataclasses
import io
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["Paste", "WriteOptions", "SelectRow", "InsertRow"]


@dataclass
class Paste:
    """
    A retrieved or just-written unit of content.

    The content stream belongs to whoever holds the Paste; close it once it
    has been consumed (``with paste: ...`` does this on every exit path).

    Attributes:
        url: Locator string of the paste (empty for an unsaved paste)
        fingerprint: Record fingerprint (empty for an unsaved paste)
        hash: Content hash (empty for an unsaved paste)
        previous_fingerprint: Fingerprint of the paste this one supersedes
        previous_hash: Hash of the paste this one supersedes
        key: AES key, None when the content is stored in plain text
        query_id: Backend-assigned query id, for diagnostics
        content: Readable binary stream with the plaintext
    """
    url: str
    fingerprint: bytes
    hash: bytes
    previous_fingerprint: bytes = b""
    previous_hash: bytes = b""
    key: Optional[bytes] = None
    query_id: str = ""
    content: BinaryIO = field(default_factory=io.BytesIO, repr=False)

    @classmethod
    def blank(cls, key: Optional[bytes] = None) -> Paste:
        """Empty, never saved paste; the first save of it starts a new chain."""
        return cls(url="", fingerprint=b"", hash=b"", key=key)

    @property
    def is_encrypted(self) -> bool:
        return bool(self.key)

    @property
    def closed(self) -> bool:
        return self.content.closed

    def read(self, size: int = -1) -> bytes:
        return self.content.read(size)

    def close(self) -> None:
        if not self.content.closed:
            self.content.close()

    def __enter__(self) -> Paste:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


@dataclass(frozen=True)
class WriteOptions:
    """
    Configuration of a single write.

    Values are immutable; each ``with_*`` call returns a new WriteOptions, so
    options apply in call order and later calls override earlier ones.

    Attributes:
        key: AES key to encrypt with; None stores plain text
        previous_fingerprint: Fingerprint of the paste being superseded
        previous_hash: Hash of the paste being superseded
    """
    key: Optional[bytes] = None
    previous_fingerprint: bytes = b""
    previous_hash: bytes = b""

    def with_key(self, key: Optional[bytes]) -> WriteOptions:
        return dataclasses.replace(self, key=key)

    def with_previous_paste(self, paste: Optional[Paste]) -> WriteOptions:
        """
        Chain the write to ``paste``.

        Copies its fingerprint, hash and key; the new paste therefore keeps
        the encryption state of the one it supersedes. ``None`` is a no-op.
        """
        if paste is None:
            return self
        return dataclasses.replace(
            self,
            key=paste.key,
            previous_fingerprint=paste.fingerprint,
            previous_hash=paste.hash,
        )


class SelectRow(BaseModel):
    """Row returned by the select query."""
    model_config = ConfigDict(extra="ignore")

    is_encrypted: bool = Field(description="True when content is base64 ciphertext")
    content: str = Field(description="Stored content")


class InsertRow(BaseModel):
    """Row sent with the insert query."""
    hash_hex: str = Field(pattern=r"^[a-f0-9]{32}$", description="Hex sipHash128 of content")
    fingerprint_hex: str = Field(pattern=r"^[a-f0-9]{8}$", description="Hex record fingerprint")
    prev_hash_hex: str = Field("", pattern=r"^(?:[a-f0-9]{32})?$", description="Hash of the superseded paste")
    prev_fingerprint_hex: str = Field("", pattern=r"^(?:[a-f0-9]{8})?$", description="Fingerprint of the superseded paste")
    is_encrypted: bool = Field(description="True when content is base64 ciphertext")
    content: str = Field(description="Content exactly as stored and hashed")
