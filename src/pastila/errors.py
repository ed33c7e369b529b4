"""
Pastila error classes.

Provides the taxonomy of errors raised while reading, writing and editing
pastes. Every error is returned to the immediate caller with the original
cause chained; nothing is retried internally.
"""
from __future__ import annotations


class PastilaError(Exception):
    """Base class for all pastila errors."""
    pass


class InvalidLocator(PastilaError):
    """
    Malformed paste locator or protocol violation from the backend.

    Raised when:
    - the input carries no ``<fingerprint>/<hash>`` pattern
    - the backend response lacks a query id header
    - the backend returns a row that cannot be decoded
    """
    pass


class NotFound(PastilaError):
    """No stored row matches the requested fingerprint and hash."""
    pass


class KeyRequired(PastilaError):
    """Stored content is encrypted but no key was supplied."""
    pass


class InvalidKey(PastilaError):
    """
    Key material is unusable.

    Raised when:
    - the key segment of a locator is not standard base64
    - the key length is not a valid AES key size
    - stored ciphertext is not valid base64
    """
    pass


class BackendStatusError(PastilaError):
    """
    Backend answered with a non-success status.

    Carries the status code and the full response body for diagnostics.
    """

    def __init__(self, status_code: int, body: str):
        super().__init__(f"unexpected status code: {status_code}, response: {body}")
        self.status_code = status_code
        self.body = body


class TransportError(PastilaError):
    """The HTTP request could not be completed (connection, DNS, timeout)."""
    pass


class EditSessionError(PastilaError):
    """Fatal edit session failure (temporary file could not be prepared)."""
    pass


class EditorError(EditSessionError):
    """The external editor process could not be started."""
    pass


__all__ = [
    "PastilaError",
    "InvalidLocator",
    "NotFound",
    "KeyRequired",
    "InvalidKey",
    "BackendStatusError",
    "TransportError",
    "EditSessionError",
    "EditorError",
]
