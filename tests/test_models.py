"""
Tests for Paste and WriteOptions.
"""
from __future__ import annotations

import io

import pytest
from pydantic import ValidationError

from pastila.models import InsertRow, Paste, SelectRow, WriteOptions


def _paste(**overrides) -> Paste:
    values = dict(url="u", fingerprint=b"\xff" * 4, hash=b"\x01" * 16, key=b"\x02" * 16)
    values.update(overrides)
    return Paste(**values)


class TestPaste:
    """Test Paste stream ownership."""

    def test_read_content(self):
        paste = _paste(content=io.BytesIO(b"body"))
        assert paste.read() == b"body"

    def test_close_is_idempotent(self):
        paste = _paste(content=io.BytesIO(b"body"))

        paste.close()
        paste.close()

        assert paste.closed

    def test_context_manager_closes_on_error(self):
        paste = _paste(content=io.BytesIO(b"body"))

        with pytest.raises(RuntimeError):
            with paste:
                raise RuntimeError("boom")

        assert paste.closed

    def test_blank_paste(self):
        paste = Paste.blank(b"\x03" * 16)

        assert paste.url == ""
        assert paste.fingerprint == b""
        assert paste.hash == b""
        assert paste.key == b"\x03" * 16
        assert paste.read() == b""

    def test_is_encrypted(self):
        assert _paste().is_encrypted
        assert not _paste(key=None).is_encrypted


class TestWriteOptions:
    """Test WriteOptions builder semantics."""

    def test_defaults(self):
        options = WriteOptions()

        assert options.key is None
        assert options.previous_fingerprint == b""
        assert options.previous_hash == b""

    def test_with_key_returns_new_value(self):
        base = WriteOptions()
        keyed = base.with_key(b"\x01" * 16)

        assert base.key is None
        assert keyed.key == b"\x01" * 16

    def test_with_previous_paste_copies_link_and_key(self):
        previous = _paste()
        options = WriteOptions().with_previous_paste(previous)

        assert options.previous_fingerprint == previous.fingerprint
        assert options.previous_hash == previous.hash
        assert options.key == previous.key

    def test_with_previous_none_is_noop(self):
        options = WriteOptions(key=b"\x01" * 16)
        assert options.with_previous_paste(None) is options

    def test_later_options_override_earlier(self):
        previous = _paste()

        key_last = WriteOptions().with_previous_paste(previous).with_key(b"\x09" * 16)
        paste_last = WriteOptions().with_key(b"\x09" * 16).with_previous_paste(previous)

        assert key_last.key == b"\x09" * 16
        assert paste_last.key == previous.key

    def test_immutable(self):
        options = WriteOptions()
        with pytest.raises(AttributeError):
            options.key = b"x"  # type: ignore[misc]


class TestRows:
    """Test wire row models."""

    def test_select_row_ignores_extra_fields(self):
        row = SelectRow.model_validate_json('{"is_encrypted": true, "content": "abc", "time": "now"}')

        assert row.is_encrypted is True
        assert row.content == "abc"

    def test_insert_row_rejects_bad_hash(self):
        with pytest.raises(ValidationError):
            InsertRow(hash_hex="xyz", fingerprint_hex="ffffffff", is_encrypted=False, content="a")

    def test_insert_row_field_names(self):
        row = InsertRow(
            hash_hex="fa052372d3a8a5ee87eda55a42ac2338",
            fingerprint_hex="ffffffff",
            is_encrypted=False,
            content="Hello ClickHouse!",
        )

        assert set(row.model_dump()) == {
            "hash_hex", "fingerprint_hex", "prev_hash_hex", "prev_fingerprint_hex", "is_encrypted", "content",
        }
