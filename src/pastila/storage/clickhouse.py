"""
ClickHouse HTTP client for the pastila data table.

Provides the two queries pastila needs (select one row, insert one row) over
the ClickHouse HTTP interface. Each call is a single synchronous POST; there
is no retry and, unless configured, no timeout.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from pydantic import ValidationError

from ..errors import BackendStatusError, InvalidLocator, NotFound, TransportError
from ..models import InsertRow, SelectRow
from ..settings import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

__all__ = [
    "ClickHouseClient",
    "SelectResult",
    "QUERY_ID_HEADER",
    "SELECT_QUERY",
    "INSERT_QUERY",
]

QUERY_ID_HEADER = "X-ClickHouse-Query-Id"

SELECT_QUERY = """
SELECT
    toBool(is_encrypted) AS is_encrypted,
    content
FROM data
WHERE
    fingerprint = reinterpretAsUInt32(unhex({fingerprintHex:String})) AND
    hash = reinterpretAsUInt128(unhex({hashHex:String}))
ORDER BY time DESC LIMIT 1 FORMAT JSONEachRow"""

INSERT_QUERY = """
INSERT INTO data (hash_hex, fingerprint_hex, prev_hash_hex, prev_fingerprint_hex, is_encrypted, content)
FORMAT JSONEachRow"""


@dataclass(frozen=True)
class SelectResult:
    """Row found by :meth:`ClickHouseClient.select` plus the query id that served it."""
    is_encrypted: bool
    content: str
    query_id: str


class ClickHouseClient:
    """
    HTTP client for the pastila ClickHouse backend.

    Every response must carry an ``X-ClickHouse-Query-Id`` header, whatever
    its status; a missing header means we are not talking to ClickHouse.
    """

    def __init__(self, url: str, user_agent: str = DEFAULT_USER_AGENT,
                 timeout: Optional[float] = None, client: Optional[httpx.Client] = None):
        """
        Initialize ClickHouse client.

        Args:
            url: ClickHouse HTTP endpoint, may carry its own query (``?user=paste``)
            user_agent: Client identifier sent with every request
            timeout: Request timeout in seconds, None to wait forever
            client: Preconfigured httpx client (tests inject a mock transport)
        """
        self.url = url
        self.user_agent = user_agent
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    def select(self, fingerprint_hex: str, hash_hex: str) -> SelectResult:
        """
        Fetch the stored row for a fingerprint/hash pair.

        Raises:
            NotFound: If no row matches
            InvalidLocator: If the response is not a decodable row or lacks a query id
            BackendStatusError: If ClickHouse answers with a non-200 status
            TransportError: If the request cannot be sent
        """
        response = self._execute(
            SELECT_QUERY,
            params={"fingerprintHex": fingerprint_hex, "hashHex": hash_hex},
        )
        query_id = response.headers[QUERY_ID_HEADER]
        body = _drain(response)

        line = next((raw for raw in body.splitlines() if raw.strip()), None)
        if line is None:
            raise NotFound(f"pastila not found: {fingerprint_hex}/{hash_hex}")

        try:
            row = SelectRow.model_validate_json(line)
        except ValidationError as e:
            raise InvalidLocator(f"failed to decode ClickHouse response: {e}") from e

        logger.debug(f"Selected {fingerprint_hex}/{hash_hex} (encrypted={row.is_encrypted}, query_id={query_id})")
        return SelectResult(is_encrypted=row.is_encrypted, content=row.content, query_id=query_id)

    def insert(self, row: InsertRow) -> str:
        """
        Insert one row.

        Returns:
            Query id assigned by ClickHouse

        Raises:
            InvalidLocator: If the response lacks a query id
            BackendStatusError: If ClickHouse rejects the row (e.g. constraint violation)
            TransportError: If the request cannot be sent
        """
        payload = (row.model_dump_json() + "\n").encode("utf-8")
        response = self._execute(INSERT_QUERY, content=payload)
        response.close()

        query_id = response.headers[QUERY_ID_HEADER]
        logger.debug(f"Inserted {row.fingerprint_hex}/{row.hash_hex} (query_id={query_id})")
        return query_id

    def _execute(self, query: str, params: Optional[Dict[str, str]] = None,
                 content: Optional[bytes] = None) -> httpx.Response:
        """
        Send one query and validate the response envelope.

        The returned response is open and successful; the caller closes it.
        On every error path the response is closed here, after its body has
        been read when the body is part of the error.
        """
        request_params = {"query": query}
        for name, value in (params or {}).items():
            request_params[f"param_{name}"] = value

        # Merge into the endpoint query (e.g. user=paste), do not replace it.
        url = httpx.URL(self.url).copy_merge_params(request_params)
        request = self.client.build_request(
            "POST",
            url,
            content=content,
            headers={"User-Agent": self.user_agent},
        )

        try:
            response = self.client.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportError(f"failed to execute ClickHouse request: {e}") from e

        if not response.headers.get(QUERY_ID_HEADER):
            response.close()
            raise InvalidLocator(f"invalid pastila url, missing query id (status {response.status_code})")

        if response.status_code != httpx.codes.OK:
            body = _drain(response)
            raise BackendStatusError(response.status_code, body.decode("utf-8", errors="replace"))

        return response

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _drain(response: httpx.Response) -> bytes:
    """Read the whole body and close the response."""
    try:
        return response.read()
    except httpx.RequestError as e:
        raise TransportError(f"failed to read ClickHouse response: {e}") from e
    finally:
        response.close()
