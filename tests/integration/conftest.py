"""ClickHouse fixtures for integration testing using testcontainers."""
from __future__ import annotations

import time
from pathlib import Path

import httpx
import pytest

try:
    from testcontainers.core.container import DockerContainer
except ImportError:
    DockerContainer = None

TABLE_DDL = Path(__file__).parent.parent / "fixtures" / "table.ddl.sql"
STARTUP_TIMEOUT_S = 60


def _wait_until_ready(url: str) -> None:
    deadline = time.monotonic() + STARTUP_TIMEOUT_S
    while True:
        try:
            if httpx.get(url).text.strip() == "Ok.":
                return
        except httpx.HTTPError:
            pass
        if time.monotonic() > deadline:
            raise TimeoutError(f"ClickHouse did not become ready at {url}")
        time.sleep(0.5)


@pytest.fixture(scope="session")
def clickhouse_url():
    """
    Provides a real ClickHouse server with the pastila ``data`` table.

    Spins up a clickhouse-server container and applies the table DDL. The
    fixture is session-scoped for performance - the same server is reused
    across all tests in the session.

    Returns:
        str: ClickHouse HTTP URL in format "http://host:port/?user=default"
    """
    if DockerContainer is None:
        pytest.skip("testcontainers not available")

    try:
        container = DockerContainer("clickhouse/clickhouse-server:latest")
        container.with_exposed_ports(8123)
        container.with_env("CLICKHOUSE_SKIP_USER_SETUP", "1")
        container.start()
    except Exception as e:
        pytest.skip(f"Docker not available: {e}")

    try:
        host = container.get_container_host_ip()
        port = container.get_exposed_port(8123)
        base_url = f"http://{host}:{port}/"
        _wait_until_ready(base_url)

        url = f"{base_url}?user=default"
        response = httpx.post(url, content=TABLE_DDL.read_bytes(), headers={"Content-Type": "text/plain"})
        response.raise_for_status()

        yield url
    finally:
        container.stop()
