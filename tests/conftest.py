"""Root pytest configuration for pastila tests."""
import io

import pytest

from pastila.operations.printers import Output
from pastila.service import PastilaService
from pastila.settings import Settings
from pastila.storage.clickhouse import ClickHouseClient

from .fakes.fake_clickhouse import FAKE_CLICKHOUSE_URL, FakeClickHouse


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires Docker)"
    )
    config.addinivalue_line(
        "markers",
        "network: mark test as talking to the public pastila service"
    )


# Set up test environment variables
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep tests independent of the developer's environment."""
    monkeypatch.setenv("PASTILA_URL", "http://mylocal.pastila.nl/")
    monkeypatch.setenv("PASTILA_CLICKHOUSE_URL", FAKE_CLICKHOUSE_URL)
    monkeypatch.delenv("EDITOR", raising=False)
    monkeypatch.delenv("PASTILA_HTTP_TIMEOUT", raising=False)
    monkeypatch.delenv("PASTILA_POLL_INTERVAL", raising=False)


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(
        pastila_url="http://mylocal.pastila.nl/",
        clickhouse_url=FAKE_CLICKHOUSE_URL,
    )


@pytest.fixture
def clickhouse():
    """In-memory ClickHouse backend."""
    return FakeClickHouse()


@pytest.fixture
def backend(settings, clickhouse):
    """ClickHouse client wired to the fake backend."""
    client = ClickHouseClient(settings.clickhouse_url, client=clickhouse.client())
    yield client
    client.close()


@pytest.fixture
def service(settings, backend):
    """Pastila service backed by the fake ClickHouse."""
    return PastilaService(settings, backend=backend)


@pytest.fixture
def output_stream():
    """In-memory stream standing in for stderr."""
    return io.StringIO()


@pytest.fixture
def output(output_stream):
    """Output writing into output_stream."""
    return Output(output_stream)
