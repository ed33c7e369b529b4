# Fake implementations for testing

from .fake_clickhouse import FAKE_CLICKHOUSE_URL, FakeClickHouse

__all__ = ["FAKE_CLICKHOUSE_URL", "FakeClickHouse"]
