"""Storage backends for pastila."""
from .clickhouse import ClickHouseClient, SelectResult

__all__ = ["ClickHouseClient", "SelectResult"]
