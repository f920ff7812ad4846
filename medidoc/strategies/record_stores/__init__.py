"""Concrete record store implementations."""

from medidoc.strategies.record_stores.sql import SQLRecordStore

__all__ = [
    "SQLRecordStore",
]
