"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 잔고 저장소.
"""

from adapters.db.sqlite_adapter import (
    SCHEMA_VERSION,
    SQLiteAdapter,
    SchemaVersionError,
    create_connection,
    init_schema,
)
from adapters.db.balance_repository import SQLiteBalanceRepository

__all__ = [
    "SCHEMA_VERSION",
    "SQLiteAdapter",
    "SchemaVersionError",
    "create_connection",
    "init_schema",
    "SQLiteBalanceRepository",
]
