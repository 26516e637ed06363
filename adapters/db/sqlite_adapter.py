"""
SQLite 어댑터

잔고 DB 연결 관리.
- WAL + synchronous=FULL: 커밋이 반환되면 크래시 후에도 유지됨
- 쓰기 트랜잭션은 BEGIN IMMEDIATE로 시작 (쓰기 락을 먼저 확보)
- PRAGMA user_version으로 스키마 버전 관리
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


# 현재 스키마 버전 (PRAGMA user_version)
SCHEMA_VERSION = 1

BUSY_TIMEOUT_MS = 30000

_SCHEMA_V1 = """
    CREATE TABLE IF NOT EXISTS account_balance (
        account_id       TEXT PRIMARY KEY,
        balance          TEXT NOT NULL DEFAULT '0',
        updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
    )
"""


class SchemaVersionError(Exception):
    """DB 스키마가 이 버전의 코드보다 새로운 경우"""
    pass


async def create_connection(
    db_path: Path | str,
    busy_timeout_ms: int = BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """잔고 DB 연결 생성

    상위 디렉토리가 없으면 만든다.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 잠금 대기 시간 (밀리초)

    Returns:
        PRAGMA가 적용된 aiosqlite 연결
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(str(path))
    try:
        for pragma in (
            "PRAGMA journal_mode=WAL",
            f"PRAGMA busy_timeout={busy_timeout_ms}",
            "PRAGMA synchronous=FULL",
        ):
            await conn.execute(pragma)
    except aiosqlite.Error:
        await conn.close()
        raise

    logger.info("SQLite 연결 생성", extra={"db_path": str(path)})
    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    연결 하나를 소유한다. 트랜잭션 직렬화는 호출자 책임
    (SQLiteBalanceRepository는 전용 락 사용).

    Args:
        db_path: DB 파일 경로

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)

        async with db.transaction() as conn:
            await conn.executemany(UPSERT_SQL, rows)
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def conn(self) -> aiosqlite.Connection:
        """열린 연결 (미연결 시 RuntimeError)"""
        if self._conn is None:
            raise RuntimeError(f"DB가 연결되지 않았습니다: {self.db_path}")
        return self._conn

    async def connect(self) -> None:
        if self._conn is None:
            self._conn = await create_connection(self.db_path)

    async def close(self) -> None:
        """미커밋 작업 롤백 → WAL 체크포인트 → 연결 종료"""
        if self._conn is None:
            return

        conn, self._conn = self._conn, None
        try:
            if conn.in_transaction:
                await conn.rollback()
            # WAL 내용을 본 파일로 반영해 종료 후 DB 파일 하나로 완결
            await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        finally:
            await conn.close()
            logger.info("SQLite 연결 종료", extra={"db_path": str(self.db_path)})

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        return await self.conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] = (),
    ) -> tuple[Any, ...] | None:
        async with self.conn.execute(sql, parameters) as cursor:
            return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] = (),
    ) -> list[tuple[Any, ...]]:
        async with self.conn.execute(sql, parameters) as cursor:
            return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """쓰기 트랜잭션 (BEGIN IMMEDIATE)

        블록이 정상 종료되면 커밋, 예외 시 롤백 후 재전파.
        """
        conn = self.conn
        await conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise

    async def user_version(self) -> int:
        """PRAGMA user_version"""
        row = await self.fetchone("PRAGMA user_version")
        return int(row[0]) if row else 0

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> int:
    """스키마 생성/마이그레이션

    Returns:
        적용 후 스키마 버전

    Raises:
        SchemaVersionError: DB 버전이 SCHEMA_VERSION보다 높음
    """
    version = await adapter.user_version()

    if version > SCHEMA_VERSION:
        raise SchemaVersionError(
            f"DB 스키마 버전({version})이 지원 버전({SCHEMA_VERSION})보다 높습니다: "
            f"{adapter.db_path}"
        )

    if version < 1:
        async with adapter.transaction() as conn:
            await conn.execute(_SCHEMA_V1)
            await conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
        logger.info(
            "스키마 초기화 완료",
            extra={"db_path": str(adapter.db_path), "schema_version": SCHEMA_VERSION},
        )

    return SCHEMA_VERSION
