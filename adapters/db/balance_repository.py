"""
SQLite 잔고 저장소

IBalanceRepository의 SQLite 구현.
account_balance 테이블에 계정별 잔고를 upsert한다.
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter, SchemaVersionError, init_schema
from core.ledger.errors import StorageError

logger = logging.getLogger(__name__)


UPSERT_SQL = """
    INSERT INTO account_balance (account_id, balance)
    VALUES (?, ?)
    ON CONFLICT(account_id) DO UPDATE SET
        balance = excluded.balance,
        updated_at = datetime('now')
"""


class SQLiteBalanceRepository:
    """SQLite 잔고 저장소

    커밋 단위 write-through 저장을 지원.
    하나의 연결을 공유하므로 execute/commit 쌍이 다른 계정의 쓰기와 섞이지 않도록
    저장소 전용 락으로 직렬화한다. (Ledger 전역 락이 아님)

    Args:
        db_path: DB 파일 경로

    사용 예시:
    ```python
    repository = SQLiteBalanceRepository(db_path)
    await repository.open()

    balances = await repository.load()
    await repository.save("player-1", Decimal("100"))

    await repository.close()
    ```
    """

    def __init__(self, db_path: Path | str):
        self.db = SQLiteAdapter(db_path)
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        """연결 상태"""
        return self.db.is_connected

    async def open(self) -> None:
        """연결 생성 및 스키마 초기화"""
        try:
            await self.db.connect()
            await init_schema(self.db)
        except (aiosqlite.Error, OSError, SchemaVersionError) as e:
            await self.db.close()
            raise StorageError(f"잔고 저장소 열기 실패: {e}") from e

    async def load(self) -> dict[str, Decimal]:
        """전체 계정 잔고 로드"""
        if not self.db.is_connected:
            await self.open()

        try:
            rows = await self.db.fetchall(
                "SELECT account_id, balance FROM account_balance"
            )
        except aiosqlite.Error as e:
            raise StorageError(f"잔고 로드 실패: {e}") from e

        balances: dict[str, Decimal] = {}
        for account_id, balance_str in rows:
            try:
                balance = Decimal(balance_str)
            except InvalidOperation as e:
                raise StorageError(
                    f"손상된 잔고 값: account_id={account_id}, balance={balance_str!r}"
                ) from e

            if not balance.is_finite() or balance < 0:
                raise StorageError(
                    f"손상된 잔고 값: account_id={account_id}, balance={balance_str!r}"
                )
            balances[account_id] = balance

        logger.info("잔고 로드 완료", extra={"accounts": len(balances)})
        return balances

    async def save(self, account_id: str, balance: Decimal) -> None:
        """단일 계정 잔고 저장 (즉시 커밋)"""
        await self.save_many([(account_id, balance)])

    async def save_many(self, items: Iterable[tuple[str, Decimal]]) -> None:
        """여러 계정 잔고를 한 트랜잭션으로 저장"""
        params = [(account_id, str(balance)) for account_id, balance in items]
        if not params:
            return

        async with self._write_lock:
            try:
                async with self.db.transaction():
                    await self.db.executemany(UPSERT_SQL, params)
            except (aiosqlite.Error, RuntimeError) as e:
                logger.error(
                    "잔고 저장 실패",
                    extra={"accounts": len(params), "error": str(e)},
                )
                raise StorageError(f"잔고 저장 실패: {e}") from e

    async def flush(self) -> None:
        """write-through 저장소는 커밋마다 반영되므로 추가 작업 없음"""
        return None

    async def close(self) -> None:
        """연결 종료"""
        await self.db.close()
