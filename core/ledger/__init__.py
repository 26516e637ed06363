"""
잔고 Ledger

계정별 잔고를 동시 호출자에게 비차단으로 제공하는 인프로세스 서비스.
같은 계정에 대한 동시 변경에서 lost update가 없고, 잔고 순위를 상시 조회할 수 있다.

사용 예시:
```python
from adapters.db.balance_repository import SQLiteBalanceRepository
from core.ledger import Ledger

ledger = Ledger(SQLiteBalanceRepository(db_path))
await ledger.start()

result = await ledger.withdraw("player-1", "60")
top = await ledger.get_top_balances(10)

await ledger.close()
```
"""

from core.ledger.errors import LedgerBusyError, LedgerClosedError, StorageError
from core.ledger.facade import Ledger, ThreadSafeLedger
from core.ledger.ranking import RankingIndex
from core.ledger.sequencer import AccountSequencer
from core.ledger.store import AccountStore
from core.ledger.types import (
    BalanceEntry,
    TopBalances,
    TransactionResult,
    normalize_account_id,
)
from core.ledger.write_behind import WriteBehindRepository

__all__ = [
    # 핵심 클래스
    "Ledger",
    "ThreadSafeLedger",
    "AccountStore",
    "AccountSequencer",
    "RankingIndex",
    "WriteBehindRepository",
    # 결과 타입
    "TransactionResult",
    "TopBalances",
    "BalanceEntry",
    "normalize_account_id",
    # 예외
    "StorageError",
    "LedgerBusyError",
    "LedgerClosedError",
]
