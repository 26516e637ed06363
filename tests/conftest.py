"""
pytest 공통 fixture 정의

Ledger 코어 테스트용 fixture
"""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.mock.balance_repository import InMemoryBalanceRepository
from core.ledger.facade import Ledger


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_repository() -> InMemoryBalanceRepository:
    """빈 인메모리 저장소"""
    return InMemoryBalanceRepository()


@pytest_asyncio.fixture
async def ledger(memory_repository: InMemoryBalanceRepository) -> Ledger:
    """시작된 Ledger (인메모리 저장소)"""
    instance = Ledger(memory_repository)
    await instance.start()
    yield instance
    await instance.close()


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """테스트용 ledger.yaml 파일 생성"""
    config_content = """# 테스트용 ledger.yaml
storage:
  db_path: ledger_test.db
  write_policy: write_behind
  flush_interval_sec: 2

sequencer:
  max_workers: 8
  max_queue_depth: 50

ledger:
  precision: "0.001"

ranking:
  min_balance: "10"

logging:
  level: debug
"""
    config_path = temp_dir / "ledger.yaml"
    config_path.write_text(config_content, encoding="utf-8")
    return config_path


@pytest.fixture
def seeded_balances() -> dict[str, Decimal]:
    """순위 테스트용 초기 잔고"""
    return {
        "A": Decimal("300"),
        "B": Decimal("300"),
        "C": Decimal("100"),
    }
