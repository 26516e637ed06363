"""
설정 로더

ledger.yaml 로드 및 Ledger 설정 생성
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import WritePolicy


@dataclass(frozen=True)
class StorageConfig:
    """영속화 설정"""

    db_path: Path = Paths.LEDGER_DB
    write_policy: WritePolicy = WritePolicy(Defaults.WRITE_POLICY)
    flush_interval_sec: float = Defaults.FLUSH_INTERVAL_SEC


@dataclass(frozen=True)
class SequencerConfig:
    """계정별 Sequencer 설정"""

    max_workers: int = Defaults.MAX_WORKERS
    max_queue_depth: int = Defaults.MAX_QUEUE_DEPTH


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 전체 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    sequencer: SequencerConfig = field(default_factory=SequencerConfig)
    precision: Decimal = Decimal(Defaults.PRECISION)
    ranking_min_balance: Decimal = Decimal(Defaults.RANKING_MIN_BALANCE)
    log_level: str = Defaults.LOG_LEVEL

    @property
    def log_level_no(self) -> int:
        """logging 모듈 레벨 숫자"""
        return logging.getLevelName(self.log_level)


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """섹션 추출 (없으면 빈 dict)"""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigLoadError(f"ledger.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return section


def _decimal(value: Any, key: str) -> Decimal:
    """설정값을 Decimal로 변환"""
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigLoadError(f"'{key}' 값이 숫자가 아닙니다: {value!r}") from e

    if not result.is_finite():
        raise ConfigLoadError(f"'{key}' 값이 유한한 숫자가 아닙니다: {value!r}")
    return result


def _positive_int(value: Any, key: str) -> int:
    """양의 정수 설정값 검증"""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigLoadError(f"'{key}' 값은 양의 정수여야 합니다: {value!r}")
    return value


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """파싱된 YAML 딕셔너리를 LedgerConfig로 변환

    Args:
        data: yaml.safe_load 결과

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: 값이 잘못된 경우
    """
    storage = _section(data, "storage")
    sequencer = _section(data, "sequencer")
    ledger = _section(data, "ledger")
    ranking = _section(data, "ranking")
    logging_section = _section(data, "logging")

    # storage
    db_path = Path(storage.get("db_path", Paths.LEDGER_DB))
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path

    policy_str = storage.get("write_policy", Defaults.WRITE_POLICY)
    try:
        write_policy = WritePolicy(str(policy_str).lower())
    except ValueError as e:
        valid_policies = [p.value for p in WritePolicy]
        raise ConfigLoadError(
            f"유효하지 않은 write_policy입니다: '{policy_str}'. "
            f"유효한 값: {valid_policies}"
        ) from e

    flush_interval = _decimal(
        storage.get("flush_interval_sec", Defaults.FLUSH_INTERVAL_SEC),
        "storage.flush_interval_sec",
    )
    if flush_interval <= 0:
        raise ConfigLoadError("storage.flush_interval_sec 값은 0보다 커야 합니다")

    # sequencer
    max_workers = _positive_int(
        sequencer.get("max_workers", Defaults.MAX_WORKERS),
        "sequencer.max_workers",
    )
    max_queue_depth = _positive_int(
        sequencer.get("max_queue_depth", Defaults.MAX_QUEUE_DEPTH),
        "sequencer.max_queue_depth",
    )

    # ledger
    precision = _decimal(ledger.get("precision", Defaults.PRECISION), "ledger.precision")
    if precision <= 0:
        raise ConfigLoadError("ledger.precision 값은 0보다 커야 합니다")

    # ranking
    min_balance = _decimal(
        ranking.get("min_balance", Defaults.RANKING_MIN_BALANCE),
        "ranking.min_balance",
    )
    if min_balance < 0:
        raise ConfigLoadError("ranking.min_balance 값은 음수일 수 없습니다")

    # logging
    log_level = str(logging_section.get("level", Defaults.LOG_LEVEL)).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigLoadError(f"유효하지 않은 logging.level입니다: '{log_level}'")

    return LedgerConfig(
        storage=StorageConfig(
            db_path=db_path,
            write_policy=write_policy,
            flush_interval_sec=float(flush_interval),
        ),
        sequencer=SequencerConfig(
            max_workers=max_workers,
            max_queue_depth=max_queue_depth,
        ),
        precision=precision,
        ranking_min_balance=min_balance,
        log_level=log_level,
    )


def load_config(path: Path | None = None) -> LedgerConfig:
    """ledger.yaml 파일 로드

    파일이 없으면 기본 설정을 반환한다.

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        return LedgerConfig()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        return LedgerConfig()

    if not isinstance(data, dict):
        raise ConfigLoadError("ledger.yaml 최상위는 매핑이어야 합니다")

    return parse_config(data)
