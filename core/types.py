"""
타입 정의 모듈

Enum 등 프로세스 전반에서 공유하는 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class WritePolicy(str, Enum):
    """영속화 정책"""

    WRITE_THROUGH = "write_through"  # 커밋마다 즉시 저장
    WRITE_BEHIND = "write_behind"  # 버퍼링 후 주기적 flush


class OperationKind(str, Enum):
    """Ledger 연산 종류"""

    READ = "READ"
    HAS = "HAS"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    SET = "SET"
    TOP = "TOP"


class FailureReason(str, Enum):
    """정상 거부 사유 (예외가 아닌 success=False 결과)"""

    INVALID_AMOUNT = "INVALID_AMOUNT"  # 0 이하 금액, 음수 목표 잔고, 정밀도 초과
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"  # 출금액 > 잔고
    INVALID_COUNT = "INVALID_COUNT"  # 음수 순위 개수
    BALANCE_OVERFLOW = "BALANCE_OVERFLOW"  # 결과 잔고가 Decimal 정밀도를 초과
