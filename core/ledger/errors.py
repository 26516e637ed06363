"""
Ledger 예외 정의

검증 거부와 잔고 부족은 예외가 아니라 success=False 결과로 처리된다.
여기 정의된 예외는 호출자의 Future에 전달되는 저장소 장애 신호다.
"""


class StorageError(Exception):
    """저장소 장애 (영속화 I/O 실패, 잔고 손상 등)

    발생 시 메모리 상태는 변경되지 않는다.
    """

    pass


class LedgerBusyError(StorageError):
    """계정 대기열 한도 초과 (실행기 고갈)"""

    pass


class LedgerClosedError(StorageError):
    """RUNNING 상태가 아닌 Ledger에 연산 제출"""

    pass
