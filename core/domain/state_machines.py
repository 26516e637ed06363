"""
State Machines

Ledger 생명주기 상태 전이 관리.

    BOOTING ──load 완료──▶ RUNNING ──close()──▶ STOPPING ──drain+flush──▶ STOPPED
       └────────────load 실패───────────────────────────────────────────▶┘
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """허용되지 않은 상태 전이"""
    pass


class LedgerState(str, Enum):
    """Ledger 생명주기 상태"""

    BOOTING = "BOOTING"  # 생성됨, 잔고 로드 전
    RUNNING = "RUNNING"  # 연산 접수
    STOPPING = "STOPPING"  # 신규 연산 거부, 진행 중 연산 drain
    STOPPED = "STOPPED"  # 저장소 종료됨 (재시작 불가)


class LedgerStateMachine:
    """Ledger 생명주기 상태 머신

    전이는 이벤트 루프 스레드에서만 일어나므로 락이 없다.

    Args:
        initial_state: 초기 상태 (기본 BOOTING)
    """

    TRANSITIONS: dict[LedgerState, frozenset[LedgerState]] = {
        LedgerState.BOOTING: frozenset({LedgerState.RUNNING, LedgerState.STOPPED}),
        LedgerState.RUNNING: frozenset({LedgerState.STOPPING}),
        LedgerState.STOPPING: frozenset({LedgerState.STOPPED}),
        LedgerState.STOPPED: frozenset(),
    }

    def __init__(self, initial_state: LedgerState | str = LedgerState.BOOTING):
        self._state = LedgerState(initial_state)
        self._history: list[tuple[LedgerState, LedgerState]] = []

    @property
    def state(self) -> str:
        """현재 상태 값 (문자열)"""
        return self._state.value

    @property
    def current(self) -> LedgerState:
        return self._state

    @property
    def accepts_operations(self) -> bool:
        """신규 연산 접수 가능 여부"""
        return self._state is LedgerState.RUNNING

    @property
    def is_terminal(self) -> bool:
        return not self.TRANSITIONS[self._state]

    @property
    def history(self) -> list[tuple[str, str]]:
        """(이전, 이후) 전이 이력 복사본"""
        return [(old.value, new.value) for old, new in self._history]

    def can_transition(self, to_state: LedgerState | str) -> bool:
        return LedgerState(to_state) in self.TRANSITIONS[self._state]

    def transition(self, to_state: LedgerState | str) -> str:
        """상태 전이

        Returns:
            새 상태 값

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = LedgerState(to_state)
        allowed = self.TRANSITIONS[self._state]

        if target not in allowed:
            raise StateMachineError(
                f"Ledger 상태 전이 불가: {self._state.value} → {target.value} "
                f"(허용: {sorted(s.value for s in allowed)})"
            )

        self._history.append((self._state, target))
        logger.debug(f"Ledger 상태: {self._state.value} → {target.value}")
        self._state = target

        return target.value
