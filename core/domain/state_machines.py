"""
State Machines

전표(Journal Entry) 상태 전이 관리.

    DRAFT --post--> POSTED --reverse--> REVERSED
    DRAFT --discard--> (삭제)
"""

import logging
from enum import Enum

from core.ledger.types import EntryStatus

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""

    def __init__(self, name: str, from_state: str, to_state: str, allowed: list[str]):
        self.name = name
        self.from_state = from_state
        self.to_state = to_state
        self.allowed = allowed
        super().__init__(
            f"{name}: Cannot transition from {from_state} to {to_state}. "
            f"Allowed: {allowed}"
        )


# 삭제(discard)는 상태가 아니지만 전이 규칙으로 함께 관리
DISCARDED = "DISCARDED"


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 정의 {from_state: [to_states]}
        name: 머신 이름 (로깅용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | Enum) -> bool:
        """전이 가능 여부 확인"""
        target = to_state.value if isinstance(to_state, Enum) else to_state
        allowed = self._transitions.get(self._state, [])
        return target in allowed

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Args:
            to_state: 목표 상태

        Returns:
            새 상태

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            raise StateMachineError(
                self._name,
                self._state,
                target,
                self._transitions.get(self._state, []),
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))

        logger.debug(f"{self._name}: {old_state} → {target}")

        return target

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._history.copy()


class JournalEntryStateMachine(StateMachine):
    """전표 상태 머신

    POSTED는 역분개 전까지, REVERSED는 영구적인 종료 상태.
    """

    TRANSITIONS: dict[str, list[str]] = {
        EntryStatus.DRAFT.value: [EntryStatus.POSTED.value, DISCARDED],
        EntryStatus.POSTED.value: [EntryStatus.REVERSED.value],
        EntryStatus.REVERSED.value: [],
    }

    def __init__(self, initial_state: str | Enum = EntryStatus.DRAFT, entry_number: str = ""):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name=f"JournalEntry[{entry_number}]" if entry_number else "JournalEntry",
        )

    @property
    def is_terminal(self) -> bool:
        """더 이상 전이할 수 없는 상태인지"""
        return not self._transitions.get(self._state)
