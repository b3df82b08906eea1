"""
core/domain/state_machines.py 테스트

대출 상태 전이 규칙 확인
"""

import pytest

from core.domain.state_machines import BorrowingStateMachine, StateMachineError
from core.types import BorrowingStatus


class TestBorrowingStateMachine:
    """BorrowingStateMachine 테스트"""

    def test_initial_open(self) -> None:
        """기본 상태 OPEN"""
        machine = BorrowingStateMachine()

        assert machine.state == "OPEN"
        assert machine.is_open
        assert not machine.is_terminal

    def test_open_to_open(self) -> None:
        """부분 상환/연체 이자: OPEN → OPEN"""
        machine = BorrowingStateMachine(BorrowingStatus.OPEN)

        assert machine.transition(BorrowingStatus.OPEN) == "OPEN"
        assert machine.history == [("OPEN", "OPEN")]

    def test_open_to_paid(self) -> None:
        """전액 상환: OPEN → PAID"""
        machine = BorrowingStateMachine()
        machine.transition(BorrowingStatus.PAID)

        assert machine.is_terminal
        assert not machine.is_open

    @pytest.mark.parametrize("target", [BorrowingStatus.OPEN, BorrowingStatus.PAID])
    def test_no_transition_out_of_paid(self, target: BorrowingStatus) -> None:
        """PAID는 종료 상태"""
        machine = BorrowingStateMachine(BorrowingStatus.PAID)

        assert not machine.can_transition(target)
        with pytest.raises(StateMachineError):
            machine.transition(target)
