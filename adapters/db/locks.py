"""
행 잠금 순서 계약

SQLite는 SELECT ... FOR UPDATE를 지원하지 않으므로 BEGIN IMMEDIATE로
쓰기 잠금을 잡고, 논리적 행 잠금 순서는 여기서 강제한다.

잠금 순서: person → personal_balance → daily_summary → group_pool → borrowing
낮은 순위 잠금을 높은 순위 잠금 이후에 요청하면 LockOrderError.
"""

import logging
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)


class LockRank(IntEnum):
    """테이블별 잠금 순위 (작을수록 먼저)"""

    PERSON = 0
    PERSONAL_BALANCE = 1
    DAILY_SUMMARY = 2
    GROUP_POOL = 3
    BORROWING = 4


class LockOrderError(RuntimeError):
    """잠금 순서 위반 (트랜잭션 치명 오류)"""
    pass


class LockScope:
    """트랜잭션 하나의 잠금 기록

    같은 순위의 여러 행(예: 연체 스윕의 모든 OPEN 대출)은 허용.
    이미 잡은 행을 다시 요청하는 것도 허용.
    """

    def __init__(self) -> None:
        self._held: list[tuple[LockRank, Any]] = []

    @property
    def held(self) -> list[tuple[LockRank, Any]]:
        """획득한 잠금 목록 (획득 순서)"""
        return self._held.copy()

    @property
    def highest_rank(self) -> LockRank | None:
        """현재까지 획득한 최고 순위"""
        if not self._held:
            return None
        return max(rank for rank, _ in self._held)

    def acquire(self, rank: LockRank, key: Any) -> None:
        """잠금 획득 기록

        Raises:
            LockOrderError: 더 높은 순위 잠금을 이미 보유한 경우
        """
        if (rank, key) in self._held:
            return

        highest = self.highest_rank
        if highest is not None and rank < highest:
            raise LockOrderError(
                f"Lock order violation: {rank.name}({key}) requested after {highest.name}"
            )

        self._held.append((rank, key))
        logger.debug(f"Lock acquired: {rank.name}({key})")
