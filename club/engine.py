"""
Ledger Engine

모든 장부 연산의 진입점.

- 연산마다 쓰기 트랜잭션 1개 (BEGIN IMMEDIATE)
- Outcome 성공 → 커밋, 실패 → 롤백
- 저장소 예외 → 롤백 후 INTERNAL_ERROR
- 커밋 이후에만 변경 알림 전송 (실패해도 결과 불변)
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, TypeVar

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import INotifier
from club.admin import (
    AdminOperations,
    CreateMemberResult,
    DeleteMemberResult,
    ResetResult,
    ShareResult,
)
from club.authority import AdminAuthority
from club.borrowing import BorrowingOperations, BorrowResult, PayFullResult, RepayResult
from club.penalty import PenaltyRunResult, PenaltySweep
from club.queries import LedgerQueries, PersonBalanceView, PersonMeta
from club.savings import SavingResult, SavingsOperations
from core.constants import Defaults
from core.domain.results import LedgerErrorKind, Outcome
from core.ledger.schema import init_club_schema
from core.ledger.store import BalanceStore
from core.ledger.types import Person
from core.types import ChangeType, LedgerRules, PoolType
from core.utils.timezone import Clock, now_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (대상 회원 또는 None=그룹, 변경 유형)
Change = tuple[int | None, ChangeType]


class _RollbackRequested(Exception):
    """실패 Outcome을 트랜잭션 밖으로 전달 (롤백 유도)"""

    def __init__(self, outcome: Outcome[Any]):
        super().__init__(outcome.error.message if outcome.error else "rollback")
        self.outcome = outcome


class LedgerEngine:
    """Ledger Engine

    Args:
        db: 연결된 SQLite 어댑터
        rules: 장부 규칙
        admin_secret: 관리자 자격 증명 비밀 값
        notifier: 변경 알림 (None이면 알림 없음)
        clock: UTC 시계

    사용 예시:
    ```python
    async with SQLiteAdapter(settings.db_path) as db:
        engine = LedgerEngine(db, settings.rules, settings.admin_password)
        await engine.initialize()

        outcome = await engine.save_units(person_id=1, units=2, pay_validity=True)
        if not outcome.is_ok:
            logger.warning(outcome.error.message)
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        rules: LedgerRules,
        admin_secret: str,
        notifier: INotifier | None = None,
        clock: Clock = now_utc,
    ):
        self.db = db
        self.rules = rules
        self.notifier = notifier
        self.clock = clock

        self.store = BalanceStore(db)
        authority = AdminAuthority(admin_secret)

        self.savings = SavingsOperations(self.store, rules, clock=clock)
        self.borrowing = BorrowingOperations(self.store, rules, authority, clock=clock)
        self.penalties = PenaltySweep(self.store, rules, clock=clock)
        self.admin = AdminOperations(self.store, authority, clock=clock)
        self.queries = LedgerQueries(self.store)

    async def initialize(self) -> None:
        """스키마 생성 및 group_pool 시드"""
        await init_club_schema(self.db)

    # =========================================================================
    # 트랜잭션 / 알림
    # =========================================================================

    async def _run(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[Outcome[T]]],
    ) -> Outcome[T]:
        """연산 1개를 트랜잭션으로 실행"""
        try:
            async with self.db.transaction():
                outcome = await operation()
                if not outcome.is_ok:
                    raise _RollbackRequested(outcome)
        except _RollbackRequested as rollback:
            error = rollback.outcome.error
            logger.info(
                f"{operation_name} 거부: {error.kind.value if error else '-'}",
                extra={"operation": operation_name, "reason": error.message if error else None},
            )
            return rollback.outcome
        except Exception as e:
            logger.exception(
                f"{operation_name} 실패 (롤백)",
                extra={"operation": operation_name, "error": str(e)},
            )
            return Outcome.fail(
                LedgerErrorKind.INTERNAL_ERROR,
                "internal ledger failure",
                operation=operation_name,
            )

        return outcome

    async def _notify(self, changes: list[Change]) -> None:
        """커밋 이후 변경 알림 (best-effort)"""
        if self.notifier is None:
            return

        for subject_person_id, change_type in changes:
            try:
                sent = await self.notifier.send_change(subject_person_id, change_type)
            except Exception as e:
                logger.warning(
                    f"변경 알림 예외: {change_type.value}",
                    extra={"person_id": subject_person_id, "error": str(e)},
                    exc_info=True,
                )
                continue

            if not sent:
                logger.warning(
                    f"변경 알림 전송 실패: {change_type.value}",
                    extra={"person_id": subject_person_id},
                )

    async def _run_and_notify(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[Outcome[T]]],
        changes: Callable[[T], list[Change]],
    ) -> Outcome[T]:
        outcome = await self._run(operation_name, operation)
        if outcome.is_ok:
            await self._notify(changes(outcome.unwrap()))
        return outcome

    # =========================================================================
    # Savings
    # =========================================================================

    async def save_units(
        self,
        person_id: int,
        units: int,
        pay_validity: bool = False,
        effective_date: date | None = None,
    ) -> Outcome[SavingResult]:
        """유닛 적립 / 유효성 회비"""
        return await self._run_and_notify(
            "save_units",
            lambda: self.savings.save_units(person_id, units, pay_validity, effective_date),
            lambda _: [(person_id, ChangeType.SAVING), (None, ChangeType.GROUP)],
        )

    async def retroactive_fill(
        self,
        person_id: int,
        target_date: date,
        add_units: int = 0,
        pay_validity_if_missing: bool = False,
    ) -> Outcome[SavingResult]:
        """과거 날짜 소급 입력"""
        return await self._run_and_notify(
            "retroactive_fill",
            lambda: self.savings.retroactive_fill(
                person_id, target_date, add_units, pay_validity_if_missing
            ),
            lambda _: [(person_id, ChangeType.SAVING), (None, ChangeType.GROUP)],
        )

    # =========================================================================
    # Borrowing
    # =========================================================================

    async def borrow(
        self,
        person_id: int,
        pool_type: PoolType | str,
        amount: Decimal | int | str,
        admin_override: bool = False,
        credential: str | None = None,
    ) -> Outcome[BorrowResult]:
        """대출 실행"""
        return await self._run_and_notify(
            "borrow",
            lambda: self.borrowing.borrow(person_id, pool_type, amount, admin_override, credential),
            lambda _: [(person_id, ChangeType.BORROW), (None, ChangeType.GROUP)],
        )

    async def repay(
        self,
        person_id: int,
        borrowing_id: int,
        amount: Decimal | int | str,
    ) -> Outcome[RepayResult]:
        """부분 상환"""
        return await self._run_and_notify(
            "repay",
            lambda: self.borrowing.repay(person_id, borrowing_id, amount),
            lambda _: [(person_id, ChangeType.REPAY), (None, ChangeType.GROUP)],
        )

    async def pay_full(self, person_id: int, pool_type: PoolType | str) -> Outcome[PayFullResult]:
        """전액 상환"""
        return await self._run_and_notify(
            "pay_full",
            lambda: self.borrowing.pay_full(person_id, pool_type),
            lambda _: [(person_id, ChangeType.PAY_FULL), (None, ChangeType.GROUP)],
        )

    # =========================================================================
    # Penalty
    # =========================================================================

    async def run_penalties(self) -> Outcome[PenaltyRunResult]:
        """연체 이자 스윕"""
        return await self._run_and_notify(
            "run_penalties",
            self.penalties.run,
            lambda result: [(pid, ChangeType.PENALTY) for pid in result.person_ids],
        )

    # =========================================================================
    # Admin
    # =========================================================================

    async def create_member(self, name: str, credential: str | None) -> Outcome[CreateMemberResult]:
        """회원 생성"""
        return await self._run_and_notify(
            "create_member",
            lambda: self.admin.create_member(name, credential),
            lambda result: [(result.person_id, ChangeType.NEW_MEMBER), (None, ChangeType.GROUP)],
        )

    async def delete_member(self, person_id: int | None, credential: str | None) -> Outcome[DeleteMemberResult]:
        """회원 삭제"""
        return await self._run_and_notify(
            "delete_member",
            lambda: self.admin.delete_member(person_id, credential),
            lambda result: [(result.person_id, ChangeType.MEMBER_DELETED), (None, ChangeType.GROUP)],
        )

    async def reset_all(self, credential: str | None) -> Outcome[ResetResult]:
        """전체 초기화"""
        return await self._run_and_notify(
            "reset_all",
            lambda: self.admin.reset_all(credential),
            lambda _: [(None, ChangeType.RESET), (None, ChangeType.GROUP)],
        )

    async def get_share(self) -> ShareResult:
        """유닛당 지분"""
        return await self.admin.get_share()

    # =========================================================================
    # 조회
    # =========================================================================

    async def list_people(self) -> list[Person]:
        return await self.queries.list_people()

    async def get_person_meta(self, person_id: int) -> PersonMeta:
        return await self.queries.get_person_meta(person_id)

    async def get_person_balance(self, person_id: int) -> PersonBalanceView:
        return await self.queries.get_person_balance(person_id)

    async def get_transactions(
        self,
        person_id: int,
        limit: int = Defaults.TRANSACTIONS_LIMIT,
    ) -> list[dict[str, Any]]:
        return await self.queries.get_transactions(person_id, limit=limit)

    async def get_group_pools(self) -> dict[PoolType, Decimal]:
        return await self.queries.get_group_pools()
