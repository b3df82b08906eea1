"""
Admin Operations

회원 생성/삭제, 전체 초기화, 유닛당 지분 계산.

회원 삭제의 종속 행 정리는 테이블별 SAVEPOINT 경계 안에서 실행되어
한 테이블의 실패가 전체를 중단시키지 않음 (경고로 수집).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from club.authority import AdminAuthority
from core.domain.results import LedgerErrorKind, Outcome
from core.ledger.store import BalanceStore
from core.ledger.types import BalanceSnapshot, TransactionType
from core.types import PoolType, to_money
from core.utils.timezone import Clock, now_utc

logger = logging.getLogger(__name__)

# 회원 삭제 시 종속 테이블 정리 순서 (FK 역순)
MEMBER_DEPENDENT_TABLES: tuple[str, ...] = (
    "transaction_log",
    "payment",
    "borrowing",
    "daily_summary",
    "personal_balance",
)

# 전체 초기화 시 비우는 테이블
RESET_TABLES: tuple[str, ...] = (
    "transaction_log",
    "payment",
    "borrowing",
    "daily_summary",
)


@dataclass(frozen=True)
class CreateMemberResult:
    """회원 생성 결과"""

    person_id: int
    name: str


@dataclass(frozen=True)
class DeleteMemberResult:
    """회원 삭제 결과

    Attributes:
        person_id: 삭제된 회원
        name: 삭제된 회원 이름
        deleted_rows: 테이블별 삭제 행 수 (실패한 테이블은 제외)
        warnings: 정리 중 발생한 비치명적 오류
    """

    person_id: int
    name: str
    deleted_rows: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResetResult:
    """전체 초기화 결과"""

    cleared_tables: tuple[str, ...]


@dataclass(frozen=True)
class ShareResult:
    """유닛당 지분"""

    total_savings: Decimal
    total_units: int
    share_per_unit: Decimal


class AdminOperations:
    """Admin Operations

    Args:
        store: Balance Store
        authority: 관리자 자격 증명 검사기
        clock: UTC 시계
    """

    def __init__(
        self,
        store: BalanceStore,
        authority: AdminAuthority,
        clock: Clock = now_utc,
    ):
        self.store = store
        self.authority = authority
        self.clock = clock

    def _denied(self) -> Outcome:
        return Outcome.fail(LedgerErrorKind.BAD_CREDENTIAL, "admin credential required / invalid")

    async def create_member(self, name: str, credential: str | None) -> Outcome[CreateMemberResult]:
        """회원 생성 (0 잔고 행 포함)"""
        if not self.authority.verify(credential):
            return self._denied()

        clean_name = name.strip() if isinstance(name, str) else ""
        if not clean_name:
            return Outcome.fail(LedgerErrorKind.INVALID_NAME, "name required")

        person_id = await self.store.insert_person(clean_name)
        await self.store.insert_personal_balance(person_id)
        await self.store.append_log(
            person_id=person_id,
            transaction_type=TransactionType.GROUP_ADJUST,
            details={"note": "member created"},
            amount=Decimal("0"),
            created_at=self.clock(),
        )

        logger.info("회원 생성", extra={"person_id": person_id, "person_name": clean_name})
        return Outcome.ok(CreateMemberResult(person_id=person_id, name=clean_name))

    async def delete_member(self, person_id: int | None, credential: str | None) -> Outcome[DeleteMemberResult]:
        """회원 및 종속 행 삭제

        종속 테이블 정리 실패는 경고로 수집하고 계속 진행.
        회원 행 삭제 자체의 실패는 치명적 (전체 롤백).
        """
        if not self.authority.verify(credential):
            return self._denied()

        if not person_id:
            return Outcome.fail(LedgerErrorKind.MISSING_ID, "person_id required")

        person = await self.store.lock_person(person_id)
        if person is None:
            return Outcome.fail(LedgerErrorKind.NOT_FOUND, f"person not found: {person_id}")

        deleted_rows: dict[str, int] = {}
        warnings: list[str] = []

        for table in MEMBER_DEPENDENT_TABLES:
            try:
                async with self.store.db.savepoint(f"delete_{table}"):
                    deleted_rows[table] = await self.store.delete_person_rows(table, person_id)
            except Exception as e:
                warning = f"{table}: {e}"
                warnings.append(warning)
                logger.warning(
                    f"회원 종속 행 삭제 실패 (계속 진행): {table}",
                    extra={"person_id": person_id, "table": table, "error": str(e)},
                )

        await self.store.delete_person(person_id)

        await self.store.append_log(
            person_id=None,
            transaction_type=TransactionType.ADMIN_DELETE_MEMBER,
            details={
                "deletedPersonId": person_id,
                "name": person.name,
                "warnings": warnings,
            },
            amount=Decimal("0"),
            created_at=self.clock(),
        )

        logger.info(
            "회원 삭제",
            extra={"person_id": person_id, "deleted_rows": deleted_rows, "warnings": len(warnings)},
        )
        return Outcome.ok(
            DeleteMemberResult(
                person_id=person_id,
                name=person.name,
                deleted_rows=deleted_rows,
                warnings=warnings,
            )
        )

    async def reset_all(self, credential: str | None) -> Outcome[ResetResult]:
        """전체 초기화 (되돌릴 수 없음)

        로그/대출/납입/일일 요약 삭제, 모든 잔고와 풀을 0으로.
        회원은 유지되며 ADMIN_RESET 시스템 로그 1건만 남음.
        """
        if not self.authority.verify(credential):
            return self._denied()

        for table in RESET_TABLES:
            await self.store.clear_table(table)
        await self.store.zero_all_balances()

        zero = Decimal("0")
        await self.store.append_log(
            person_id=None,
            transaction_type=TransactionType.ADMIN_RESET,
            details={"note": "all transactions reset", "clearedTables": list(RESET_TABLES)},
            amount=zero,
            created_at=self.clock(),
            snapshot=BalanceSnapshot(group_main=zero, group_validity=zero),
        )

        logger.warning("장부 전체 초기화 실행")
        return Outcome.ok(ResetResult(cleared_tables=RESET_TABLES))

    async def get_share(self) -> ShareResult:
        """유닛당 지분 = (MAIN + VALIDITY 풀) / 전체 유닛 수"""
        async with self.store.db.read():
            pools = await self.store.get_group_pools()
            total_units = await self.store.total_units()

        total_savings = to_money(
            pools.get(PoolType.MAIN, Decimal("0")) + pools.get(PoolType.VALIDITY, Decimal("0"))
        )

        share_per_unit = to_money(total_savings / total_units) if total_units > 0 else Decimal("0.00")

        return ShareResult(
            total_savings=total_savings,
            total_units=total_units,
            share_per_unit=share_per_unit,
        )
