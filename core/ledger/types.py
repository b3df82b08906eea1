"""
장부 타입 정의

TransactionType 및 Balance Store 행(row) 데이터클래스
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from core.types import BorrowingStatus, PoolType
from core.utils.timezone import parse_utc


class TransactionType(str, Enum):
    """거래 로그 유형

    str을 상속하여 JSON 직렬화 가능.
    """

    SAVING = "SAVING"  # 유닛/유효성 회비 적립
    FINE = "FINE"  # 소급 입력 벌금
    BORROW = "BORROW"  # 대출 실행
    REPAYMENT = "REPAYMENT"  # 부분/전액 상환
    PENALTY = "PENALTY"  # 연체 이자 복리
    GROUP_ADJUST = "GROUP_ADJUST"  # 회원 생성 등 조정
    ADMIN_DELETE_MEMBER = "ADMIN_DELETE_MEMBER"  # 관리자 회원 삭제 (시스템)
    ADMIN_RESET = "ADMIN_RESET"  # 관리자 전체 초기화 (시스템)


@dataclass
class Person:
    """회원"""

    id: int
    name: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Person":
        """DB 행에서 생성"""
        return cls(id=row["id"], name=row["name"])


@dataclass
class PersonalBalance:
    """개인 잔고"""

    person_id: int
    main_savings_balance: Decimal
    validity_savings_balance: Decimal

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PersonalBalance":
        """DB 행에서 생성"""
        return cls(
            person_id=row["person_id"],
            main_savings_balance=Decimal(str(row["main_savings_balance"])),
            validity_savings_balance=Decimal(str(row["validity_savings_balance"])),
        )

    @classmethod
    def zero(cls, person_id: int) -> "PersonalBalance":
        """잔고 행이 없을 때의 0 잔고"""
        return cls(
            person_id=person_id,
            main_savings_balance=Decimal("0.00"),
            validity_savings_balance=Decimal("0.00"),
        )

    def balance_for(self, pool_type: PoolType | str) -> Decimal:
        """풀에 대응하는 개인 잔고"""
        if PoolType(pool_type) == PoolType.MAIN:
            return self.main_savings_balance
        return self.validity_savings_balance


@dataclass
class Borrowing:
    """대출

    Attributes:
        id: 대출 ID
        person_id: 차입자
        pool_type: 대출 풀
        principal: 원금
        initial_profit_amount: 최초 이자
        outstanding_amount: 미상환액 (원금 + 이자 + 연체 이자 - 상환)
        status: OPEN / PAID
        due_date: 만기일
        created_at: 생성 시각
        last_payment_at: 마지막 상환 시각
        last_penalty_applied_at: 마지막 연체 이자 적용 시각
    """

    id: int
    person_id: int
    pool_type: PoolType
    principal: Decimal
    initial_profit_amount: Decimal
    outstanding_amount: Decimal
    status: BorrowingStatus
    due_date: date
    created_at: datetime | None = None
    last_payment_at: datetime | None = None
    last_penalty_applied_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Borrowing":
        """DB 행에서 생성"""
        return cls(
            id=row["id"],
            person_id=row["person_id"],
            pool_type=PoolType(row["pool_type"]),
            principal=Decimal(str(row["principal"])),
            initial_profit_amount=Decimal(str(row["initial_profit_amount"])),
            outstanding_amount=Decimal(str(row["outstanding_amount"])),
            status=BorrowingStatus(row["status"]),
            due_date=date.fromisoformat(row["due_date"]),
            created_at=(
                parse_utc(row["created_at"])
                if row.get("created_at")
                else None
            ),
            last_payment_at=(
                parse_utc(row["last_payment_at"])
                if row.get("last_payment_at")
                else None
            ),
            last_penalty_applied_at=(
                parse_utc(row["last_penalty_applied_at"])
                if row.get("last_penalty_applied_at")
                else None
            ),
        )


@dataclass
class DailySummary:
    """회원별 일일 요약"""

    id: int
    person_id: int
    date: date
    validity_paid: bool
    units_count: int
    fine_amount: Decimal

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DailySummary":
        """DB 행에서 생성"""
        return cls(
            id=row["id"],
            person_id=row["person_id"],
            date=date.fromisoformat(row["date"]),
            validity_paid=bool(row["validity_paid"]),
            units_count=int(row["units_count"]),
            fine_amount=Decimal(str(row["fine_amount"])),
        )


@dataclass(frozen=True)
class BalanceSnapshot:
    """거래 로그에 기록할 커밋 시점 잔고 스냅샷

    None인 필드는 로그에 NULL로 기록.
    """

    person_main: Decimal | None = None
    person_validity: Decimal | None = None
    group_main: Decimal | None = None
    group_validity: Decimal | None = None
