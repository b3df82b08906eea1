"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from core.constants import CENTS, LedgerDefaults


class PoolType(str, Enum):
    """그룹 자금 풀 종류"""

    MAIN = "MAIN"
    VALIDITY = "VALIDITY"


class BorrowingStatus(str, Enum):
    """대출 상태"""

    OPEN = "OPEN"
    PAID = "PAID"  # 종료 상태 (재오픈 불가)


class PaymentType(str, Enum):
    """납입 유형"""

    UNIT = "UNIT"  # 적립 유닛
    VALIDITY = "VALIDITY"  # 유효성 회비
    FINE = "FINE"  # 소급 입력 벌금
    DEBT_PAYMENT = "DEBT_PAYMENT"  # 대출 상환


class ChangeType(str, Enum):
    """변경 알림 유형 (푸시 채널용)"""

    SAVING = "saving"
    BORROW = "borrow"
    REPAY = "repay"
    PAY_FULL = "pay_full"
    PENALTY = "penalty"
    NEW_MEMBER = "new_member"
    MEMBER_DELETED = "member_deleted"
    RESET = "reset"
    GROUP = "group"


def to_money(value: Decimal | int | str | float) -> Decimal:
    """금액을 소수점 2자리 Decimal로 변환

    float는 str을 거쳐 변환하여 이진 오차 방지.

    Args:
        value: 변환할 값

    Returns:
        ROUND_HALF_UP으로 2자리 반올림된 Decimal
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LedgerRules:
    """장부 규칙 (불변)

    코어는 설정 파일을 직접 읽지 않고 이 값을 주입받음.
    """

    unit_price: Decimal = LedgerDefaults.UNIT_PRICE
    validity_fee: Decimal = LedgerDefaults.VALIDITY_FEE
    fine_amount: Decimal = LedgerDefaults.FINE_AMOUNT
    daily_unit_cap: int = LedgerDefaults.DAILY_UNIT_CAP
    min_unit_payments_to_borrow: int = LedgerDefaults.MIN_UNIT_PAYMENTS_TO_BORROW
    borrow_interest_rate: Decimal = LedgerDefaults.BORROW_INTEREST_RATE
    borrow_limit_ratio: Decimal = LedgerDefaults.BORROW_LIMIT_RATIO
    penalty_rate: Decimal = LedgerDefaults.PENALTY_RATE
    main_period_days: int = LedgerDefaults.MAIN_PERIOD_DAYS
    validity_period_days: int = LedgerDefaults.VALIDITY_PERIOD_DAYS

    def period_days(self, pool_type: PoolType | str) -> int:
        """풀별 대출/연체 기간 (일)"""
        if PoolType(pool_type) == PoolType.MAIN:
            return self.main_period_days
        return self.validity_period_days

    def units_amount(self, units: int) -> Decimal:
        """유닛 수 → 금액"""
        return to_money(self.unit_price * units)
