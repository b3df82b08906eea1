"""
연산 결과 타입

모든 장부 연산은 예외 대신 Outcome(성공/실패 태그)을 반환.
엔진은 Outcome에 따라 커밋/롤백을 결정.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class LedgerErrorKind(str, Enum):
    """장부 연산 실패 종류

    분류:
    - 검증 오류: 잘못된 입력/정책 위반
    - 인가 오류: 자격 증명 누락/불일치
    - 상태 충돌: 초과 상환, 미결 대출 없음, 소유자 불일치
    - 내부 오류: 저장소 실패 (항상 전체 롤백)
    """

    # 검증
    INVALID_UNITS = "INVALID_UNITS"
    DAILY_CAP_EXCEEDED = "DAILY_CAP_EXCEEDED"
    UNITS_CAP_EXCEEDED = "UNITS_CAP_EXCEEDED"
    NO_CHANGE_REQUESTED = "NO_CHANGE_REQUESTED"
    DATE_NOT_PAST = "DATE_NOT_PAST"
    INVALID_POOL_TYPE = "INVALID_POOL_TYPE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_NAME = "INVALID_NAME"
    MISSING_ID = "MISSING_ID"
    INSUFFICIENT_SAVED_COUNT = "INSUFFICIENT_SAVED_COUNT"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    INSUFFICIENT_GROUP_FUNDS = "INSUFFICIENT_GROUP_FUNDS"

    # 인가
    BAD_CREDENTIAL = "BAD_CREDENTIAL"

    # 상태 충돌
    PERSON_NOT_FOUND = "PERSON_NOT_FOUND"
    NO_PERSONAL_BALANCE = "NO_PERSONAL_BALANCE"
    OPEN_DEBT_EXISTS = "OPEN_DEBT_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    NOT_OWNER = "NOT_OWNER"
    NOT_OPEN = "NOT_OPEN"
    OVERPAYMENT = "OVERPAYMENT"

    # 내부
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class LedgerError:
    """실패 상세

    Attributes:
        kind: 실패 종류
        message: 사람이 읽을 수 있는 메시지
        details: 재시도에 필요한 부가 정보 (예: 실제 미상환액)
    """

    kind: LedgerErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """연산 결과 (성공 또는 실패)

    사용 예시:
    ```python
    outcome = await engine.repay(person_id=1, borrowing_id=3, amount=Decimal("100"))
    if outcome.is_ok:
        print(outcome.value.new_outstanding)
    else:
        print(outcome.error.kind)
    ```
    """

    value: T | None = None
    error: LedgerError | None = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        """성공 결과 생성"""
        return cls(value=value)

    @classmethod
    def fail(
        cls,
        kind: LedgerErrorKind,
        message: str,
        **details: Any,
    ) -> "Outcome[T]":
        """실패 결과 생성"""
        return cls(error=LedgerError(kind=kind, message=message, details=details))

    @property
    def is_ok(self) -> bool:
        """성공 여부"""
        return self.error is None

    @property
    def kind(self) -> LedgerErrorKind | None:
        """실패 종류 (성공이면 None)"""
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        """성공 값 반환

        Raises:
            RuntimeError: 실패 결과인 경우
        """
        if self.error is not None:
            raise RuntimeError(f"{self.error.kind.value}: {self.error.message}")
        return self.value  # type: ignore[return-value]
