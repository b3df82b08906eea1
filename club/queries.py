"""
읽기 전용 조회

회원 목록, 적립 횟수, 잔고/미결 대출, 거래 로그, 그룹 풀.
읽기 컨텍스트(db.read) 안에서 커밋된 상태만 읽음.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from core.constants import Defaults
from core.ledger.store import BalanceStore
from core.ledger.types import Borrowing, PersonalBalance, Person
from core.types import PaymentType, PoolType


@dataclass(frozen=True)
class PersonMeta:
    """회원 메타 정보"""

    person_id: int
    saved_count: int


@dataclass(frozen=True)
class PersonBalanceView:
    """회원 잔고 조회 결과"""

    balance: PersonalBalance
    open_borrowings: list[Borrowing] = field(default_factory=list)
    group_pools: dict[PoolType, Decimal] = field(default_factory=dict)


class LedgerQueries:
    """장부 조회

    Args:
        store: Balance Store
    """

    def __init__(self, store: BalanceStore):
        self.store = store

    async def list_people(self) -> list[Person]:
        async with self.store.db.read():
            return await self.store.list_people()

    async def get_person_meta(self, person_id: int) -> PersonMeta:
        """UNIT 납입 횟수 (대출 자격 판단 기준)"""
        async with self.store.db.read():
            saved_count = await self.store.count_payments(person_id, PaymentType.UNIT)
        return PersonMeta(person_id=person_id, saved_count=saved_count)

    async def get_person_balance(self, person_id: int) -> PersonBalanceView:
        """개인 잔고 (행이 없으면 0) + OPEN 대출 + 그룹 풀"""
        async with self.store.db.read():
            balance = await self.store.get_personal_balance(person_id)
            open_borrowings = await self.store.list_open_borrowings(person_id)
            group_pools = await self.store.get_group_pools()
        return PersonBalanceView(
            balance=balance or PersonalBalance.zero(person_id),
            open_borrowings=open_borrowings,
            group_pools=group_pools,
        )

    async def get_transactions(
        self,
        person_id: int,
        limit: int = Defaults.TRANSACTIONS_LIMIT,
    ) -> list[dict[str, Any]]:
        async with self.store.db.read():
            return await self.store.get_transactions(person_id, limit=limit)

    async def get_group_pools(self) -> dict[PoolType, Decimal]:
        async with self.store.db.read():
            return await self.store.get_group_pools()
