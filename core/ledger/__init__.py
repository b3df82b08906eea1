"""
저축 클럽 장부 (Balance Store)

개인 잔고, 그룹 풀, 대출, 납입, 일일 요약, 거래 로그를 관리.

사용 예시:
```python
from core.ledger import BalanceStore, init_club_schema

await init_club_schema(db)
store = BalanceStore(db)

async with db.transaction():
    balance = await store.ensure_personal_balance(person_id)
    await store.credit_group_pool(PoolType.MAIN, Decimal("500"))
```
"""

from core.ledger.schema import LEDGER_TABLES, init_club_schema
from core.ledger.store import BalanceStore
from core.ledger.types import (
    BalanceSnapshot,
    Borrowing,
    DailySummary,
    Person,
    PersonalBalance,
    TransactionType,
)

__all__ = [
    # 핵심 클래스
    "BalanceStore",
    "init_club_schema",
    "LEDGER_TABLES",
    # Enum
    "TransactionType",
    # 행 타입
    "Person",
    "PersonalBalance",
    "Borrowing",
    "DailySummary",
    "BalanceSnapshot",
]
