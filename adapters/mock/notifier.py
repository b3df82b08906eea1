"""
Mock 변경 알림

테스트용 Mock Notifier.
INotifier Protocol 준수.
"""

from dataclasses import dataclass
from datetime import datetime

from core.types import ChangeType
from core.utils.timezone import now_utc


@dataclass
class NotificationRecord:
    """알림 기록"""

    subject_person_id: int | None
    change_type: ChangeType
    timestamp: datetime
    sent: bool


class MockNotifier:
    """Mock 변경 알림

    발송된 모든 알림을 기록하여 테스트에서 검증 가능.

    사용 예시:
    ```python
    notifier = MockNotifier()
    await notifier.send_change(1, ChangeType.SAVING)

    assert notifier.changes_for(1) == [ChangeType.SAVING]
    ```
    """

    def __init__(self, should_fail: bool = False, should_raise: bool = False):
        """
        Args:
            should_fail: True면 모든 발송이 False 반환
            should_raise: True면 모든 발송이 예외 발생 (엔진의 격리 검증용)
        """
        self.should_fail = should_fail
        self.should_raise = should_raise
        self.notifications: list[NotificationRecord] = []
        self.closed = False

    async def send_change(
        self,
        subject_person_id: int | None,
        change_type: ChangeType,
    ) -> bool:
        """변경 알림 전송"""
        if self.should_raise:
            raise ConnectionError("mock notifier unavailable")

        self.notifications.append(
            NotificationRecord(
                subject_person_id=subject_person_id,
                change_type=ChangeType(change_type),
                timestamp=now_utc(),
                sent=not self.should_fail,
            )
        )
        return not self.should_fail

    async def close(self) -> None:
        self.closed = True

    # -------------------------------------------------------------------------
    # 테스트 헬퍼 메서드
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """알림 기록 초기화"""
        self.notifications.clear()

    def changes_for(self, subject_person_id: int | None) -> list[ChangeType]:
        """특정 대상의 알림 유형 목록"""
        return [
            n.change_type
            for n in self.notifications
            if n.subject_person_id == subject_person_id
        ]

    @property
    def message_count(self) -> int:
        """전체 알림 수"""
        return len(self.notifications)

    @property
    def last_notification(self) -> NotificationRecord | None:
        """마지막 알림 조회"""
        return self.notifications[-1] if self.notifications else None
