"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Protocol, runtime_checkable

from core.types import ChangeType


@runtime_checkable
class INotifier(Protocol):
    """변경 알림 인터페이스

    커밋 이후에만 호출됨. 실패해도 장부 상태에는 영향 없음.
    """

    async def send_change(
        self,
        subject_person_id: int | None,
        change_type: ChangeType,
    ) -> bool:
        """변경 알림 전송

        Args:
            subject_person_id: 변경 대상 회원 (None = 그룹 전체)
            change_type: 변경 유형

        Returns:
            전송 성공 여부
        """
        ...

    async def close(self) -> None:
        """리소스 정리"""
        ...
