"""
Webhook 변경 알림

커밋된 장부 변경을 HTTP Webhook으로 구독자에게 전달.
INotifier Protocol 준수.
"""

import logging
from typing import Any

import httpx

from core.constants import Defaults
from core.types import ChangeType
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """Webhook 변경 알림

    INotifier Protocol 구현.
    payload: {"person_id": int | null, "type": str, "source": str, "timestamp": str}

    사용 예시:
    ```python
    notifier = WebhookNotifier(webhook_url="https://example.com/hooks/ledger")

    await notifier.send_change(3, ChangeType.SAVING)
    await notifier.send_change(None, ChangeType.GROUP)
    ```
    """

    def __init__(
        self,
        webhook_url: str,
        username: str = Defaults.NOTIFIER_USERNAME,
        timeout: float = 10.0,
    ):
        """
        Args:
            webhook_url: 구독자 Webhook URL
            username: 발신자 이름
            timeout: HTTP 요청 타임아웃 (초)
        """
        if not webhook_url:
            raise ValueError("webhook_url은 필수입니다")

        self.webhook_url = webhook_url
        self.username = username
        self.timeout = timeout

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def send_change(
        self,
        subject_person_id: int | None,
        change_type: ChangeType,
    ) -> bool:
        """변경 알림 전송

        Returns:
            전송 성공 여부 (실패해도 예외 없음)
        """
        payload: dict[str, Any] = {
            "person_id": subject_person_id,
            "type": ChangeType(change_type).value,
            "source": self.username,
            "timestamp": now_utc().isoformat(),
        }
        return await self._send_payload(payload)

    async def _send_payload(self, payload: dict[str, Any]) -> bool:
        """Webhook으로 페이로드 전송"""
        try:
            client = await self._get_client()
            response = await client.post(self.webhook_url, json=payload)

            if 200 <= response.status_code < 300:
                logger.debug(
                    "변경 알림 전송 성공",
                    extra={"person_id": payload["person_id"], "change_type": payload["type"]},
                )
                return True

            logger.warning(
                "변경 알림 전송 실패: status=%s, body=%s",
                response.status_code,
                response.text,
            )
            return False

        except httpx.TimeoutException:
            logger.error("변경 알림 전송 타임아웃")
            return False
        except httpx.HTTPError as e:
            logger.error("변경 알림 전송 HTTP 에러: %s", e)
            return False

    # -------------------------------------------------------------------------
    # Context Manager 지원
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "WebhookNotifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
