"""
Webhook 어댑터

HTTP Webhook을 통한 변경 알림 전송.
INotifier Protocol 준수.
"""

from adapters.webhook.notifier import WebhookNotifier

__all__ = [
    "WebhookNotifier",
]
