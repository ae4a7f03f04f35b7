"""Dispatch handler: sends notifications through the email channel.

Reacts to NotificationCreated and NotificationRetried, sends the message and
records the outcome as SENT or FAILED. A failed send never raises; the
notification stays FAILED until it is retried.
"""

import structlog
from protean import handle
from protean.utils.globals import current_domain

from notifications.channel import get_channel
from notifications.notification.events import NotificationCreated, NotificationRetried
from notifications.notification.notification import Notification, NotificationStatus
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


def dispatch(notification: Notification) -> None:
    """Send ``notification`` and record the result on it."""
    try:
        channel = get_channel(notification.channel)
        result = channel.send(to=notification.recipient, subject=notification.subject or "", body=notification.body)
    except Exception as exc:
        result = {"status": "failed", "error": str(exc)}

    if result.get("status") == "sent":
        notification.mark_sent(result.get("message_id"))
        logger.info(
            "Admin email notification sent",
            notification_id=notification.id,
            order_id=notification.order_id,
            channel=notification.channel,
            message_id=result.get("message_id"),
        )
        return

    notification.mark_failed(result.get("error") or "Email delivery failed")
    if notification.retries_exhausted:
        logger.error(
            "Admin notification failed permanently",
            notification_id=notification.id,
            order_id=notification.order_id,
            error=notification.failure_reason,
        )
    else:
        logger.warning(
            "Failed to send admin notification for order",
            notification_id=notification.id,
            order_id=notification.order_id,
            error=notification.failure_reason,
            retry_count=notification.retry_count,
        )


@storefront.event_handler(part_of=Notification)
class NotificationDispatcher:
    def _dispatch_pending(self, notification_id) -> None:
        repo = current_domain.repository_for(Notification)
        notification = repo.get_or_none(notification_id)
        if notification is None:
            logger.warning("Notification no longer exists, skipping dispatch", notification_id=notification_id)
            return

        if NotificationStatus(notification.status) != NotificationStatus.PENDING:
            logger.info(
                "Notification not in PENDING status, skipping dispatch",
                notification_id=notification_id,
                status=notification.status,
            )
            return

        dispatch(notification)
        repo.add(notification)

    @handle(NotificationCreated)
    def on_notification_created(self, event: NotificationCreated) -> None:
        self._dispatch_pending(event.notification_id)

    @handle(NotificationRetried)
    def on_notification_retried(self, event: NotificationRetried) -> None:
        self._dispatch_pending(event.notification_id)
